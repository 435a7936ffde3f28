"""
Typed error classes for the HyperEVM VRF SDK.

Every failure raised by the beacon client, the ledger adapters and the
fulfillment orchestrator is one of the classes below, so callers can catch a
specific failure mode while still being able to catch the base `VrfError`.

Errors are dataclasses: all context (request ids, rounds, addresses, tx
hashes) lives in typed fields, and `to_dict()` renders it for logs or JSON
output without any message parsing.

Only `RoundNotPublishedError` is retryable, and only by
`VrfFulfiller.fulfill_with_wait`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, ClassVar, Dict, Optional

__all__ = [
    "ERROR_CODES",
    "VrfError",
    "ConfigurationError",
    "VrfRequestError",
    "AlreadyFulfilledError",
    "RoundNotPublishedError",
    "PolicyViolationError",
    "BeaconError",
    "WrongBeaconError",
    "RoundMismatchError",
    "SignatureFormatError",
    "NetworkError",
    "HttpError",
    "JsonDecodeError",
    "ContractError",
    "TransactionError",
    "is_retryable",
]


ERROR_CODES: Dict[str, str] = {
    "VRF_REQUEST_ERROR": "VRF_REQUEST_ERROR",
    "DRAND_ERROR": "DRAND_ERROR",
    "NETWORK_ERROR": "NETWORK_ERROR",
    "CONFIGURATION_ERROR": "CONFIGURATION_ERROR",
    "CONTRACT_ERROR": "CONTRACT_ERROR",
    "TRANSACTION_ERROR": "TRANSACTION_ERROR",
}


class VrfError(Exception):
    """Base class for all SDK errors."""

    code: ClassVar[str] = "VRF_ERROR"

    def __post_init__(self) -> None:
        # Dataclass __init__ skips Exception.__init__; keep .args meaningful.
        Exception.__init__(self, str(self))

    @property
    def details(self) -> Dict[str, Any]:
        if not is_dataclass(self):
            return {}
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": str(self),
            "details": self.details,
        }


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------


@dataclass(eq=False)
class ConfigurationError(VrfError):
    """
    Raised for invalid inputs at construction time (malformed address, bad key
    format, invalid timeout/window). Always raised before any network call.
    """

    code: ClassVar[str] = ERROR_CODES["CONFIGURATION_ERROR"]

    message: str
    field: Optional[str] = None
    value: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.field}]" if self.field else ""
        return f"ConfigurationError{where}: {self.message}"


# -----------------------------------------------------------------------------
# Request lifecycle
# -----------------------------------------------------------------------------


@dataclass(eq=False)
class VrfRequestError(VrfError):
    """Base for failures tied to a specific on-chain request id."""

    code: ClassVar[str] = ERROR_CODES["VRF_REQUEST_ERROR"]

    request_id: int

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"request {self.request_id} cannot be fulfilled"


@dataclass(eq=False)
class AlreadyFulfilledError(VrfRequestError):
    """The request is already fulfilled on-chain. Terminal."""

    def __str__(self) -> str:
        return f"Request {self.request_id} is already fulfilled"


@dataclass(eq=False)
class RoundNotPublishedError(VrfRequestError):
    """
    The target beacon round has not been published yet.

    `seconds_left` is how long until the round's publish time, so callers know
    how long to back off before trying again.
    """

    target_round: int
    latest_round: int
    seconds_left: int

    def __str__(self) -> str:
        return (
            f"Target round {self.target_round} is not yet published. "
            f"Latest: {self.latest_round}, waiting: {self.seconds_left}s"
        )


@dataclass(eq=False)
class PolicyViolationError(VrfRequestError):
    """
    Using `target_round` while the beacon is at `current_round` breaks the
    configured anti-grinding policy. Terminal: rounds only move forward.
    """

    policy_mode: str
    policy_window: int
    current_round: int
    target_round: int
    round_difference: int

    def __str__(self) -> str:
        return (
            f"Policy violation for request {self.request_id}: mode={self.policy_mode} "
            f"window={self.policy_window} target={self.target_round} "
            f"current={self.current_round} diff={self.round_difference}"
        )


# -----------------------------------------------------------------------------
# Beacon integrity
# -----------------------------------------------------------------------------


class BeaconError(VrfError):
    """Base for drand beacon integrity failures."""

    code: ClassVar[str] = ERROR_CODES["DRAND_ERROR"]
    operation: ClassVar[str] = "drand"

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        out["details"] = {"operation": self.operation, **out["details"]}
        return out


@dataclass(eq=False)
class WrongBeaconError(BeaconError):
    """The beacon service does not identify as the expected scheme/network."""

    operation: ClassVar[str] = "get_info"

    scheme: Optional[str]
    network: Optional[str]
    expected_scheme: str
    expected_network: str

    def __str__(self) -> str:
        return (
            f"Wrong beacon: scheme={self.scheme!r} network={self.network!r} "
            f"(expected {self.expected_scheme}/{self.expected_network})"
        )


@dataclass(eq=False)
class RoundMismatchError(BeaconError):
    """The beacon answered with a different round than the one requested."""

    operation: ClassVar[str] = "fetch_round_signature"

    expected_round: int
    received_round: Any

    def __str__(self) -> str:
        return f"Round mismatch: expected {self.expected_round}, got {self.received_round}"


@dataclass(eq=False)
class SignatureFormatError(BeaconError):
    """The beacon signature is not a 128-hex-char (64 byte) payload."""

    operation: ClassVar[str] = "decode_signature"

    signature: str
    expected_length: int
    actual_length: int

    def __post_init__(self) -> None:
        self.signature = str(self.signature)[:100]
        super().__post_init__()

    def __str__(self) -> str:
        return (
            f"Invalid signature format: expected {self.expected_length} hex chars, "
            f"got {self.actual_length}"
        )


# -----------------------------------------------------------------------------
# Transport
# -----------------------------------------------------------------------------


@dataclass(eq=False)
class NetworkError(VrfError):
    """Transport failure talking to the beacon HTTP API."""

    code: ClassVar[str] = ERROR_CODES["NETWORK_ERROR"]

    message: str
    url: str
    status_code: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


@dataclass(eq=False)
class HttpError(NetworkError):
    """Non-200 HTTP status from the beacon API."""

    response_data: str = ""

    def __post_init__(self) -> None:
        self.response_data = self.response_data[:200]
        super().__post_init__()


@dataclass(eq=False)
class JsonDecodeError(NetworkError):
    """The beacon API answered with a body that is not valid JSON."""

    response_data: str = ""
    parse_error: str = ""

    def __post_init__(self) -> None:
        self.response_data = self.response_data[:200]
        super().__post_init__()


# -----------------------------------------------------------------------------
# Ledger
# -----------------------------------------------------------------------------


@dataclass(eq=False)
class ContractError(VrfError):
    """A ledger read or write failed (including "request not found")."""

    code: ClassVar[str] = ERROR_CODES["CONTRACT_ERROR"]

    message: str
    operation: str
    contract_address: Optional[str] = None
    cause: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        where = f" at {self.contract_address}" if self.contract_address else ""
        suffix = f": {self.cause}" if self.cause else ""
        return f"{self.operation}{where} failed: {self.message}{suffix}"


@dataclass(eq=False)
class TransactionError(VrfError):
    """
    Submitting or confirming a transaction failed.

    Fields:
      - operation: contract method that was being executed
      - tx_hash: hex hash if one exists (None when rejected pre-broadcast)
      - cause: stringified underlying failure
      - receipt: optional receipt summary (e.g. for reverts)
    """

    code: ClassVar[str] = ERROR_CODES["TRANSACTION_ERROR"]

    message: str
    operation: str
    tx_hash: Optional[str] = None
    cause: Optional[str] = None
    receipt: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        suffix = f" tx={self.tx_hash}" if self.tx_hash else ""
        cause = f" ({self.cause})" if self.cause else ""
        return f"TransactionError[{self.operation}]{suffix}: {self.message}{cause}"


def is_retryable(exc: BaseException) -> bool:
    """True only for failures that waiting can fix."""
    return isinstance(exc, RoundNotPublishedError)
