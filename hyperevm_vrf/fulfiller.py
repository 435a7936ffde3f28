"""
hyperevm_vrf.fulfiller
======================

Fulfillment orchestrator for DrandVRF requests.

`VrfFulfiller.fulfill(request_id)` walks a fixed sequence of steps, each of
which either advances or raises a typed error:

    FetchingRequest -> CheckingFulfilled -> ComputingRound -> CheckingPolicy
      -> FetchingSignature -> SubmittingTx -> AwaitingConfirmation -> Done

The ledger and the beacon are injected capabilities (see
`hyperevm_vrf.ledger.base.LedgerClient` and `BeaconSource` below), so the
orchestrator holds no connection state of its own and concurrent calls for
different request ids do not interact.

Only `RoundNotPublishedError` is retried, and only by `fulfill_with_wait`.

Example
-------
    from hyperevm_vrf import VrfConfig, VrfFulfiller

    fulfiller = VrfFulfiller.from_config(VrfConfig.from_env())
    result = fulfiller.fulfill_with_wait(42, timeout_ms=120_000)
    print(result.round, result.tx_hash)
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import (TYPE_CHECKING, Any, Callable, Optional, Protocol, Union,
                    runtime_checkable)

from . import logging as vlog
from .drand.client import BeaconInfo, DrandClient
from .drand.signature import SignaturePair
from .errors import (AlreadyFulfilledError, ConfigurationError, ContractError,
                     JsonDecodeError, NetworkError, RoundNotPublishedError,
                     TransactionError, VrfError)
from .hexutil import is_address, to_bytes32
from .ledger.abi import EVENT_RANDOMNESS_REQUESTED
from .ledger.base import (FeeOverrides, LedgerClient, PendingTx, TxReceipt,
                          VrfRequest, event_ids)
from .policy import DEFAULT_POLICY, Policy, check_policy
from .rounds import RoundTarget, compute_round_target

if TYPE_CHECKING:  # pragma: no cover
    from .config import VrfConfig

log = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_WAIT_INTERVAL_MS",
    "DEFAULT_WAIT_TIMEOUT_MS",
    "MAX_BACKOFF_MS",
    "BeaconSource",
    "FulfillResult",
    "RequestResult",
    "VrfFulfiller",
]

DEFAULT_WAIT_INTERVAL_MS = 2_000
DEFAULT_WAIT_TIMEOUT_MS = 300_000
MAX_BACKOFF_MS = 30_000


@runtime_checkable
class BeaconSource(Protocol):
    """What the fulfiller needs from a beacon (DrandClient satisfies it)."""

    def get_info(self) -> BeaconInfo: ...

    def get_round_signature(self, round_number: int) -> SignaturePair: ...


@dataclass(frozen=True)
class FulfillResult:
    request_id: int
    round: int
    signature: SignaturePair
    tx_hash: str

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "round": self.round,
            "signature": [str(self.signature[0]), str(self.signature[1])],
            "tx_hash": self.tx_hash,
        }


@dataclass(frozen=True)
class RequestResult:
    request_id: int
    tx_hash: str
    salt: str
    deadline: int

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "tx_hash": self.tx_hash,
            "salt": self.salt,
            "deadline": self.deadline,
        }


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


class VrfFulfiller:
    """
    Parameters
    ----------
    ledger : LedgerClient
        Contract access (reads, writes, receipts).
    beacon : BeaconSource
        drand beacon access, e.g. `DrandClient`.
    policy : Policy | None
        Anti-grinding policy. Defaults to a window of 1 round; pass None to
        disable the check.
    fee_overrides : FeeOverrides | None
        EIP-1559 caps applied to every submitted transaction.
    clock, sleep, monotonic
        Time sources; injectable for tests.
    receipt_timeout_s : float | None
        Passed to `PendingTx.wait`; None uses the ledger's default.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        beacon: BeaconSource,
        *,
        policy: Optional[Policy] = DEFAULT_POLICY,
        fee_overrides: Optional[FeeOverrides] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
        receipt_timeout_s: Optional[float] = None,
    ) -> None:
        if policy is not None and not isinstance(policy, Policy):
            raise ConfigurationError("policy must be a Policy or None", field="policy", value=policy)
        self.ledger = ledger
        self.beacon = beacon
        self.policy = policy
        self.fee_overrides = fee_overrides
        self.receipt_timeout_s = receipt_timeout_s
        self._clock = clock
        self._sleep = sleep
        self._monotonic = monotonic

    @classmethod
    def from_config(
        cls,
        config: "VrfConfig",
        *,
        ledger: Optional[LedgerClient] = None,
        beacon: Optional[BeaconSource] = None,
        **kwargs: Any,
    ) -> "VrfFulfiller":
        """
        Wire a fulfiller from a validated config: a `Web3LedgerClient` signing
        with `config.private_key` (read-only when unset) and a `DrandClient`.
        """
        config.validate()
        if ledger is None:
            from .ledger.web3_client import Web3LedgerClient
            from .wallet import load_account

            account = load_account(config.private_key) if config.private_key else None
            ledger = Web3LedgerClient.from_rpc_url(
                config.rpc_url, config.vrf_address, account, chain_id=config.chain_id
            )
        if beacon is None:
            beacon = DrandClient(
                base_url=config.drand.base_url,
                beacon=config.drand.beacon,
                timeout_ms=config.drand.fetch_timeout_ms,
            )
        kwargs.setdefault("policy", config.policy_obj())
        kwargs.setdefault("fee_overrides", config.gas.fee_overrides())
        return cls(ledger, beacon, **kwargs)

    # --- one-shot fulfillment -------------------------------------------

    def fulfill(self, request_id: int) -> FulfillResult:
        """
        Fulfill `request_id` once, raising on the first step that cannot
        proceed. A target round that is not yet published raises
        RoundNotPublishedError immediately.
        """
        rid = int(request_id)
        with vlog.context_scope(request_id=rid):
            request = self.get_request(rid)
            if request.fulfilled:
                raise AlreadyFulfilledError(request_id=rid)

            target = self.round_target(request)
            if not target.published:
                raise RoundNotPublishedError(
                    request_id=rid,
                    target_round=target.target_round,
                    latest_round=target.latest_round,
                    seconds_left=target.seconds_left,
                )
            check_policy(self.policy, target.target_round, target.latest_round, request_id=rid)

            with vlog.context_scope(round=target.target_round):
                signature = self._beacon_call(
                    "get_round_signature", self.beacon.get_round_signature, target.target_round
                )
                pending = self._submit(
                    "fulfillRandomness",
                    self.ledger.fulfill_randomness,
                    rid,
                    target.target_round,
                    signature,
                    self.fee_overrides,
                )
                receipt = self._confirm("fulfillRandomness", pending)

        return FulfillResult(
            request_id=rid,
            round=target.target_round,
            signature=signature,
            tx_hash=receipt.tx_hash,
        )

    def fulfill_with_wait(
        self,
        request_id: int,
        *,
        interval_ms: int = DEFAULT_WAIT_INTERVAL_MS,
        timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> FulfillResult:
        """
        Call `fulfill` until it succeeds, sleeping while the target round is
        unpublished.

        Each sleep is `clamp(seconds_left * 1000, interval_ms, 30000)` ms,
        cut short to whatever remains of `timeout_ms`. Any error other than
        RoundNotPublishedError propagates at once. Once the budget is spent
        the last RoundNotPublishedError is re-raised.
        """
        for name, val in (("interval_ms", interval_ms), ("timeout_ms", timeout_ms)):
            if isinstance(val, bool) or not isinstance(val, int) or val < 0:
                raise ConfigurationError(f"{name} must be a non-negative integer", field=name, value=val)

        started = self._monotonic()
        attempt = 0
        while True:
            attempt += 1
            try:
                return self.fulfill(request_id)
            except RoundNotPublishedError as e:
                last = e

            remaining_ms = timeout_ms - (self._monotonic() - started) * 1000.0
            if remaining_ms <= 0:
                log.info(
                    "giving up on request %s after %d attempts: round %d not published",
                    last.request_id,
                    attempt,
                    last.target_round,
                )
                raise last

            wait_ms = min(_clamp(last.seconds_left * 1000.0, interval_ms, MAX_BACKOFF_MS), remaining_ms)
            with vlog.context_scope(request_id=last.request_id, attempt=attempt):
                log.info(
                    "round %d not published (latest %d), sleeping %.0f ms",
                    last.target_round,
                    last.latest_round,
                    wait_ms,
                )
            self._sleep(wait_ms / 1000.0)

    # --- request + fulfill ------------------------------------------------

    def request_randomness(
        self,
        deadline: int,
        *,
        consumer: str,
        salt: Optional[Union[bytes, str]] = None,
    ) -> RequestResult:
        """
        Submit `requestRandomness` and return the id the contract assigned.

        A random 32-byte salt is generated when none is given. The id comes
        from the RandomnessRequested event, else from `lastId()`; if neither
        yields one a ContractError is raised.
        """
        if not is_address(consumer):
            raise ConfigurationError("invalid consumer address", field="consumer", value=consumer)
        if salt is None:
            salt_bytes = secrets.token_bytes(32)
        else:
            try:
                salt_bytes = to_bytes32(salt)
            except ValueError as e:
                raise ConfigurationError(f"salt: {e}", field="salt") from e

        pending = self._submit(
            "requestRandomness",
            self.ledger.request_randomness,
            int(deadline),
            salt_bytes,
            consumer,
            self.fee_overrides,
        )
        receipt = self._confirm("requestRandomness", pending)
        request_id = self._request_id_from(receipt)
        log.info("request %d created (tx %s)", request_id, receipt.tx_hash)
        return RequestResult(
            request_id=request_id,
            tx_hash=receipt.tx_hash,
            salt="0x" + salt_bytes.hex(),
            deadline=int(deadline),
        )

    def request_and_fulfill(
        self,
        deadline: int,
        *,
        consumer: str,
        salt: Optional[Union[bytes, str]] = None,
        interval_ms: int = DEFAULT_WAIT_INTERVAL_MS,
        timeout_ms: int = DEFAULT_WAIT_TIMEOUT_MS,
    ) -> FulfillResult:
        """Create a request, then wait for its round and fulfill it."""
        req = self.request_randomness(deadline, consumer=consumer, salt=salt)
        return self.fulfill_with_wait(req.request_id, interval_ms=interval_ms, timeout_ms=timeout_ms)

    # --- building blocks ------------------------------------------------

    def get_request(self, request_id: int) -> VrfRequest:
        try:
            return self.ledger.get_request(int(request_id))
        except VrfError:
            raise
        except Exception as e:
            raise ContractError(
                message="failed to read request",
                operation="getRequest",
                contract_address=self._ledger_address(),
                cause=str(e),
                context={"request_id": int(request_id)},
            ) from e

    def round_target(self, request: VrfRequest) -> RoundTarget:
        """Target round for `request` against freshly fetched beacon info."""
        info = self._beacon_call("get_info", self.beacon.get_info)
        try:
            return compute_round_target(request.deadline, request.min_round, info, int(self._clock()))
        except ValueError as e:
            raise JsonDecodeError(
                message=f"unusable beacon info: {e}",
                url=str(getattr(self.beacon, "base_url", "")),
                response_data=repr(info),
                parse_error=str(e),
            ) from e

    def _beacon_call(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except VrfError:
            raise
        except Exception as e:
            raise NetworkError(
                message=f"beacon {operation} failed: {e}",
                url=str(getattr(self.beacon, "base_url", "")),
            ) from e

    def _submit(self, operation: str, fn: Callable[..., PendingTx], *args: Any) -> PendingTx:
        try:
            pending = fn(*args)
        except VrfError:
            raise
        except Exception as e:
            raise TransactionError(message="submission failed", operation=operation, cause=str(e)) from e
        log.info("%s sent: %s", operation, pending.tx_hash)
        return pending

    def _confirm(self, operation: str, pending: PendingTx) -> TxReceipt:
        tx_hash = pending.tx_hash
        with vlog.context_scope(tx_hash=tx_hash):
            try:
                receipt = pending.wait(self.receipt_timeout_s)
            except VrfError:
                raise
            except Exception as e:
                raise TransactionError(
                    message="confirmation failed",
                    operation=operation,
                    tx_hash=tx_hash,
                    cause=str(e),
                ) from e
            if not receipt.succeeded:
                raise TransactionError(
                    message="transaction reverted",
                    operation=operation,
                    tx_hash=receipt.tx_hash or tx_hash,
                    receipt=receipt.summary(),
                )
            log.info("%s mined in block %s", operation, receipt.block_number)
        return receipt

    def _request_id_from(self, receipt: TxReceipt) -> int:
        ids = [i for i in event_ids(receipt, EVENT_RANDOMNESS_REQUESTED) if i > 0]
        if ids:
            return ids[0]

        log.debug("no %s event in %s, falling back to lastId()", EVENT_RANDOMNESS_REQUESTED, receipt.tx_hash)
        try:
            last = self.ledger.last_id()
        except Exception as e:
            raise ContractError(
                message="could not determine request id",
                operation="requestRandomness",
                contract_address=self._ledger_address(),
                cause=str(e),
                context={"tx_hash": receipt.tx_hash},
            ) from e
        if isinstance(last, bool) or not isinstance(last, int) or last <= 0:
            raise ContractError(
                message="could not determine request id",
                operation="requestRandomness",
                contract_address=self._ledger_address(),
                context={"tx_hash": receipt.tx_hash, "last_id": last},
            )
        return last

    def _ledger_address(self) -> Optional[str]:
        return getattr(self.ledger, "address", None)
