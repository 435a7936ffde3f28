"""
Ledger capability used by the fulfiller.

The orchestrator never talks to a chain SDK directly; it depends on the small
protocols below. `Web3LedgerClient` implements them against a live EVM node,
and tests substitute in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import (Any, Dict, List, Mapping, Optional, Protocol, Sequence,
                    Tuple, runtime_checkable)

__all__ = [
    "ZERO_BYTES32",
    "VrfRequest",
    "DecodedEvent",
    "TxReceipt",
    "FeeOverrides",
    "PendingTx",
    "LedgerClient",
    "event_ids",
]

ZERO_BYTES32 = "0x" + "00" * 32


@dataclass(frozen=True)
class VrfRequest:
    """On-chain request record (`getRequest(id)`)."""

    deadline: int
    min_round: int
    fulfilled: bool
    requester: str
    callback: str
    salt: str = ZERO_BYTES32
    randomness: str = ZERO_BYTES32

    @classmethod
    def from_tuple(cls, row: Sequence[Any]) -> "VrfRequest":
        """Build from the ABI tuple order (deadline, minRound, fulfilled, requester, callback, salt, randomness)."""
        deadline, min_round, fulfilled, requester, callback, salt, randomness = row
        return cls(
            deadline=int(deadline),
            min_round=int(min_round),
            fulfilled=bool(fulfilled),
            requester=str(requester),
            callback=str(callback),
            salt=_bytes32_hex(salt),
            randomness=_bytes32_hex(randomness),
        )


def _bytes32_hex(v: Any) -> str:
    if isinstance(v, (bytes, bytearray, memoryview)):
        return "0x" + bytes(v).hex()
    s = str(v)
    return s if s.startswith("0x") else "0x" + s


@dataclass(frozen=True)
class DecodedEvent:
    name: str
    args: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TxReceipt:
    tx_hash: str
    status: int = 1
    block_number: Optional[int] = None
    events: Tuple[DecodedEvent, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.status == 1

    def summary(self) -> Dict[str, Any]:
        return {
            "tx_hash": self.tx_hash,
            "status": self.status,
            "block_number": self.block_number,
            "events": [ev.name for ev in self.events],
        }


@dataclass(frozen=True)
class FeeOverrides:
    """EIP-1559 caps in wei; None leaves the node's estimate in place."""

    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    def as_tx_fields(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        if self.max_fee_per_gas is not None:
            out["maxFeePerGas"] = int(self.max_fee_per_gas)
        if self.max_priority_fee_per_gas is not None:
            out["maxPriorityFeePerGas"] = int(self.max_priority_fee_per_gas)
        return out


@runtime_checkable
class PendingTx(Protocol):
    """A broadcast transaction awaiting confirmation."""

    @property
    def tx_hash(self) -> str: ...

    def wait(self, timeout_s: Optional[float] = None) -> TxReceipt: ...


@runtime_checkable
class LedgerClient(Protocol):
    """Minimal contract surface the fulfiller needs."""

    @property
    def address(self) -> str: ...

    def get_request(self, request_id: int) -> VrfRequest: ...

    def fulfill_randomness(
        self,
        request_id: int,
        round_number: int,
        signature: Tuple[int, int],
        fee_overrides: Optional[FeeOverrides] = None,
    ) -> PendingTx: ...

    def request_randomness(
        self,
        deadline: int,
        salt: bytes,
        consumer: str,
        fee_overrides: Optional[FeeOverrides] = None,
    ) -> PendingTx: ...

    def last_id(self) -> int: ...


def event_ids(receipt: TxReceipt, name: str, arg: str = "id") -> List[int]:
    """All integer `arg` values carried by events called `name`."""
    out: List[int] = []
    for ev in receipt.events:
        if ev.name != name:
            continue
        val = ev.args.get(arg)
        if isinstance(val, int) and not isinstance(val, bool):
            out.append(val)
    return out

