"""
Shared fakes for the fulfiller tests.

FakeLedger / FakeBeacon stand in for the contract and the drand service and
record every call, so tests can assert on what was (or was not) touched.
FakeClock drives wall time, monotonic time and sleeps together.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest

from hyperevm_vrf.drand.client import BeaconInfo
from hyperevm_vrf.fulfiller import VrfFulfiller
from hyperevm_vrf.ledger.base import DecodedEvent, TxReceipt, VrfRequest

ALICE = "0x" + "11" * 20
CONSUMER = "0x" + "22" * 20
VRF_ADDRESS = "0x" + "cc" * 20
SIG = (0x1234, 0x5678)


class FakePendingTx:
    def __init__(self, tx_hash: str, receipt: TxReceipt, error: Optional[Exception] = None) -> None:
        self._tx_hash = tx_hash
        self.receipt = receipt
        self.error = error
        self.waits: List[Optional[float]] = []

    @property
    def tx_hash(self) -> str:
        return self._tx_hash

    def wait(self, timeout_s: Optional[float] = None) -> TxReceipt:
        self.waits.append(timeout_s)
        if self.error is not None:
            raise self.error
        return self.receipt


class FakeLedger:
    address = VRF_ADDRESS

    def __init__(self, requests: Optional[Dict[int, VrfRequest]] = None) -> None:
        self.requests: Dict[int, VrfRequest] = dict(requests or {})
        self.calls: List[Tuple[str, Any]] = []
        self.fulfilled: List[Tuple[int, int, Tuple[int, int], Any]] = []
        self.created: List[Tuple[int, bytes, str]] = []
        self.status = 1
        self.submit_error: Optional[Exception] = None
        self.wait_error: Optional[Exception] = None
        self.emit_request_event = True
        self.next_id = 7
        self.last_id_value: Any = None
        self._n = 0

    def _tx_hash(self) -> str:
        self._n += 1
        return "0x" + f"{self._n:064x}"

    def get_request(self, request_id: int) -> VrfRequest:
        self.calls.append(("get_request", request_id))
        return self.requests[request_id]

    def fulfill_randomness(self, request_id, round_number, signature, fee_overrides=None):
        self.calls.append(("fulfill_randomness", request_id))
        if self.submit_error is not None:
            raise self.submit_error
        self.fulfilled.append((request_id, round_number, signature, fee_overrides))
        h = self._tx_hash()
        receipt = TxReceipt(
            tx_hash=h,
            status=self.status,
            block_number=100 + self._n,
            events=(DecodedEvent("RandomnessFulfilled", {"id": request_id}),),
        )
        return FakePendingTx(h, receipt, self.wait_error)

    def request_randomness(self, deadline, salt, consumer, fee_overrides=None):
        self.calls.append(("request_randomness", deadline))
        if self.submit_error is not None:
            raise self.submit_error
        rid = self.next_id
        self.created.append((deadline, salt, consumer))
        self.requests[rid] = VrfRequest(
            deadline=deadline, min_round=0, fulfilled=False, requester=ALICE, callback=consumer
        )
        events = (DecodedEvent("RandomnessRequested", {"id": rid}),) if self.emit_request_event else ()
        h = self._tx_hash()
        receipt = TxReceipt(tx_hash=h, status=self.status, block_number=100 + self._n, events=events)
        return FakePendingTx(h, receipt, self.wait_error)

    def last_id(self) -> int:
        self.calls.append(("last_id", None))
        if isinstance(self.last_id_value, Exception):
            raise self.last_id_value
        return self.next_id if self.last_id_value is None else self.last_id_value


class FakeBeacon:
    base_url = "https://drand.test/v2"

    def __init__(self, genesis_time: int = 1000, period: int = 30, signature=SIG) -> None:
        self.info = BeaconInfo(genesis_time=genesis_time, period=period)
        self.signature = signature
        self.calls: List[Tuple[str, Any]] = []
        self.error: Optional[Exception] = None
        self.closed = False

    def get_info(self) -> BeaconInfo:
        self.calls.append(("get_info", None))
        if self.error is not None:
            raise self.error
        return self.info

    def get_round_signature(self, round_number: int):
        self.calls.append(("get_round_signature", round_number))
        if self.error is not None:
            raise self.error
        return self.signature

    def __enter__(self) -> "FakeBeacon":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, now: float = 1040.0) -> None:
        self.now = float(now)
        self.mono = 0.0
        self.sleeps: List[float] = []

    def time(self) -> float:
        return self.now

    def monotonic(self) -> float:
        return self.mono

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        self.mono += seconds


def make_request(deadline: int = 1045, min_round: int = 0, fulfilled: bool = False) -> VrfRequest:
    return VrfRequest(
        deadline=deadline,
        min_round=min_round,
        fulfilled=fulfilled,
        requester=ALICE,
        callback=CONSUMER,
    )


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger({5: make_request()})


@pytest.fixture
def beacon() -> FakeBeacon:
    return FakeBeacon()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_fulfiller(ledger, beacon, clock):
    def _make(**kwargs: Any) -> VrfFulfiller:
        return VrfFulfiller(
            ledger,
            beacon,
            clock=clock.time,
            sleep=clock.sleep,
            monotonic=clock.monotonic,
            **kwargs,
        )

    return _make


@pytest.fixture
def request_factory():
    return make_request


@pytest.fixture
def addresses() -> Dict[str, str]:
    return {"alice": ALICE, "consumer": CONSUMER, "vrf": VRF_ADDRESS}
