import logging
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from web3 import Web3

from hyperevm_vrf.errors import (ConfigurationError, ContractError,
                                 TransactionError)
from hyperevm_vrf.ledger.abi import VRF_ABI
from hyperevm_vrf.ledger.base import FeeOverrides, event_ids
from hyperevm_vrf.ledger.web3_client import Web3LedgerClient

VRF = "0x" + "cc" * 20
ALICE = "0x" + "11" * 20
CONSUMER = "0x" + "22" * 20
TX_HASH = bytes.fromhex("ab" * 32)


class FakeFn:
    def __init__(self, name: str, args: tuple, result: Any = None, error: Exception = None) -> None:
        self.name = name
        self.args = args
        self.result = result
        self.error = error
        self.built: Dict[str, Any] = {}

    def call(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.result

    def build_transaction(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self.built = dict(params)
        return {**params, "to": VRF, "data": "0x" + self.name.encode().hex()}


class FakeFunctions:
    def __init__(self) -> None:
        self.rows: Dict[int, tuple] = {}
        self.last_id = 3
        self.error: Exception = None
        self.invoked: List[FakeFn] = []

    def _fn(self, name: str, *args: Any, result: Any = None) -> FakeFn:
        fn = FakeFn(name, args, result, self.error)
        self.invoked.append(fn)
        return fn

    def getRequest(self, rid):  # noqa: N802
        return self._fn("getRequest", rid, result=self.rows.get(rid))

    def lastId(self):  # noqa: N802
        return self._fn("lastId", result=self.last_id)

    def fulfillRandomness(self, rid, rnd, sig):  # noqa: N802
        return self._fn("fulfillRandomness", rid, rnd, sig)

    def requestRandomness(self, deadline, salt, consumer):  # noqa: N802
        return self._fn("requestRandomness", deadline, salt, consumer)


class FakeEvent:
    def __init__(self, logs: List[Dict[str, Any]]) -> None:
        self.logs = logs

    def __call__(self) -> "FakeEvent":
        return self

    def process_receipt(self, raw: Any, errors: Any = None) -> List[Dict[str, Any]]:
        return self.logs


class FakeEth:
    def __init__(self) -> None:
        self.chain_id = 999
        self.functions = FakeFunctions()
        self.events = SimpleNamespace(RandomnessRequested=FakeEvent([]), RandomnessFulfilled=FakeEvent([]))
        self.sent: List[bytes] = []
        self.receipt: Dict[str, Any] = {"transactionHash": TX_HASH, "status": 1, "blockNumber": 12}
        self.wait_error: Exception = None
        self.send_error: Exception = None
        self.contract_kwargs: Dict[str, Any] = {}

    def contract(self, **kwargs: Any) -> Any:
        self.contract_kwargs = kwargs
        return SimpleNamespace(functions=self.functions, events=self.events)

    def get_transaction_count(self, address: str, block: str) -> int:
        return 4

    def send_raw_transaction(self, raw: bytes) -> bytes:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(raw)
        return TX_HASH

    def wait_for_transaction_receipt(self, tx_hash: str, timeout: float) -> Dict[str, Any]:
        if self.wait_error is not None:
            raise self.wait_error
        return self.receipt


class FakeAccount:
    address = ALICE

    def __init__(self) -> None:
        self.signed: List[Dict[str, Any]] = []

    def sign_transaction(self, tx: Dict[str, Any]) -> Any:
        self.signed.append(tx)
        return SimpleNamespace(raw_transaction=b"\x02signed")


@pytest.fixture
def eth() -> FakeEth:
    return FakeEth()


@pytest.fixture
def client(eth) -> Web3LedgerClient:
    return Web3LedgerClient(SimpleNamespace(eth=eth), VRF, FakeAccount())


def test_contract_is_bound_with_checksum_address(client, eth):
    assert eth.contract_kwargs["address"] == Web3.to_checksum_address(VRF)
    assert eth.contract_kwargs["abi"] is VRF_ABI
    assert client.address == Web3.to_checksum_address(VRF)


def test_invalid_contract_address():
    with pytest.raises(ConfigurationError) as ei:
        Web3LedgerClient(SimpleNamespace(eth=FakeEth()), "0x1234")
    assert ei.value.field == "vrf_address"


def test_get_request_decodes_tuple(client, eth):
    eth.functions.rows[5] = (1045, 2, False, ALICE, CONSUMER, b"\x00" * 32, b"\x11" * 32)
    req = client.get_request(5)
    assert (req.deadline, req.min_round, req.fulfilled) == (1045, 2, False)
    assert req.requester == ALICE
    assert req.randomness == "0x" + "11" * 32


def test_get_request_zero_requester_is_not_found(client, eth):
    zero = "0x" + "00" * 20
    eth.functions.rows[6] = (0, 0, False, zero, zero, b"\x00" * 32, b"\x00" * 32)
    with pytest.raises(ContractError) as ei:
        client.get_request(6)
    assert "not found" in ei.value.message


def test_get_request_call_failure_is_wrapped(client, eth):
    eth.functions.error = RuntimeError("execution reverted")
    with pytest.raises(ContractError) as ei:
        client.get_request(5)
    assert ei.value.operation == "getRequest"
    assert ei.value.cause == "execution reverted"


def test_last_id(client, eth):
    eth.functions.last_id = 42
    assert client.last_id() == 42


def test_fulfill_builds_signs_and_sends(client, eth):
    pending = client.fulfill_randomness(5, 2, (11, 22), FeeOverrides(max_fee_per_gas=7))
    assert pending.tx_hash == "0x" + "ab" * 32
    fn = eth.functions.invoked[-1]
    assert fn.args == (5, 2, [11, 22])
    assert fn.built == {"from": ALICE, "nonce": 4, "chainId": 999, "maxFeePerGas": 7}
    assert eth.sent == [b"\x02signed"]


def test_writes_need_an_account(eth):
    ro = Web3LedgerClient(SimpleNamespace(eth=eth), VRF)
    with pytest.raises(ConfigurationError) as ei:
        ro.fulfill_randomness(5, 2, (1, 2))
    assert ei.value.field == "account"
    assert eth.sent == []


def test_send_failure_is_transaction_error(client, eth):
    eth.send_error = ValueError("insufficient funds")
    with pytest.raises(TransactionError) as ei:
        client.fulfill_randomness(5, 2, (1, 2))
    assert ei.value.operation == "fulfillRandomness"
    assert ei.value.tx_hash is None


def test_request_validates_inputs(client):
    with pytest.raises(ConfigurationError):
        client.request_randomness(1045, b"\x00" * 31, CONSUMER)
    with pytest.raises(ConfigurationError):
        client.request_randomness(1045, b"\x00" * 32, "0xnope")


def test_wait_decodes_request_event(client, eth):
    eth.events.RandomnessRequested.logs = [{"args": {"id": 7, "salt": b"\x01" * 32}}]
    pending = client.request_randomness(1045, b"\x01" * 32, CONSUMER)
    receipt = pending.wait()
    assert receipt.succeeded
    assert receipt.block_number == 12
    assert receipt.tx_hash == "0x" + "ab" * 32
    assert event_ids(receipt, "RandomnessRequested") == [7]
    assert receipt.events[0].args["salt"] == "0x" + "01" * 32


def test_wait_failure_keeps_tx_hash(client, eth):
    eth.wait_error = TimeoutError("not mined")
    pending = client.fulfill_randomness(5, 2, (1, 2))
    with pytest.raises(TransactionError) as ei:
        pending.wait(timeout_s=1)
    assert ei.value.tx_hash == pending.tx_hash


def test_submission_leaves_logging_to_the_caller(client, caplog):
    caplog.set_level(logging.DEBUG, logger="hyperevm_vrf")
    client.fulfill_randomness(5, 2, (1, 2))
    assert [r for r in caplog.records if r.name.startswith("hyperevm_vrf")] == []
