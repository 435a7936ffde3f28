import pytest

from hyperevm_vrf.errors import (ConfigurationError, ContractError,
                                 TransactionError)


def test_request_uses_event_id_and_random_salt(make_fulfiller, ledger, addresses):
    res = make_fulfiller().request_randomness(1045, consumer=addresses["consumer"])
    assert res.request_id == 7
    assert res.deadline == 1045
    deadline, salt, consumer = ledger.created[0]
    assert (deadline, consumer) == (1045, addresses["consumer"])
    assert isinstance(salt, bytes) and len(salt) == 32
    assert res.salt == "0x" + salt.hex()
    assert ("last_id", None) not in ledger.calls


def test_generated_salts_differ(make_fulfiller, ledger, addresses):
    f = make_fulfiller()
    f.request_randomness(1045, consumer=addresses["consumer"])
    f.request_randomness(1045, consumer=addresses["consumer"])
    assert ledger.created[0][1] != ledger.created[1][1]


def test_explicit_hex_salt(make_fulfiller, ledger, addresses):
    salt = "0x" + "ab" * 32
    res = make_fulfiller().request_randomness(1045, consumer=addresses["consumer"], salt=salt)
    assert ledger.created[0][1] == bytes.fromhex("ab" * 32)
    assert res.salt == salt


@pytest.mark.parametrize("salt", [b"\x01" * 16, "0x1234", "zz" * 32])
def test_bad_salt_is_rejected_before_submission(make_fulfiller, ledger, addresses, salt):
    with pytest.raises(ConfigurationError) as ei:
        make_fulfiller().request_randomness(1045, consumer=addresses["consumer"], salt=salt)
    assert ei.value.field == "salt"
    assert ledger.created == []


def test_bad_consumer_is_rejected(make_fulfiller, ledger):
    with pytest.raises(ConfigurationError) as ei:
        make_fulfiller().request_randomness(1045, consumer="0xnope")
    assert ei.value.field == "consumer"
    assert ledger.calls == []


def test_falls_back_to_last_id(make_fulfiller, ledger, addresses):
    ledger.emit_request_event = False
    ledger.last_id_value = 9
    res = make_fulfiller().request_randomness(1045, consumer=addresses["consumer"])
    assert res.request_id == 9
    assert ("last_id", None) in ledger.calls


def test_unusable_last_id_is_an_error(make_fulfiller, ledger, addresses):
    ledger.emit_request_event = False
    ledger.last_id_value = 0
    with pytest.raises(ContractError) as ei:
        make_fulfiller().request_randomness(1045, consumer=addresses["consumer"])
    assert ei.value.operation == "requestRandomness"
    assert ei.value.context["last_id"] == 0


def test_failing_last_id_is_an_error(make_fulfiller, ledger, addresses):
    ledger.emit_request_event = False
    ledger.last_id_value = RuntimeError("execution reverted")
    with pytest.raises(ContractError) as ei:
        make_fulfiller().request_randomness(1045, consumer=addresses["consumer"])
    assert ei.value.operation == "requestRandomness"
    assert ei.value.cause == "execution reverted"
    assert "tx_hash" in ei.value.context


def test_reverted_request(make_fulfiller, ledger, addresses):
    ledger.status = 0
    with pytest.raises(TransactionError) as ei:
        make_fulfiller().request_randomness(1045, consumer=addresses["consumer"])
    assert ei.value.operation == "requestRandomness"


def test_request_and_fulfill(make_fulfiller, ledger, clock, addresses):
    clock.now = 1020
    res = make_fulfiller().request_and_fulfill(1045, consumer=addresses["consumer"])
    assert res.request_id == 7
    assert res.round == 2
    assert clock.sleeps == [10.0]
    assert [f[0] for f in ledger.fulfilled] == [7]
