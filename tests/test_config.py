from decimal import Decimal

import pytest

from hyperevm_vrf.config import (DEFAULT_CHAIN_ID, DEFAULT_RPC_URL,
                                 DEFAULT_VRF_ADDRESS, DrandConfig, VrfConfig,
                                 resolve_config)
from hyperevm_vrf.drand.client import DEFAULT_DRAND_BASE_URL
from hyperevm_vrf.errors import ConfigurationError
from hyperevm_vrf.policy import Policy

PK = "0x" + "4c" * 32
ENV_KEYS = [
    "RPC_URL", "CHAIN_ID", "VRF_ADDRESS", "PRIVATE_KEY", "POLICY_MODE", "POLICY_WINDOW",
    "DRAND_BASE_URL", "DRAND_TIMEOUT_MS", "DRAND_BEACON", "MAX_FEE_GWEI", "MAX_PRIORITY_FEE_GWEI",
]


@pytest.fixture
def clean_env(monkeypatch):
    for k in ENV_KEYS:
        monkeypatch.delenv(f"HYPEREVM_VRF_{k}", raising=False)
    return monkeypatch


def test_defaults():
    cfg = resolve_config()
    assert cfg.rpc_url == DEFAULT_RPC_URL
    assert cfg.chain_id == DEFAULT_CHAIN_ID == 999
    assert cfg.vrf_address == DEFAULT_VRF_ADDRESS
    assert cfg.policy_obj() == Policy(mode="window", window=1)
    assert cfg.drand == DrandConfig(base_url=DEFAULT_DRAND_BASE_URL, fetch_timeout_ms=8000, beacon="evmnet")
    assert cfg.gas.fee_overrides() is None


def test_strict_forces_window_zero():
    cfg = resolve_config(policy={"mode": "strict", "window": 5})
    assert cfg.policy.resolved_window() == 0
    assert cfg.policy_obj().window == 0


def test_window_uses_custom_size():
    cfg = resolve_config(policy={"mode": "window", "window": 3})
    assert cfg.policy_obj() == Policy(mode="window", window=3)


def test_policy_none_is_explicit_opt_out():
    cfg = resolve_config(policy=None)
    assert cfg.policy is None
    assert cfg.policy_obj() is None
    assert cfg.to_dict()["policy"] is None


def test_gas_caps_pass_through_and_convert_to_wei():
    cfg = resolve_config(gas={"max_fee_per_gas_gwei": 2.5, "max_priority_fee_per_gas_gwei": 1})
    assert cfg.gas.max_fee_per_gas_gwei == 2.5
    fees = cfg.gas.fee_overrides()
    assert fees.max_fee_per_gas == int(Decimal("2.5") * 10**9)
    assert fees.as_tx_fields() == {"maxFeePerGas": 2_500_000_000, "maxPriorityFeePerGas": 1_000_000_000}


@pytest.mark.parametrize(
    "kwargs,field",
    [
        ({"vrf_address": "0x1234"}, "vrf_address"),
        ({"rpc_url": "ws://localhost:8545"}, "rpc_url"),
        ({"policy": {"mode": "window", "window": -1}}, "policy.window"),
        ({"policy": {"mode": "yolo"}}, "policy.mode"),
        ({"drand": {"fetch_timeout_ms": 0}}, "drand.fetch_timeout_ms"),
        ({"drand": {"base_url": "drand.sh"}}, "drand.base_url"),
        ({"gas": {"max_fee_per_gas_gwei": -1}}, "gas.max_fee_per_gas_gwei"),
        ({"chain_id": "nope"}, "chain_id"),
    ],
)
def test_invalid_inputs_fail_fast(kwargs, field):
    with pytest.raises(ConfigurationError) as ei:
        resolve_config(**kwargs)
    assert ei.value.field == field


def test_bad_private_key_is_not_echoed():
    bad = "0x" + "ab" * 31
    with pytest.raises(ConfigurationError) as ei:
        resolve_config(private_key=bad)
    assert ei.value.field == "account.private_key"
    assert bad not in str(ei.value)
    assert ei.value.value is None


def test_private_key_is_redacted():
    cfg = resolve_config(private_key=PK)
    assert cfg.to_dict()["account"] == "<set>"
    assert PK not in repr(cfg)


def test_from_env(clean_env):
    clean_env.setenv("HYPEREVM_VRF_CHAIN_ID", "0x3e7")
    clean_env.setenv("HYPEREVM_VRF_POLICY_MODE", "strict")
    clean_env.setenv("HYPEREVM_VRF_DRAND_TIMEOUT_MS", "2500")
    clean_env.setenv("HYPEREVM_VRF_MAX_FEE_GWEI", "1.5")
    cfg = VrfConfig.from_env()
    assert cfg.chain_id == 999
    assert cfg.policy_obj() == Policy.strict()
    assert cfg.drand.fetch_timeout_ms == 2500
    assert cfg.gas.fee_overrides().max_fee_per_gas == 1_500_000_000


def test_from_env_policy_none(clean_env):
    clean_env.setenv("HYPEREVM_VRF_POLICY_MODE", "none")
    assert VrfConfig.from_env().policy is None


def test_from_env_rejects_garbage(clean_env):
    clean_env.setenv("HYPEREVM_VRF_POLICY_WINDOW", "two")
    with pytest.raises(ConfigurationError):
        VrfConfig.from_env()


def test_with_overrides_revalidates():
    base = resolve_config()
    cfg = VrfConfig.with_overrides(base, rpc_url="http://127.0.0.1:8545", policy={"mode": "window", "window": 4})
    assert cfg.rpc_url == "http://127.0.0.1:8545"
    assert cfg.policy_obj().window == 4
    assert base.rpc_url == DEFAULT_RPC_URL
    with pytest.raises(ConfigurationError):
        VrfConfig.with_overrides(base, vrf_address="nope")
