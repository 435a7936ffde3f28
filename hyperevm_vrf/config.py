"""
SDK configuration: chain endpoint, VRF contract, anti-grinding policy, drand
and gas settings.

- Sane defaults for HyperEVM mainnet (chain 999) and drand `evmnet`.
- Overrides via keyword arguments (`resolve_config`) or environment
  variables (`VrfConfig.from_env`, prefix HYPEREVM_VRF_).
- Validation raises ConfigurationError before any network call is made.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Union

from .chains import resolve_chain
from .drand.client import (DEFAULT_BEACON, DEFAULT_DRAND_BASE_URL,
                           DEFAULT_FETCH_TIMEOUT_MS)
from .errors import ConfigurationError
from .ledger.base import FeeOverrides
from .policy import Policy
from .hexutil import is_address, is_private_key

__all__ = [
    "DEFAULT_RPC_URL",
    "DEFAULT_CHAIN_ID",
    "DEFAULT_VRF_ADDRESS",
    "DEFAULT_POLICY_MODE",
    "DEFAULT_POLICY_WINDOW",
    "PolicyConfig",
    "DrandConfig",
    "GasConfig",
    "VrfConfig",
    "resolve_config",
]

DEFAULT_RPC_URL = "https://rpc.hyperliquid.xyz/evm"
DEFAULT_CHAIN_ID = 999
DEFAULT_VRF_ADDRESS = "0xCcf1703933D957c10CCD9062689AC376Df33e8E1"
DEFAULT_POLICY_MODE = "window"
DEFAULT_POLICY_WINDOW = 1

_HEX_RE = re.compile(r"^0x[0-9a-fA-F]+$")
_NO_POLICY = ("none", "off", "disabled")
_GWEI = Decimal(10) ** 9


class _Unset:
    def __repr__(self) -> str:  # pragma: no cover - trivial
        return "<unset>"


_UNSET: Any = _Unset()


def _parse_chain_id(val: Any, default: int = DEFAULT_CHAIN_ID) -> int:
    """Accepts int, decimal str, or 0x-hex str and returns int."""
    if val is None or val == "":
        return int(default)
    if isinstance(val, int):
        return val
    s = str(val).strip()
    try:
        if _HEX_RE.match(s):
            return int(s, 16)
        return int(s, 10)
    except ValueError as e:
        raise ConfigurationError("chain id must be an integer", field="chain_id", value=val) from e


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v not in (None, "") else default


def _ensure_http(url: str, field_name: str) -> str:
    lower = (url or "").lower()
    if not (lower.startswith("http://") or lower.startswith("https://")):
        raise ConfigurationError("URL must start with http:// or https://", field=field_name, value=url)
    return url


def _gwei_to_wei(gwei: Optional[float], field_name: str) -> Optional[int]:
    if gwei is None:
        return None
    try:
        amount = Decimal(str(gwei))
    except InvalidOperation as e:
        raise ConfigurationError("gas cap must be a number", field=field_name, value=gwei) from e
    if amount < 0:
        raise ConfigurationError("gas cap must be >= 0", field=field_name, value=gwei)
    return int(amount * _GWEI)


# -----------------------------------------------------------------------------
# Sub-configs
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class PolicyConfig:
    """
    Anti-grinding policy. `strict` forces window 0; `window` without an
    explicit size uses DEFAULT_POLICY_WINDOW.
    """

    mode: str = DEFAULT_POLICY_MODE
    window: Optional[int] = None

    def resolved_window(self) -> Any:
        if self.mode == "strict":
            return 0
        return DEFAULT_POLICY_WINDOW if self.window is None else self.window

    def to_policy(self) -> Policy:
        return Policy(mode=self.mode, window=self.resolved_window())  # type: ignore[arg-type]

    @classmethod
    def coerce(cls, value: Union["PolicyConfig", Policy, Mapping[str, Any]]) -> "PolicyConfig":
        if isinstance(value, PolicyConfig):
            return value
        if isinstance(value, Policy):
            return cls(mode=value.mode, window=value.window)
        if isinstance(value, Mapping):
            return cls(mode=str(value.get("mode", DEFAULT_POLICY_MODE)), window=value.get("window"))
        raise ConfigurationError("policy must be a mapping, Policy or None", field="policy", value=value)


@dataclass(slots=True)
class DrandConfig:
    base_url: str = DEFAULT_DRAND_BASE_URL
    fetch_timeout_ms: int = DEFAULT_FETCH_TIMEOUT_MS
    beacon: str = DEFAULT_BEACON

    def validate(self) -> None:
        _ensure_http(self.base_url, "drand.base_url")
        timeout = self.fetch_timeout_ms
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
            raise ConfigurationError(
                "fetch timeout must be > 0 ms", field="drand.fetch_timeout_ms", value=self.fetch_timeout_ms
            )
        if not self.beacon:
            raise ConfigurationError("beacon id must not be empty", field="drand.beacon")


@dataclass(slots=True)
class GasConfig:
    """Optional EIP-1559 caps, in gwei."""

    max_fee_per_gas_gwei: Optional[float] = None
    max_priority_fee_per_gas_gwei: Optional[float] = None

    def fee_overrides(self) -> Optional[FeeOverrides]:
        max_fee = _gwei_to_wei(self.max_fee_per_gas_gwei, "gas.max_fee_per_gas_gwei")
        prio = _gwei_to_wei(self.max_priority_fee_per_gas_gwei, "gas.max_priority_fee_per_gas_gwei")
        if max_fee is None and prio is None:
            return None
        return FeeOverrides(max_fee_per_gas=max_fee, max_priority_fee_per_gas=prio)


# -----------------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------------


@dataclass(slots=True)
class VrfConfig:
    rpc_url: str = DEFAULT_RPC_URL
    chain_id: int = DEFAULT_CHAIN_ID
    vrf_address: str = DEFAULT_VRF_ADDRESS
    private_key: Optional[str] = field(default=None, repr=False)
    # None disables the policy entirely
    policy: Optional[PolicyConfig] = field(default_factory=PolicyConfig)
    drand: DrandConfig = field(default_factory=DrandConfig)
    gas: GasConfig = field(default_factory=GasConfig)

    def validate(self) -> "VrfConfig":
        _ensure_http(self.rpc_url, "rpc_url")
        if isinstance(self.chain_id, bool) or not isinstance(self.chain_id, int) or self.chain_id <= 0:
            raise ConfigurationError("chain id must be a positive integer", field="chain_id", value=self.chain_id)
        if not is_address(self.vrf_address):
            raise ConfigurationError(
                "VRF address must be 0x followed by 40 hex characters",
                field="vrf_address",
                value=self.vrf_address,
            )
        if self.private_key is not None and not is_private_key(self.private_key):
            raise ConfigurationError(
                "private key must be 0x followed by 64 hex characters", field="account.private_key"
            )
        if self.policy is not None:
            self.policy.to_policy()  # raises ConfigurationError on bad mode/window
        self.drand.validate()
        self.gas.fee_overrides()
        return self

    def policy_obj(self) -> Optional[Policy]:
        return None if self.policy is None else self.policy.to_policy()

    @classmethod
    def from_env(cls, prefix: str = "HYPEREVM_VRF_") -> "VrfConfig":
        """
        Create config from environment variables:

        HYPEREVM_VRF_RPC_URL                 (http/https)
        HYPEREVM_VRF_CHAIN_ID                (int or 0x-hex)
        HYPEREVM_VRF_VRF_ADDRESS             (0x…40 hex)
        HYPEREVM_VRF_PRIVATE_KEY             (0x…64 hex) optional
        HYPEREVM_VRF_POLICY_MODE             (strict|window|none)
        HYPEREVM_VRF_POLICY_WINDOW           (int >= 0)
        HYPEREVM_VRF_DRAND_BASE_URL          (http/https)
        HYPEREVM_VRF_DRAND_TIMEOUT_MS        (int)
        HYPEREVM_VRF_DRAND_BEACON            (str)
        HYPEREVM_VRF_MAX_FEE_GWEI            (float)
        HYPEREVM_VRF_MAX_PRIORITY_FEE_GWEI   (float)
        """
        mode = _env(f"{prefix}POLICY_MODE")
        window = _env(f"{prefix}POLICY_WINDOW")
        policy: Any = _UNSET
        if mode is not None and mode.lower() in _NO_POLICY:
            policy = None
        elif mode is not None or window is not None:
            policy = {"mode": mode or DEFAULT_POLICY_MODE, "window": _int_env(window, "policy.window")}

        max_fee = _env(f"{prefix}MAX_FEE_GWEI")
        prio = _env(f"{prefix}MAX_PRIORITY_FEE_GWEI")
        timeout = _env(f"{prefix}DRAND_TIMEOUT_MS")
        return resolve_config(
            rpc_url=_env(f"{prefix}RPC_URL"),
            chain_id=_env(f"{prefix}CHAIN_ID"),
            vrf_address=_env(f"{prefix}VRF_ADDRESS"),
            private_key=_env(f"{prefix}PRIVATE_KEY"),
            policy=policy,
            drand={
                "base_url": _env(f"{prefix}DRAND_BASE_URL"),
                "fetch_timeout_ms": _int_env(timeout, "drand.fetch_timeout_ms"),
                "beacon": _env(f"{prefix}DRAND_BEACON"),
            },
            gas={
                "max_fee_per_gas_gwei": _float_env(max_fee, "gas.max_fee_per_gas_gwei"),
                "max_priority_fee_per_gas_gwei": _float_env(prio, "gas.max_priority_fee_per_gas_gwei"),
            },
        )

    @classmethod
    def with_overrides(cls, base: Optional["VrfConfig"] = None, **overrides: Any) -> "VrfConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys are ignored.
        """
        base = base or cls()
        data: Dict[str, Any] = {
            "rpc_url": base.rpc_url,
            "chain_id": base.chain_id,
            "vrf_address": base.vrf_address,
            "private_key": base.private_key,
            "policy": base.policy,
            "drand": base.drand,
            "gas": base.gas,
        }
        data.update({k: v for k, v in overrides.items() if k in data})
        if "chain_id" in overrides:
            data["chain_id"] = _parse_chain_id(overrides["chain_id"], base.chain_id)
        if data["policy"] is not None:
            data["policy"] = PolicyConfig.coerce(data["policy"])
        return cls(**data).validate()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "chain_id": int(self.chain_id),
            "vrf_address": self.vrf_address,
            "account": "<set>" if self.private_key else None,
            "policy": None
            if self.policy is None
            else {"mode": self.policy.mode, "window": self.policy.resolved_window()},
            "drand": {
                "base_url": self.drand.base_url,
                "fetch_timeout_ms": int(self.drand.fetch_timeout_ms),
                "beacon": self.drand.beacon,
            },
            "gas": {
                "max_fee_per_gas_gwei": self.gas.max_fee_per_gas_gwei,
                "max_priority_fee_per_gas_gwei": self.gas.max_priority_fee_per_gas_gwei,
            },
        }


def _int_env(val: Optional[str], field_name: str) -> Optional[int]:
    if val is None:
        return None
    try:
        return int(val)
    except ValueError as e:
        raise ConfigurationError("expected an integer", field=field_name, value=val) from e


def _float_env(val: Optional[str], field_name: str) -> Optional[float]:
    if val is None:
        return None
    try:
        return float(val)
    except ValueError as e:
        raise ConfigurationError("expected a number", field=field_name, value=val) from e


def resolve_config(
    *,
    rpc_url: Optional[str] = None,
    chain_id: Any = None,
    vrf_address: Optional[str] = None,
    private_key: Optional[str] = None,
    policy: Any = _UNSET,
    drand: Optional[Union[DrandConfig, Mapping[str, Any]]] = None,
    gas: Optional[Union[GasConfig, Mapping[str, Any]]] = None,
) -> VrfConfig:
    """
    Apply defaults to a partial configuration and validate it.

    Chain-registry entries fill in the RPC URL, VRF address and drand beacon
    for a known `chain_id`. Pass `policy=None` to disable the anti-grinding
    check; omit it for the default window policy.
    """
    cid = _parse_chain_id(chain_id)
    chain = resolve_chain(cid)

    if policy is _UNSET:
        policy_cfg: Optional[PolicyConfig] = PolicyConfig()
    elif policy is None:
        policy_cfg = None
    else:
        policy_cfg = PolicyConfig.coerce(policy)

    if isinstance(drand, DrandConfig):
        drand_cfg = drand
    else:
        d = {k: v for k, v in dict(drand or {}).items() if v is not None}
        drand_cfg = DrandConfig(
            base_url=d.get("base_url", DEFAULT_DRAND_BASE_URL),
            fetch_timeout_ms=d.get("fetch_timeout_ms", DEFAULT_FETCH_TIMEOUT_MS),
            beacon=d.get("beacon", chain.drand_beacon if chain else DEFAULT_BEACON),
        )

    if isinstance(gas, GasConfig):
        gas_cfg = gas
    else:
        g = dict(gas or {})
        gas_cfg = GasConfig(
            max_fee_per_gas_gwei=g.get("max_fee_per_gas_gwei"),
            max_priority_fee_per_gas_gwei=g.get("max_priority_fee_per_gas_gwei"),
        )

    cfg = VrfConfig(
        rpc_url=rpc_url or (chain.rpc_url if chain else DEFAULT_RPC_URL),
        chain_id=cid,
        vrf_address=vrf_address or (chain.vrf_address if chain and chain.vrf_address else DEFAULT_VRF_ADDRESS),
        private_key=private_key,
        policy=policy_cfg,
        drand=drand_cfg,
        gas=gas_cfg,
    )
    return cfg.validate()
