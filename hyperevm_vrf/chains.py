"""
Minimal chain registry. Extend as needed.

Each entry supplies the defaults a config falls back to for that chain id:
RPC endpoint, drand beacon id and (optionally) a deployed VRF contract.
Users should pass their own `vrf_address` in production.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

__all__ = ["ChainConfig", "CHAINS", "resolve_chain"]


@dataclass(frozen=True)
class ChainConfig:
    name: str
    chain_id: int
    rpc_url: str
    drand_beacon: str
    vrf_address: Optional[str] = None


CHAINS: Dict[int, ChainConfig] = {
    999: ChainConfig(
        name="HyperEVM",
        chain_id=999,
        rpc_url="https://rpc.hyperliquid.xyz/evm",
        drand_beacon="evmnet",
        vrf_address="0xCcf1703933D957c10CCD9062689AC376Df33e8E1",
    ),
}


def resolve_chain(chain_id: Optional[int]) -> Optional[ChainConfig]:
    if not chain_id:
        return None
    return CHAINS.get(int(chain_id))
