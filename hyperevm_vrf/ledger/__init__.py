"""
hyperevm_vrf.ledger
===================

Ledger (contract) access for the fulfiller. `base` defines the capability
protocols and value types; `web3_client` implements them over web3.py.
The web3 implementation is imported lazily so the orchestrator and its
tests do not pull in web3 unless it is used.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import (ZERO_BYTES32, DecodedEvent, FeeOverrides, LedgerClient,
                   PendingTx, TxReceipt, VrfRequest, event_ids)

__all__ = [
    "ZERO_BYTES32",
    "DecodedEvent",
    "FeeOverrides",
    "LedgerClient",
    "PendingTx",
    "TxReceipt",
    "VrfRequest",
    "event_ids",
    "Web3LedgerClient",
]

if TYPE_CHECKING:  # pragma: no cover
    from .web3_client import Web3LedgerClient


def __getattr__(name: str) -> Any:
    if name == "Web3LedgerClient":
        from .web3_client import Web3LedgerClient

        return Web3LedgerClient
    raise AttributeError(name)
