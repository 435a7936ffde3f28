"""
hyperevm_vrf.drand
==================

drand v2 beacon access for VRF fulfillment: beacon parameters, per-round
BN254 signatures, and signature decoding.

    from hyperevm_vrf.drand import DrandClient

    drand = DrandClient()
    info = drand.get_info()                 # BeaconInfo(genesis_time, period)
    x, y = drand.get_round_signature(42)    # uint256[2] for the contract
"""

from __future__ import annotations

from .client import (DEFAULT_BEACON, DEFAULT_DRAND_BASE_URL,
                     DEFAULT_FETCH_TIMEOUT_MS, BeaconInfo, BeaconRound,
                     DrandClient)
from .signature import (SIGNATURE_HEX_LENGTH, SignaturePair, decode_signature,
                        encode_signature)

__all__ = [
    "DEFAULT_BEACON",
    "DEFAULT_DRAND_BASE_URL",
    "DEFAULT_FETCH_TIMEOUT_MS",
    "BeaconInfo",
    "BeaconRound",
    "DrandClient",
    "SIGNATURE_HEX_LENGTH",
    "SignaturePair",
    "decode_signature",
    "encode_signature",
]
