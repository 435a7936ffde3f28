"""
BN254 signature decoding.

drand `evmnet` publishes G1 signatures as 64 bytes of hex: the big-endian x
and y coordinates, 32 bytes each. The contract takes them as `uint256[2]`.
No curve checks happen here; the contract verifies the signature.
"""

from __future__ import annotations

import re
from typing import Tuple

from ..errors import SignatureFormatError
from ..hexutil import strip_0x

__all__ = ["SIGNATURE_HEX_LENGTH", "SignaturePair", "decode_signature", "encode_signature"]

SIGNATURE_HEX_LENGTH = 128

SignaturePair = Tuple[int, int]

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def decode_signature(signature_hex: str) -> SignaturePair:
    """Split a 128-hex-char payload (optional 0x) into two 256-bit ints."""
    raw = strip_0x(str(signature_hex).strip())
    if len(raw) != SIGNATURE_HEX_LENGTH or not _HEX_RE.match(raw):
        raise SignatureFormatError(
            signature=str(signature_hex),
            expected_length=SIGNATURE_HEX_LENGTH,
            actual_length=len(raw),
        )
    half = SIGNATURE_HEX_LENGTH // 2
    return int(raw[:half], 16), int(raw[half:], 16)


def encode_signature(pair: SignaturePair) -> str:
    """Inverse of decode_signature, 0x-prefixed."""
    x, y = pair
    return "0x" + int(x).to_bytes(32, "big").hex() + int(y).to_bytes(32, "big").hex()
