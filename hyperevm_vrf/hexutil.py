"""Small hex/address helpers shared by config, wallet and the fulfiller."""

from __future__ import annotations

import re
from typing import Optional, Union

__all__ = ["strip_0x", "is_address", "is_private_key", "to_bytes32"]

_PK_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_ADDR_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def strip_0x(s: str) -> str:
    return s[2:] if s[:2] in ("0x", "0X") else s


def is_private_key(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(_PK_RE.match(value.strip()))


def is_address(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(_ADDR_RE.match(value.strip()))


def to_bytes32(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """Accept 32 raw bytes or a 64-hex-char string (optional 0x)."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        out = bytes(value)
    else:
        raw = strip_0x(str(value).strip())
        if not _HEX_RE.match(raw) or len(raw) % 2:
            raise ValueError("not a hex string")
        out = bytes.fromhex(raw)
    if len(out) != 32:
        raise ValueError(f"expected 32 bytes, got {len(out)}")
    return out
