"""
Base58 codec (Bitcoin alphabet), as used for Solana addresses, blockhashes
and transaction signatures.

This module provides a tiny self-contained implementation so the SDK
doesn't depend on external base58 libraries.

Typical usage
-------------
>>> b58encode(bytes(32))
'11111111111111111111111111111111'
>>> b58decode("11111111111111111111111111111111") == bytes(32)
True

Helpers
-------
- b58encode(data) -> str
- b58decode(text, expected_len=None) -> bytes
- is_base58(text, expected_len=None) -> bool

Notes
-----
- Leading zero bytes map one-to-one onto leading '1' characters.
- No checksum variant: Solana uses plain base58.
"""

from __future__ import annotations

from typing import Optional

from .bytes import BytesLike

__all__ = [
    "ALPHABET",
    "Base58Error",
    "b58encode",
    "b58decode",
    "is_base58",
]

ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
ALPHABET_REV = {c: i for i, c in enumerate(ALPHABET)}


class Base58Error(ValueError):
    pass


def b58encode(data: BytesLike) -> str:
    raw = bytes(data)
    n_zeros = len(raw) - len(raw.lstrip(b"\x00"))
    num = int.from_bytes(raw, "big")
    out = []
    while num > 0:
        num, rem = divmod(num, 58)
        out.append(ALPHABET[rem])
    return "1" * n_zeros + "".join(reversed(out))


def b58decode(text: str, *, expected_len: Optional[int] = None) -> bytes:
    """
    Decode a base58 string to bytes.

    Raises Base58Error on characters outside the alphabet or, when
    `expected_len` is given, on a length mismatch.
    """
    if not isinstance(text, str):
        raise TypeError("b58decode expects a string")
    num = 0
    for ch in text:
        try:
            num = num * 58 + ALPHABET_REV[ch]
        except KeyError:
            raise Base58Error(f"invalid base58 character {ch!r}") from None
    n_zeros = len(text) - len(text.lstrip("1"))
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    out = b"\x00" * n_zeros + body
    if expected_len is not None and len(out) != expected_len:
        raise Base58Error(f"decoded length {len(out)} != expected {expected_len}")
    return out


def is_base58(text: str, *, expected_len: Optional[int] = None) -> bool:
    try:
        b58decode(text, expected_len=expected_len)
    except (Base58Error, TypeError):
        return False
    return True
