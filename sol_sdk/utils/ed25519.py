"""
Edwards25519 point checks.

Program-derived addresses must NOT be valid curve points, otherwise someone
could hold a private key for them. `cryptography` does not expose point
decompression, so the check is done here with plain modular arithmetic.

A 32-byte string is "on the curve" when it decompresses to a point of
-x^2 + y^2 = 1 + d*x^2*y^2 over GF(2^255 - 19). Like the validator, we accept
non-canonical y encodings (y >= p is reduced mod p) and ignore the sign bit
when the recovered x is zero.
"""

from __future__ import annotations

from .bytes import BytesLike

__all__ = ["P", "D", "is_on_curve"]

P = 2**255 - 19
D = (-121665 * pow(121666, P - 2, P)) % P


def _is_square(a: int) -> bool:
    # Euler's criterion
    a %= P
    return a == 0 or pow(a, (P - 1) // 2, P) == 1


def is_on_curve(point: BytesLike) -> bool:
    raw = bytes(point)
    if len(raw) != 32:
        return False
    y = int.from_bytes(raw, "little") & ((1 << 255) - 1)
    y %= P
    y2 = y * y % P
    u = (y2 - 1) % P
    v = (D * y2 + 1) % P
    # v is never zero: -1/d is not a square mod p
    return _is_square(u * pow(v, P - 2, P))
