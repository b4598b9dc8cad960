from __future__ import annotations

from typing import Tuple, Union

BytesLike = Union[bytes, bytearray, memoryview]


def ensure_bytes(data: Union[BytesLike, str]) -> bytes:
    """
    Ensure input is bytes.

    Accepts:
      - bytes / bytearray / memoryview  -> bytes(data)
      - str: treated as hex; optional '0x' prefix; even-length enforced

    Raises:
      ValueError on invalid hex strings.
    """
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return from_hex(data)
    raise TypeError(f"Unsupported type for ensure_bytes: {type(data)!r}")


def from_hex(s: str) -> bytes:
    """
    Hex string (optionally '0x' prefixed) -> bytes.

    Enforces even-length and is case agnostic.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a string")
    if s.startswith(("0x", "0X")):
        s = s[2:]
    if len(s) % 2 != 0:
        raise ValueError("hex string must have even length")
    try:
        return bytes.fromhex(s)
    except ValueError as e:
        raise ValueError(f"invalid hex string: {e}") from e


# --- Compact-u16 ("shortvec") -------------------------------------------------

SHORTVEC_MAX = 0xFFFF


def shortvec_encode(n: int) -> bytes:
    """
    Encode a length prefix in the ledger's compact-u16 form.

    Little-endian groups of 7 bits with an MSB continuation bit, at most
    three bytes.

    Example:
        0x00   -> b'\\x00'
        0x7f   -> b'\\x7f'
        0x80   -> b'\\x80\\x01'
        0xffff -> b'\\xff\\xff\\x03'
    """
    if n < 0 or n > SHORTVEC_MAX:
        raise ValueError(f"shortvec value out of range: {n}")
    out = bytearray()
    while True:
        to_write = n & 0x7F
        n >>= 7
        if n:
            out.append(to_write | 0x80)
        else:
            out.append(to_write)
            break
    return bytes(out)


def shortvec_decode(b: BytesLike, *, offset: int = 0) -> Tuple[int, int]:
    """
    Decode a compact-u16 starting at `offset`.

    Returns:
        (value, length_consumed)

    Raises:
        ValueError on truncated input, more than three bytes, a value above
        0xFFFF, or a non-minimal (alias) encoding.
    """
    view = memoryview(b)[offset:]
    result = 0
    for i in range(3):
        if i >= len(view):
            raise ValueError("truncated shortvec")
        byte = view[i]
        result |= (byte & 0x7F) << (7 * i)
        if (byte & 0x80) == 0:
            if i > 0 and byte == 0:
                raise ValueError("non-minimal shortvec encoding")
            if result > SHORTVEC_MAX:
                raise ValueError("shortvec value overflows u16")
            return result, i + 1
    raise ValueError("shortvec longer than 3 bytes")


__all__ = [
    "BytesLike",
    "ensure_bytes",
    "from_hex",
    "SHORTVEC_MAX",
    "shortvec_encode",
    "shortvec_decode",
]
