"""
sol_sdk.tx.encode
=================

Byte-exact wire encoding for ledger messages and signed transactions.

This module provides:
- `serialize_message(msg)` → canonical message bytes (what every signer signs)
- `deserialize_message(raw)` → `CompiledMessage`
- `serialize_transaction(signatures, message)` → signed wire bytes
- `deserialize_transaction(raw)` → (signatures, CompiledMessage, message_bytes)
- `to_base64(raw)` → text form expected by `sendTransaction`

Layout
------
Lengths are compact-u16 ("shortvec"). A message is:

    [0x80 | version]            (v0 only; absent for legacy)
    header                      3 bytes
    shortvec(N) + N * 32        account keys
    32                          recent blockhash
    shortvec(M) + M * ix        instructions
    shortvec(0)                 address-table lookups (v0 only; always empty)

Each instruction is `u8 program_id_index, shortvec(k) + k * u8 accounts,
shortvec(len) + data`. A transaction is `shortvec(S) + S * 64 signature
bytes` followed by the message bytes.
"""

from __future__ import annotations

import base64
from typing import List, Optional, Sequence, Tuple

from ..address import ADDRESS_LEN, Address
from ..types.core import CompiledInstruction, CompiledMessage, MessageHeader
from ..utils.base58 import b58decode, b58encode
from ..utils.bytes import BytesLike, shortvec_decode, shortvec_encode

__all__ = [
    "SIGNATURE_LEN",
    "PACKET_DATA_SIZE",
    "VERSION_PREFIX_MASK",
    "serialize_message",
    "deserialize_message",
    "serialize_transaction",
    "deserialize_transaction",
    "to_base64",
]

SIGNATURE_LEN = 64
PACKET_DATA_SIZE = 1232  # max serialized transaction size accepted by validators
VERSION_PREFIX_MASK = 0x80


def _compact(items: bytes, count: int) -> bytes:
    return shortvec_encode(count) + items


def serialize_message(msg: CompiledMessage) -> bytes:
    out = bytearray()
    if msg.version is not None:
        if not 0 <= msg.version < VERSION_PREFIX_MASK:
            raise ValueError(f"unsupported message version {msg.version}")
        out.append(VERSION_PREFIX_MASK | msg.version)
    out += msg.header.to_bytes()
    out += _compact(b"".join(k.raw for k in msg.account_keys), len(msg.account_keys))
    out += b58decode(msg.recent_blockhash, expected_len=32)
    out += shortvec_encode(len(msg.instructions))
    for ix in msg.instructions:
        if not 0 <= ix.program_id_index <= 0xFF:
            raise ValueError(f"program index {ix.program_id_index} does not fit in u8")
        out.append(ix.program_id_index)
        out += _compact(bytes(ix.accounts), len(ix.accounts))
        out += _compact(ix.data, len(ix.data))
    if msg.version is not None:
        out += shortvec_encode(0)
    return bytes(out)


class _Reader:
    __slots__ = ("buf", "pos")

    def __init__(self, buf: bytes) -> None:
        self.buf = buf
        self.pos = 0

    def take(self, n: int) -> bytes:
        end = self.pos + n
        if end > len(self.buf):
            raise ValueError(f"truncated input: need {n} bytes at offset {self.pos}")
        chunk = self.buf[self.pos : end]
        self.pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def length(self) -> int:
        value, used = shortvec_decode(self.buf, offset=self.pos)
        self.pos += used
        return value


def _read_message(r: _Reader) -> CompiledMessage:
    version: Optional[int] = None
    first = r.buf[r.pos] if r.pos < len(r.buf) else None
    if first is None:
        raise ValueError("empty message")
    if first & VERSION_PREFIX_MASK:
        version = r.u8() & ~VERSION_PREFIX_MASK
        if version != 0:
            raise ValueError(f"unsupported message version {version}")
    header = MessageHeader(r.u8(), r.u8(), r.u8())
    keys = tuple(Address(r.take(ADDRESS_LEN)) for _ in range(r.length()))
    blockhash = b58encode(r.take(32))
    instructions: List[CompiledInstruction] = []
    for _ in range(r.length()):
        pid = r.u8()
        accounts = tuple(r.take(r.length()))
        data = r.take(r.length())
        instructions.append(CompiledInstruction(pid, accounts, data))
    if version is not None and r.length() != 0:
        raise ValueError("address-table lookups are not supported")
    return CompiledMessage(header, keys, blockhash, tuple(instructions), version)


def deserialize_message(raw: BytesLike) -> CompiledMessage:
    r = _Reader(bytes(raw))
    msg = _read_message(r)
    if r.pos != len(r.buf):
        raise ValueError(f"{len(r.buf) - r.pos} trailing bytes after message")
    return msg


def serialize_transaction(signatures: Sequence[bytes], message: BytesLike) -> bytes:
    """Prefix message bytes with the compact signature array."""
    for s in signatures:
        if len(s) != SIGNATURE_LEN:
            raise ValueError(f"signature must be {SIGNATURE_LEN} bytes, got {len(s)}")
    return shortvec_encode(len(signatures)) + b"".join(signatures) + bytes(message)


def deserialize_transaction(raw: BytesLike) -> Tuple[List[bytes], CompiledMessage, bytes]:
    r = _Reader(bytes(raw))
    sigs = [r.take(SIGNATURE_LEN) for _ in range(r.length())]
    start = r.pos
    msg = _read_message(r)
    if r.pos != len(r.buf):
        raise ValueError(f"{len(r.buf) - r.pos} trailing bytes after transaction")
    if len(sigs) != msg.header.num_required_signatures:
        raise ValueError(
            f"signature count {len(sigs)} != required {msg.header.num_required_signatures}"
        )
    return sigs, msg, r.buf[start:]


def to_base64(raw: BytesLike) -> str:
    return base64.b64encode(bytes(raw)).decode("ascii")
