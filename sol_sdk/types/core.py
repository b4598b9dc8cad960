from __future__ import annotations

"""
Core ledger types for the Python SDK.

This module provides two complementary representations for common objects:
- Lightweight `TypedDict` shapes mirroring JSON-RPC payloads.
- Ergonomic `@dataclass` models with `Address`/`bytes` fields and helpers.

The split keeps transport-vs-local concerns clean:
- RPC dicts carry base58/base64 strings exactly as the node returns them.
- Dataclasses carry `Address` values and raw `bytes`, and provide
  `from_rpc_dict()` helpers where the node hands one back.

Nothing here performs network I/O; these are just types and converters.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, TypedDict

from ..address import Address, AddressLike, as_address

# --- JSON-RPC TypedDict shapes ----------------------------------------------


class BlockhashDict(TypedDict):
    blockhash: str
    lastValidBlockHeight: int


class AccountInfoDict(TypedDict, total=False):
    lamports: int
    owner: str
    data: Any  # [payload, encoding] or parsed JSON
    executable: bool
    rentEpoch: int
    space: int


class SignatureStatusDict(TypedDict, total=False):
    slot: int
    confirmations: Optional[int]
    err: Any
    confirmationStatus: Optional[str]  # "processed" | "confirmed" | "finalized"


# --- Instruction models ------------------------------------------------------


@dataclass(frozen=True)
class AccountMeta:
    """
    One account an instruction touches, with its signer/writable flags.

    `pubkey` accepts anything `as_address` understands and is stored as an
    `Address`.
    """

    pubkey: Address
    is_signer: bool = False
    is_writable: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "pubkey", as_address(self.pubkey))
        object.__setattr__(self, "is_signer", bool(self.is_signer))
        object.__setattr__(self, "is_writable", bool(self.is_writable))

    @classmethod
    def signer(cls, pubkey: AddressLike, *, writable: bool = True) -> "AccountMeta":
        return cls(as_address(pubkey), True, writable)

    @classmethod
    def writable(cls, pubkey: AddressLike) -> "AccountMeta":
        return cls(as_address(pubkey), False, True)

    @classmethod
    def readonly(cls, pubkey: AddressLike) -> "AccountMeta":
        return cls(as_address(pubkey), False, False)


@dataclass(frozen=True)
class Instruction:
    """
    A single on-chain operation: target program, accounts, opaque payload.

    The payload is produced by program-specific encoders and is never
    inspected here.
    """

    program_id: Address
    accounts: Tuple[AccountMeta, ...] = ()
    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "program_id", as_address(self.program_id))
        object.__setattr__(self, "accounts", tuple(self.accounts))
        object.__setattr__(self, "data", bytes(self.data))
        for a in self.accounts:
            if not isinstance(a, AccountMeta):
                raise TypeError(f"accounts must be AccountMeta, got {type(a).__name__}")


# --- Compiled message pieces -------------------------------------------------


@dataclass(frozen=True)
class MessageHeader:
    num_required_signatures: int
    num_readonly_signed_accounts: int
    num_readonly_unsigned_accounts: int

    def to_bytes(self) -> bytes:
        return bytes(
            (
                self.num_required_signatures,
                self.num_readonly_signed_accounts,
                self.num_readonly_unsigned_accounts,
            )
        )


@dataclass(frozen=True)
class CompiledInstruction:
    program_id_index: int
    accounts: Tuple[int, ...]
    data: bytes = b""


@dataclass(frozen=True)
class CompiledMessage:
    """
    A message ready for serialization: header, ordered account table,
    checkpoint blockhash and index-based instructions.

    `version` is None for legacy messages and 0 for v0 messages.
    """

    header: MessageHeader
    account_keys: Tuple[Address, ...]
    recent_blockhash: str
    instructions: Tuple[CompiledInstruction, ...]
    version: Optional[int] = 0

    @property
    def fee_payer(self) -> Address:
        return self.account_keys[0]

    @property
    def signer_keys(self) -> Tuple[Address, ...]:
        return self.account_keys[: self.header.num_required_signatures]

    def is_signer(self, index: int) -> bool:
        return index < self.header.num_required_signatures

    def is_writable(self, index: int) -> bool:
        h = self.header
        if index < h.num_required_signatures:
            return index < h.num_required_signatures - h.num_readonly_signed_accounts
        unsigned = len(self.account_keys) - h.num_required_signatures
        return index - h.num_required_signatures < unsigned - h.num_readonly_unsigned_accounts

    def account_metas(self) -> List[AccountMeta]:
        return [
            AccountMeta(k, self.is_signer(i), self.is_writable(i))
            for i, k in enumerate(self.account_keys)
        ]


@dataclass(frozen=True)
class Checkpoint:
    """A recent blockhash and the last block height at which it is accepted."""

    blockhash: str
    last_valid_block_height: int

    @classmethod
    def from_rpc_dict(cls, d: Dict[str, Any]) -> "Checkpoint":
        value = d.get("value", d)
        return cls(
            blockhash=str(value["blockhash"]),
            last_valid_block_height=int(value["lastValidBlockHeight"]),
        )


def signer_addresses(instructions: Sequence[Instruction]) -> List[Address]:
    """Addresses flagged as signers by any instruction, first-seen order."""
    seen: Dict[Address, None] = {}
    for ix in instructions:
        for a in ix.accounts:
            if a.is_signer:
                seen.setdefault(a.pubkey, None)
    return list(seen)


__all__ = [
    "BlockhashDict",
    "AccountInfoDict",
    "SignatureStatusDict",
    "AccountMeta",
    "Instruction",
    "MessageHeader",
    "CompiledInstruction",
    "CompiledMessage",
    "Checkpoint",
    "signer_addresses",
]
