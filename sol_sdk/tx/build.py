"""
sol_sdk.tx.build
================

Message compilation: turn a fee payer, a checkpoint blockhash and a list of
instructions into a `CompiledMessage` with a merged, ordered account table.

Account table rules
-------------------
- One entry per address. Signer/writable flags are OR-merged across every
  instruction that references the address.
- The fee payer is always entry 0, signer and writable.
- Program ids enter as read-only non-signers at the point the invoking
  instruction is first seen, before that instruction's own accounts.
- Entries are grouped: writable signers, read-only signers, writable
  non-signers, read-only non-signers. Within a group, first-seen order.

Examples
--------
    from sol_sdk.tx.build import compile_message

    msg = compile_message(payer, checkpoint.blockhash, [ix1, ix2])
    # or in one go, fetching a fresh checkpoint:
    unit, checkpoint = build_transaction(rpc, payer_kp, [payer_kp], [ix1, ix2])
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..address import Address, AddressLike, as_address
from ..config import SDKConfig
from ..errors import EmptyOperationList, TooManyAccounts
from ..types.core import (
    Checkpoint,
    CompiledInstruction,
    CompiledMessage,
    Instruction,
    MessageHeader,
)
from ..utils.base58 import Base58Error, b58decode, b58encode
from .assemble import SignedUnit, assemble

__all__ = [
    "MAX_ACCOUNTS",
    "compile_message",
    "build_transaction",
]

log = logging.getLogger(__name__)

MAX_ACCOUNTS = 256  # u8 account indices
_MAX_SIGNERS = 255  # header count is a single byte

BlockhashLike = Union[str, bytes, Checkpoint]


def _blockhash_text(value: BlockhashLike) -> str:
    if isinstance(value, Checkpoint):
        value = value.blockhash
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise ValueError(f"blockhash must be 32 bytes, got {len(value)}")
        return b58encode(bytes(value))
    try:
        b58decode(value, expected_len=32)
    except Base58Error as e:
        raise ValueError(f"invalid blockhash {value!r}: {e}") from e
    return value


class _AccountTable:
    """Insertion-ordered address → [is_signer, is_writable] with OR-merge."""

    def __init__(self) -> None:
        self._flags: Dict[Address, List[bool]] = {}

    def add(self, key: Address, is_signer: bool, is_writable: bool) -> None:
        flags = self._flags.get(key)
        if flags is None:
            self._flags[key] = [is_signer, is_writable]
        else:
            flags[0] = flags[0] or is_signer
            flags[1] = flags[1] or is_writable

    def ordered(self) -> Tuple[List[Address], MessageHeader]:
        ws: List[Address] = []
        rs: List[Address] = []
        wn: List[Address] = []
        rn: List[Address] = []
        for key, (signer, writable) in self._flags.items():
            if signer:
                (ws if writable else rs).append(key)
            else:
                (wn if writable else rn).append(key)
        header = MessageHeader(
            num_required_signatures=len(ws) + len(rs),
            num_readonly_signed_accounts=len(rs),
            num_readonly_unsigned_accounts=len(rn),
        )
        return ws + rs + wn + rn, header

    def __len__(self) -> int:
        return len(self._flags)


def compile_message(
    fee_payer: AddressLike,
    recent_blockhash: BlockhashLike,
    instructions: Iterable[Instruction],
    *,
    version: Optional[int] = 0,
    max_accounts: int = MAX_ACCOUNTS,
) -> CompiledMessage:
    """
    Compile instructions into a message bound to `recent_blockhash`.

    Raises
    ------
    EmptyOperationList
        `instructions` is empty.
    TooManyAccounts
        The merged table holds more than `max_accounts` entries.
    ValueError
        `max_accounts` is outside 1..MAX_ACCOUNTS.
    """
    if not 1 <= max_accounts <= MAX_ACCOUNTS:
        raise ValueError(f"max_accounts must be in 1..{MAX_ACCOUNTS}, got {max_accounts}")
    ixs = list(instructions)
    if not ixs:
        raise EmptyOperationList()
    payer = as_address(fee_payer)
    blockhash = _blockhash_text(recent_blockhash)

    table = _AccountTable()
    table.add(payer, True, True)
    for ix in ixs:
        table.add(ix.program_id, False, False)
        for meta in ix.accounts:
            table.add(meta.pubkey, meta.is_signer, meta.is_writable)

    if len(table) > max_accounts:
        raise TooManyAccounts(len(table), max_accounts)
    keys, header = table.ordered()
    if header.num_required_signatures > _MAX_SIGNERS:
        raise TooManyAccounts(header.num_required_signatures, _MAX_SIGNERS)

    index = {k: i for i, k in enumerate(keys)}
    compiled = tuple(
        CompiledInstruction(
            program_id_index=index[ix.program_id],
            accounts=tuple(index[m.pubkey] for m in ix.accounts),
            data=ix.data,
        )
        for ix in ixs
    )
    log.debug(
        "compiled message: %d accounts (%d signers, %d ro-signed, %d ro-unsigned), %d instructions",
        len(keys),
        header.num_required_signatures,
        header.num_readonly_signed_accounts,
        header.num_readonly_unsigned_accounts,
        len(compiled),
    )
    return CompiledMessage(header, tuple(keys), blockhash, compiled, version)


def build_transaction(
    rpc: Any,
    fee_payer: AddressLike,
    signers: Sequence[Any],
    instructions: Iterable[Instruction],
    *,
    version: Optional[int] = 0,
    commitment: Optional[str] = None,
    max_accounts: Optional[int] = None,
    config: Optional[SDKConfig] = None,
) -> Tuple[SignedUnit, Checkpoint]:
    """
    Fetch a fresh checkpoint, compile, and sign.

    The account limit is `max_accounts` when given, otherwise
    `config.max_accounts` (`SDKConfig.from_env()` when no config is passed).

    Returns
    -------
    (SignedUnit, Checkpoint)
        The checkpoint's `last_valid_block_height` bounds how long the unit
        can land; pass it to `wait_for_confirmation`.
    """
    if max_accounts is None:
        max_accounts = (config or SDKConfig.from_env()).max_accounts
    if commitment is None:
        checkpoint = Checkpoint.from_rpc_dict(rpc.get_latest_blockhash())
    else:
        checkpoint = Checkpoint.from_rpc_dict(rpc.get_latest_blockhash(commitment=commitment))
    msg = compile_message(
        fee_payer, checkpoint, instructions, version=version, max_accounts=max_accounts
    )
    return assemble(msg, signers), checkpoint
