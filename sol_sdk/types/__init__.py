"""
sol_sdk.types
=============

Ledger datatypes shared by the compiler, assembler and RPC layers.

    from sol_sdk.types import Instruction, AccountMeta
"""

from __future__ import annotations

from .core import (
    AccountMeta,
    Checkpoint,
    CompiledInstruction,
    CompiledMessage,
    Instruction,
    MessageHeader,
    signer_addresses,
)

__all__ = [
    "AccountMeta",
    "Checkpoint",
    "CompiledInstruction",
    "CompiledMessage",
    "Instruction",
    "MessageHeader",
    "signer_addresses",
]
