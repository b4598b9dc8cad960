"""
sol-sdk: Python client SDK for Solana-style ledgers.
Convenience exports for the most common client APIs.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import SDKConfig  # noqa: F401
from .errors import (  # noqa: F401
    SolSdkError,
    DerivationError,
    NoValidBumpFound,
    InvalidSeeds,
    CompilationError,
    EmptyOperationList,
    TooManyAccounts,
    AssemblyError,
    MissingSigner,
    UnusedSigner,
    SigningFailed,
    SubmissionError,
    TxRejected,
    TxIndeterminate,
    AlreadySubmitted,
    ConfirmationError,
    CheckpointExpired,
    CollaboratorError,
    RpcError,
    CacheError,
)

# RPC
from .rpc.http import RpcClient  # noqa: F401

# Addresses
from .address import (  # noqa: F401
    Address,
    as_address,
    find_program_address,
    create_program_address,
    metadata_address,
    associated_token_address,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    METADATA_PROGRAM_ID,
)

# Types
from .types.core import AccountMeta, Instruction, Checkpoint, CompiledMessage  # noqa: F401

# Wallet
from .wallet.signer import Keypair, verify_signature  # noqa: F401

# Tx helpers
from .tx.build import compile_message, build_transaction  # noqa: F401
from .tx.assemble import SignedUnit, UnitState, assemble  # noqa: F401
from .tx.send import (  # noqa: F401
    SubmissionOutcome,
    Accepted,
    Rejected,
    Indeterminate,
    submit,
    wait_for_confirmation,
    fetch_logs,
    send_and_confirm,
)

# Local state & links
from .filestore.address_cache import LocalAddressCache  # noqa: F401
from .explorer import explorer_url  # noqa: F401

__all__ = [
    "__version__",
    # Core
    "SDKConfig",
    "SolSdkError",
    "DerivationError", "NoValidBumpFound", "InvalidSeeds",
    "CompilationError", "EmptyOperationList", "TooManyAccounts",
    "AssemblyError", "MissingSigner", "UnusedSigner", "SigningFailed",
    "SubmissionError", "TxRejected", "TxIndeterminate", "AlreadySubmitted",
    "ConfirmationError", "CheckpointExpired",
    "CollaboratorError", "RpcError", "CacheError",
    # RPC
    "RpcClient",
    # Address
    "Address", "as_address",
    "find_program_address", "create_program_address",
    "metadata_address", "associated_token_address",
    "SYSTEM_PROGRAM_ID", "TOKEN_PROGRAM_ID", "ASSOCIATED_TOKEN_PROGRAM_ID", "METADATA_PROGRAM_ID",
    # Types
    "AccountMeta", "Instruction", "Checkpoint", "CompiledMessage",
    # Wallet
    "Keypair", "verify_signature",
    # Tx
    "compile_message", "build_transaction",
    "SignedUnit", "UnitState", "assemble",
    "SubmissionOutcome", "Accepted", "Rejected", "Indeterminate",
    "submit", "wait_for_confirmation", "fetch_logs", "send_and_confirm",
    # Local state & links
    "LocalAddressCache", "explorer_url",
]
