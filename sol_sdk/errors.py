"""
Typed error classes for the Python SDK.

These are raised by address derivation, message compilation, transaction
assembly, submission and the RPC/cache collaborators so callers can catch
specific failure modes while still being able to catch the base
`SolSdkError`.

Every error carries the offending address and/or the transaction identifier
(base58 of the first signature) when one is known, so a caller can log and
investigate without re-deriving state.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import IntEnum
from typing import Any, Dict, Optional, Tuple

__all__ = [
    "SolSdkError",
    # derivation
    "DerivationError",
    "NoValidBumpFound",
    "InvalidSeeds",
    # compilation
    "CompilationError",
    "EmptyOperationList",
    "TooManyAccounts",
    # assembly
    "AssemblyError",
    "MissingSigner",
    "UnusedSigner",
    "SigningFailed",
    # submission
    "SubmissionError",
    "TxRejected",
    "TxIndeterminate",
    "AlreadySubmitted",
    "ConfirmationError",
    "CheckpointExpired",
    # collaborators
    "CollaboratorError",
    "RpcError",
    "CacheError",
    "JsonRpcCode",
    "from_jsonrpc_error",
    "raise_for_jsonrpc_result",
]


class SolSdkError(Exception):
    """Base class for all SDK errors."""

    def __post_init__(self) -> None:
        # dataclass leaves: args mirror the fields so errors pickle and print
        Exception.__init__(self, *(getattr(self, f.name) for f in fields(self)))


# --- Derivation ---------------------------------------------------------------


class DerivationError(SolSdkError):
    """Program-address derivation failed. Never retried."""


@dataclass(slots=True)
class NoValidBumpFound(DerivationError):
    """No bump in 255..0 produced an off-curve address."""

    program_id: str
    seed_count: int = 0

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"NoValidBumpFound: program={self.program_id} seeds={self.seed_count}"


@dataclass(slots=True)
class InvalidSeeds(DerivationError):
    """Seeds exceed ledger limits, or the candidate address lies on the curve."""

    message: str
    program_id: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" program={self.program_id}" if self.program_id else ""
        return f"InvalidSeeds{where}: {self.message}"


# --- Compilation --------------------------------------------------------------


class CompilationError(SolSdkError):
    """A message could not be compiled from the given operations."""


@dataclass(slots=True)
class EmptyOperationList(CompilationError):
    message: str = "at least one instruction is required"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"EmptyOperationList: {self.message}"


@dataclass(slots=True)
class TooManyAccounts(CompilationError):
    count: int
    limit: int

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"TooManyAccounts: {self.count} accounts exceeds limit {self.limit}"


# --- Assembly -----------------------------------------------------------------


class AssemblyError(SolSdkError):
    """Signing keys do not match the message, or signing failed."""


@dataclass(slots=True)
class MissingSigner(AssemblyError):
    address: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"MissingSigner: no key supplied for required signer {self.address}"


@dataclass(slots=True)
class UnusedSigner(AssemblyError):
    address: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"UnusedSigner: key {self.address} is not a signer of this message"


@dataclass(slots=True)
class SigningFailed(AssemblyError):
    address: str
    reason: str = "signature did not verify"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"SigningFailed[{self.address}]: {self.reason}"


# --- Submission ---------------------------------------------------------------


class SubmissionError(SolSdkError):
    """Raised for non-accepted submission outcomes and lifecycle misuse."""


@dataclass(slots=True)
class TxRejected(SubmissionError):
    """
    The ledger (or the transport, before delivery) refused the unit.

    Terminal for these exact bytes: rebuild with a fresh blockhash.
    """

    reason: str
    identifier: Optional[str] = None
    code: Optional[int] = None
    logs: Tuple[str, ...] = field(default_factory=tuple)

    def __str__(self) -> str:  # pragma: no cover - trivial
        suffix = f" tx={self.identifier}" if self.identifier else ""
        code = f" code={self.code}" if self.code is not None else ""
        return f"TxRejected{suffix}{code}: {self.reason}"


@dataclass(slots=True)
class TxIndeterminate(SubmissionError):
    """The unit may or may not have landed; poll by identifier."""

    identifier: str
    reason: str = "outcome unknown"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"TxIndeterminate tx={self.identifier}: {self.reason}"


@dataclass(slots=True)
class AlreadySubmitted(SubmissionError):
    identifier: str
    state: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return (
            f"AlreadySubmitted tx={self.identifier} state={self.state}: "
            "rebuild with a fresh blockhash instead of resending"
        )


@dataclass(slots=True)
class ConfirmationError(SubmissionError):
    """The transaction landed but failed on-chain."""

    identifier: str
    err: Any = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"ConfirmationError tx={self.identifier}: {self.err!r}"


@dataclass(slots=True)
class CheckpointExpired(SubmissionError):
    """The blockhash validity window closed before the transaction was seen."""

    identifier: str
    last_valid_block_height: int
    block_height: int

    def __str__(self) -> str:  # pragma: no cover - trivial
        return (
            f"CheckpointExpired tx={self.identifier}: block height {self.block_height} "
            f"> last valid {self.last_valid_block_height}"
        )


# --- Collaborators ------------------------------------------------------------


class CollaboratorError(SolSdkError):
    """RPC, network or storage failures, surfaced unchanged."""


class JsonRpcCode(IntEnum):
    # JSON-RPC 2.0 standard codes
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Solana server errors
    BLOCK_CLEANED_UP = -32001
    SEND_TRANSACTION_PREFLIGHT_FAILURE = -32002
    TRANSACTION_SIGNATURE_VERIFICATION_FAILURE = -32003
    BLOCK_NOT_AVAILABLE = -32004
    NODE_UNHEALTHY = -32005
    TRANSACTION_PRECOMPILE_VERIFICATION_FAILURE = -32006
    SLOT_SKIPPED = -32007
    NO_SNAPSHOT = -32008
    LONG_TERM_STORAGE_SLOT_SKIPPED = -32009
    KEY_EXCLUDED_FROM_SECONDARY_INDEX = -32010
    TRANSACTION_HISTORY_NOT_AVAILABLE = -32011
    TRANSACTION_SIGNATURE_LEN_MISMATCH = -32013
    BLOCK_STATUS_NOT_AVAILABLE_YET = -32014
    UNSUPPORTED_TRANSACTION_VERSION = -32015
    MIN_CONTEXT_SLOT_NOT_REACHED = -32016

    # Client-side transport outcomes
    NOT_SENT = -32097  # request never reached the node
    TRANSPORT = -32098  # timeout / connection lost, delivery unknown


@dataclass(slots=True)
class RpcError(CollaboratorError):
    """Raised when a JSON-RPC call returns an error object or the transport fails."""

    code: int
    message: str
    data: Optional[Any] = None
    method: Optional[str] = None
    request_id: Optional[Any] = None
    http_status: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"RPC[{self.method or '-'}] code={self.code} msg={self.message!r}"]
        if self.request_id is not None:
            parts.append(f"id={self.request_id}")
        if self.http_status is not None:
            parts.append(f"http={self.http_status}")
        if self.data is not None:
            parts.append(f"data={self.data!r}")
        return " ".join(parts)

    @property
    def code_enum(self) -> Optional[JsonRpcCode]:
        try:
            return JsonRpcCode(self.code)
        except ValueError:
            return None

    @property
    def is_transport(self) -> bool:
        return self.code in (JsonRpcCode.NOT_SENT, JsonRpcCode.TRANSPORT)


@dataclass(slots=True)
class CacheError(CollaboratorError):
    message: str
    path: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.path}]" if self.path else ""
        return f"CacheError{where}: {self.message}"


def from_jsonrpc_error(
    err_obj: Dict[str, Any],
    *,
    method: Optional[str] = None,
    request_id: Optional[Any] = None,
    http_status: Optional[int] = None,
) -> RpcError:
    """
    Convert a JSON-RPC error object into RpcError.

    `err_obj` should resemble: {"code": int, "message": str, "data": any?}
    """
    code = int(err_obj.get("code", JsonRpcCode.INTERNAL_ERROR))
    message = str(err_obj.get("message", "Unknown JSON-RPC error"))
    return RpcError(
        code=code,
        message=message,
        data=err_obj.get("data"),
        method=method,
        request_id=request_id,
        http_status=http_status,
    )


def raise_for_jsonrpc_result(
    result: Dict[str, Any],
    *,
    method: Optional[str] = None,
    http_status: Optional[int] = None,
) -> None:
    """
    If `result` contains an "error" field, raise RpcError.

    Called by the HTTP client after parsing a JSON-RPC response.
    """
    if "error" in result and result["error"] is not None:
        raise from_jsonrpc_error(
            result["error"] or {},
            method=method,
            request_id=result.get("id"),
            http_status=http_status,
        )
