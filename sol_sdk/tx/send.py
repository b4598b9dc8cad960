"""
sol_sdk.tx.send
===============

Submit signed units to a node and classify what happened.

Primary entry points
--------------------
- submit(unit, rpc) -> SubmissionOutcome
    Sends the unit via `sendTransaction` exactly once and returns one of
    `Accepted(identifier)`, `Rejected(reason, identifier | None)` or
    `Indeterminate(identifier)`. The identifier (base58 of the first
    signature) is computed before the network call.

- wait_for_confirmation(rpc, identifier, *, commitment="confirmed", ...) -> dict
    Polls `getSignatureStatuses` until the requested commitment is reached,
    the transaction fails on-chain, its checkpoint expires, or timeout.

- fetch_logs(rpc, identifier) -> list[str] | None
    Program log lines of a landed transaction.

- send_and_confirm(rpc, unit, *, checkpoint=None, ...) -> dict
    Convenience wrapper: submit, then wait. Never resubmits.

Outcome classification
----------------------
- node returned a signature                        -> Accepted
- node returned a JSON-RPC error                   -> Rejected (identifier recovered
                                                      from the error when possible)
- request never delivered (refused, DNS failure)   -> Rejected, no identifier
- timeout, connection lost, other OSError          -> Indeterminate
"""

from __future__ import annotations

import logging
import re
import socket
import time
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Optional, Protocol, Sequence, Tuple, Union

import httpx

from ..errors import (
    AlreadySubmitted,
    CheckpointExpired,
    ConfirmationError,
    JsonRpcCode,
    RpcError,
    TxIndeterminate,
    TxRejected,
)
from ..logging import scope as log_scope
from ..types.core import Checkpoint
from ..utils.base58 import is_base58
from .assemble import SignedUnit, UnitState

__all__ = [
    "LedgerRpc",
    "SubmissionOutcome",
    "Accepted",
    "Rejected",
    "Indeterminate",
    "COMMITMENT_LEVELS",
    "extract_identifier",
    "submit",
    "wait_for_confirmation",
    "fetch_logs",
    "send_and_confirm",
]

log = logging.getLogger(__name__)

COMMITMENT_LEVELS: Dict[str, int] = {"processed": 0, "confirmed": 1, "finalized": 2}

_SIG_IN_TEXT = re.compile(r"(?:transaction|signature)\s*:?\s+([1-9A-HJ-NP-Za-km-z]{32,88})", re.I)


# -----------------------------------------------------------------------------
# Minimal client protocol
# -----------------------------------------------------------------------------


class LedgerRpc(Protocol):
    """
    Minimal interface expected from sol_sdk.rpc.http.RpcClient.
    """

    def send_transaction(
        self,
        raw: Union[str, bytes],
        *,
        skip_preflight: bool = False,
        preflight_commitment: Optional[str] = None,
        max_retries: Optional[int] = None,
    ) -> str: ...

    def get_signature_statuses(
        self, signatures: Sequence[str], *, search_history: bool = False
    ) -> List[Optional[Dict[str, Any]]]: ...

    def get_block_height(self, *, commitment: Optional[str] = None) -> int: ...

    def get_transaction(
        self, signature: str, *, commitment: Optional[str] = None
    ) -> Optional[Dict[str, Any]]: ...


# -----------------------------------------------------------------------------
# Outcomes
# -----------------------------------------------------------------------------


class SubmissionOutcome:
    """Base for the three submission outcomes."""

    state: ClassVar[UnitState]

    @property
    def ok(self) -> bool:
        return False

    def raise_for_outcome(self) -> "SubmissionOutcome":
        return self


@dataclass(frozen=True)
class Accepted(SubmissionOutcome):
    identifier: str

    state: ClassVar[UnitState] = UnitState.ACCEPTED

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected(SubmissionOutcome):
    reason: str
    identifier: Optional[str] = None
    code: Optional[int] = None
    logs: Tuple[str, ...] = field(default_factory=tuple)

    state: ClassVar[UnitState] = UnitState.REJECTED

    def raise_for_outcome(self) -> "SubmissionOutcome":
        raise TxRejected(self.reason, self.identifier, self.code, self.logs)


@dataclass(frozen=True)
class Indeterminate(SubmissionOutcome):
    identifier: str
    reason: str = "outcome unknown"

    state: ClassVar[UnitState] = UnitState.INDETERMINATE

    def raise_for_outcome(self) -> "SubmissionOutcome":
        raise TxIndeterminate(self.identifier, self.reason)


# -----------------------------------------------------------------------------
# Identifier recovery
# -----------------------------------------------------------------------------


def _valid_signature_text(text: Any) -> Optional[str]:
    if isinstance(text, str) and is_base58(text, expected_len=64):
        return text
    return None


def extract_identifier(error: BaseException) -> Optional[str]:
    """
    Best-effort recovery of a transaction signature from a failed send.

    Looks at a structured `signature` field first (on the exception or in its
    JSON-RPC `data`), then scans the message text. Returns None if nothing
    decodes to a 64-byte signature.
    """
    found = _valid_signature_text(getattr(error, "signature", None))
    if found:
        return found
    data = getattr(error, "data", None)
    if isinstance(data, dict):
        found = _valid_signature_text(data.get("signature"))
        if found:
            return found
    texts = [getattr(error, "message", None), str(error)]
    if isinstance(data, str):
        texts.append(data)
    for text in texts:
        if not isinstance(text, str):
            continue
        for m in _SIG_IN_TEXT.finditer(text):
            found = _valid_signature_text(m.group(1))
            if found:
                return found
    return None


def _error_logs(error: RpcError) -> Tuple[str, ...]:
    data = error.data
    if isinstance(data, dict) and isinstance(data.get("logs"), list):
        return tuple(str(line) for line in data["logs"])
    return ()


# -----------------------------------------------------------------------------
# Submission
# -----------------------------------------------------------------------------


def _classify(unit: SignedUnit, rpc: LedgerRpc, send_kwargs: Dict[str, Any]) -> SubmissionOutcome:
    identifier = unit.identifier
    try:
        returned = rpc.send_transaction(unit.to_base64(), **send_kwargs)
    except RpcError as e:
        if e.code == JsonRpcCode.NOT_SENT:
            return Rejected(f"not sent: {e.message}", None, e.code)
        if e.code == JsonRpcCode.TRANSPORT:
            return Indeterminate(identifier, f"transport error after send: {e.message}")
        return Rejected(e.message, extract_identifier(e), e.code, _error_logs(e))
    except (httpx.ConnectError, httpx.ConnectTimeout, ConnectionRefusedError, socket.gaierror) as e:
        return Rejected(f"not sent: {e}", None)
    except (httpx.TransportError, OSError) as e:
        return Indeterminate(identifier, f"transport error after send: {e}")

    if returned and returned != identifier:
        log.warning("node reported signature %s for %s", returned, identifier)
    return Accepted(identifier)


def submit(
    unit: SignedUnit,
    rpc: LedgerRpc,
    *,
    skip_preflight: bool = False,
    preflight_commitment: Optional[str] = None,
    max_retries: Optional[int] = None,
) -> SubmissionOutcome:
    """
    Send `unit` once and classify the result.

    Raises AlreadySubmitted if the unit is not freshly SIGNED. Any exception
    escaping the send leaves the unit INDETERMINATE and propagates.
    """
    if unit.state is not UnitState.SIGNED:
        ident = unit.identifier if unit.signatures else "-"
        raise AlreadySubmitted(ident, unit.state.value)

    identifier = unit.identifier
    send_kwargs: Dict[str, Any] = {"skip_preflight": skip_preflight}
    if preflight_commitment is not None:
        send_kwargs["preflight_commitment"] = preflight_commitment
    if max_retries is not None:
        send_kwargs["max_retries"] = max_retries

    with log_scope(tx=identifier):
        unit.advance(UnitState.SENT)
        log.info("submitting transaction %s", identifier)
        outcome: Optional[SubmissionOutcome] = None
        try:
            outcome = _classify(unit, rpc, send_kwargs)
        finally:
            if outcome is None and unit.state is UnitState.SENT:
                unit.advance(UnitState.INDETERMINATE)
                log.warning("submission of %s abandoned mid-flight; outcome unknown", identifier)

        unit.advance(outcome.state)
        if isinstance(outcome, Accepted):
            log.info("transaction %s accepted", identifier)
        elif isinstance(outcome, Rejected):
            log.warning(
                "transaction %s rejected (code=%s): %s", identifier, outcome.code, outcome.reason
            )
        else:
            log.warning("transaction %s indeterminate: %s", identifier, outcome.reason)
    return outcome


# -----------------------------------------------------------------------------
# Confirmation
# -----------------------------------------------------------------------------


def _status_level(status: Dict[str, Any]) -> int:
    name = status.get("confirmationStatus")
    if name is None:
        # older nodes: null confirmations means rooted
        return COMMITMENT_LEVELS["finalized"] if status.get("confirmations") is None else 0
    return COMMITMENT_LEVELS.get(str(name), -1)


def _get_status(rpc: LedgerRpc, identifier: str) -> Optional[Dict[str, Any]]:
    statuses = rpc.get_signature_statuses([identifier])
    return statuses[0] if statuses else None


def wait_for_confirmation(
    rpc: LedgerRpc,
    identifier: str,
    *,
    commitment: str = "confirmed",
    timeout_s: float = 60.0,
    poll_interval_s: float = 0.5,
    max_interval_s: float = 2.5,
    backoff: float = 1.25,
    last_valid_block_height: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    """
    Poll until `identifier` reaches `commitment`.

    Raises:
        ConfirmationError if the transaction landed with an error
        CheckpointExpired if the block height passes `last_valid_block_height`
            without the transaction being seen
        TimeoutError on timeout
    """
    if commitment not in COMMITMENT_LEVELS:
        raise ValueError(f"unknown commitment {commitment!r}")
    target = COMMITMENT_LEVELS[commitment]
    deadline = time.monotonic() + float(timeout_s)
    interval = float(poll_interval_s)

    while True:
        status = _get_status(rpc, identifier)
        if status is None and last_valid_block_height is not None:
            height = rpc.get_block_height(commitment=commitment)
            if height > last_valid_block_height:
                # one last look: it may have landed in the final valid block
                status = _get_status(rpc, identifier)
                if status is None:
                    raise CheckpointExpired(identifier, last_valid_block_height, height)

        if status is not None:
            if status.get("err") is not None:
                raise ConfirmationError(identifier, status["err"])
            if _status_level(status) >= target:
                log.info("transaction %s reached %s", identifier, commitment)
                return status

        if time.monotonic() >= deadline:
            raise TimeoutError(
                f"timeout waiting for confirmation (tx={identifier}, timeout_s={timeout_s})"
            )
        sleep(interval)
        interval = min(interval * float(backoff), float(max_interval_s))


def fetch_logs(rpc: LedgerRpc, identifier: str) -> Optional[List[str]]:
    """Program log lines for a landed transaction, or None if unavailable."""
    tx = rpc.get_transaction(identifier)
    if not isinstance(tx, dict):
        return None
    meta = tx.get("meta") or {}
    logs = meta.get("logMessages")
    return [str(line) for line in logs] if isinstance(logs, list) else None


def send_and_confirm(
    rpc: LedgerRpc,
    unit: SignedUnit,
    *,
    checkpoint: Optional[Checkpoint] = None,
    commitment: str = "confirmed",
    timeout_s: float = 60.0,
    poll_interval_s: float = 0.5,
    skip_preflight: bool = False,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    """
    Submit `unit`, then wait for `commitment`.

    Rejected outcomes raise TxRejected immediately. Indeterminate outcomes are
    reconciled by polling the precomputed identifier; nothing is resent.
    """
    outcome = submit(unit, rpc, skip_preflight=skip_preflight)
    if isinstance(outcome, Rejected):
        outcome.raise_for_outcome()
    lvbh = checkpoint.last_valid_block_height if checkpoint is not None else None
    try:
        return wait_for_confirmation(
            rpc,
            unit.identifier,
            commitment=commitment,
            timeout_s=timeout_s,
            poll_interval_s=poll_interval_s,
            last_valid_block_height=lvbh,
            sleep=sleep,
        )
    except ConfirmationError:
        logs = fetch_logs(rpc, unit.identifier)
        if logs:
            log.warning("transaction %s failed on-chain:\n%s", unit.identifier, "\n".join(logs))
        raise
