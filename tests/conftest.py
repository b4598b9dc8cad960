"""
Shared pytest fixtures:
- Deterministic keypairs and a fixed checkpoint blockhash
- FakeLedger: in-memory stand-in for the JSON-RPC handle
- Scrubbed SOLSDK_* environment so local settings never leak into tests
"""
from __future__ import annotations

import base64
from typing import Any, Dict, List, Optional, Sequence

import pytest

from sol_sdk.tx.assemble import SignedUnit
from sol_sdk.utils.base58 import b58encode
from sol_sdk.utils.hash import sha256
from sol_sdk.wallet.signer import Keypair

BLOCKHASH = b58encode(sha256(b"checkpoint-0"))
LAST_VALID_BLOCK_HEIGHT = 1_000


def keypair(n: int) -> Keypair:
    """Keypair from a seed of 32 copies of byte `n`."""
    return Keypair.from_seed(bytes([n]) * 32)


class FakeLedger:
    """
    Minimal in-memory ledger implementing the RPC methods the tx layer calls.

    - `send_error`: exception raised by the next sendTransaction
    - `statuses`: signature -> status dict returned by getSignatureStatuses
    - `status_script`: if non-empty, each status poll pops the next entry
    - `land_on_send`: accepted sends become `confirmed` immediately
    """

    def __init__(self, *, land_on_send: bool = True) -> None:
        self.calls: List[tuple] = []
        self.sent: List[SignedUnit] = []
        self.send_kwargs: List[Dict[str, Any]] = []
        self.send_error: Optional[BaseException] = None
        self.reported_signature: Optional[str] = None
        self.statuses: Dict[str, Dict[str, Any]] = {}
        self.status_script: List[Optional[Dict[str, Any]]] = []
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.block_height = 900
        self.land_on_send = land_on_send

    def get_latest_blockhash(self, *, commitment: Optional[str] = None) -> Dict[str, Any]:
        self.calls.append(("getLatestBlockhash", commitment))
        return {"blockhash": BLOCKHASH, "lastValidBlockHeight": LAST_VALID_BLOCK_HEIGHT}

    def send_transaction(self, raw, **kwargs: Any) -> str:
        self.calls.append(("sendTransaction", raw))
        self.send_kwargs.append(kwargs)
        unit = SignedUnit.from_bytes(base64.b64decode(raw))
        self.sent.append(unit)
        if self.send_error is not None:
            raise self.send_error
        sig = unit.identifier
        if self.land_on_send:
            self.statuses[sig] = {
                "slot": 42,
                "confirmations": 1,
                "err": None,
                "confirmationStatus": "confirmed",
            }
        return self.reported_signature or sig

    def get_signature_statuses(
        self, signatures: Sequence[str], *, search_history: bool = False
    ) -> List[Optional[Dict[str, Any]]]:
        self.calls.append(("getSignatureStatuses", list(signatures)))
        if self.status_script:
            return [self.status_script.pop(0) for _ in signatures]
        return [self.statuses.get(s) for s in signatures]

    def get_block_height(self, *, commitment: Optional[str] = None) -> int:
        self.calls.append(("getBlockHeight", commitment))
        return self.block_height

    def get_transaction(self, signature: str, *, commitment: Optional[str] = None):
        self.calls.append(("getTransaction", signature))
        return self.transactions.get(signature)

    def methods(self) -> List[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def payer() -> Keypair:
    return keypair(1)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "RPC_URL",
        "CLUSTER",
        "COMMITMENT",
        "TIMEOUT",
        "MAX_RETRIES",
        "BACKOFF",
        "MAX_ACCOUNTS",
        "CACHE_PATH",
        "USER_AGENT",
        "LOG_LEVEL",
        "LOG_FORMAT",
    ):
        monkeypatch.delenv(f"SOLSDK_{name}", raising=False)
