from __future__ import annotations

import hashlib

from .bytes import BytesLike, ensure_bytes


# --- SHA-256 ------------------------------------------------------------------
# Program-address derivation hashes seeds with SHA-256.

def sha256(data: BytesLike) -> bytes:
    """Return SHA-256 digest of *data* (bytes)."""
    return hashlib.sha256(ensure_bytes(data)).digest()


class SHA256:
    """Streaming SHA-256 hasher."""

    __slots__ = ("_h",)

    def __init__(self) -> None:
        self._h = hashlib.sha256()

    def update(self, data: BytesLike) -> "SHA256":
        self._h.update(ensure_bytes(data))
        return self

    def digest(self) -> bytes:
        return self._h.digest()


__all__ = [
    "sha256",
    "SHA256",
]
