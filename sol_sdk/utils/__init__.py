"""
Utility helpers for the Python SDK.

Re-exports:
- bytes: hex helpers and compact-u16 (shortvec) encode/decode
- base58: address / signature text codec
- hash: SHA-256 convenience wrappers
- ed25519: curve-point check used by program-address derivation
- retry: simple retry utilities
"""

from .base58 import Base58Error, b58decode, b58encode, is_base58
from .bytes import ensure_bytes, from_hex, shortvec_decode, shortvec_encode
from .ed25519 import is_on_curve
from .hash import sha256
from .retry import RetryError, retry_call

__all__ = [
    # bytes
    "from_hex",
    "ensure_bytes",
    "shortvec_encode",
    "shortvec_decode",
    # base58
    "b58encode",
    "b58decode",
    "is_base58",
    "Base58Error",
    # hash
    "sha256",
    # ed25519
    "is_on_curve",
    # retry
    "retry_call",
    "RetryError",
]
