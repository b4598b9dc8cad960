"""
sol_sdk.wallet.signer
=====================

Ed25519 keypairs for signing ledger messages.

This module is a thin, well-typed facade over `cryptography`'s Ed25519
primitives. A keypair's public key *is* its ledger address.

Key features
------------
- Fresh keys from the OS RNG, or deterministic keys from a 32-byte seed
- Import of the 64-byte `seed || public_key` secret-key layout used by the
  Solana CLI, including its JSON keypair files (`[12, 34, ...]`)
- `verify_signature(address, message, signature)` for checking any signer

Notes
-----
Signatures are deterministic (RFC 8032): the same key and message always
produce the same 64 bytes.
"""

from __future__ import annotations

import json
import os
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from ..address import Address, AddressLike, as_address
from ..utils.bytes import BytesLike

__all__ = [
    "SEED_LEN",
    "SECRET_KEY_LEN",
    "SIGNATURE_LEN",
    "Keypair",
    "verify_signature",
    "load_keypair",
]

SEED_LEN = 32
SECRET_KEY_LEN = 64
SIGNATURE_LEN = 64


def _public_bytes(pk: Ed25519PublicKey) -> bytes:
    return pk.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


class Keypair:
    """
    An Ed25519 signing key and its address.

    Create instances via:
        - Keypair.generate()
        - Keypair.from_seed(seed32)
        - Keypair.from_secret_key(secret64)
        - Keypair.from_json_file(path)
    """

    __slots__ = ("_sk", "_seed", "_address")

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._sk = private_key
        self._seed = private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        self._address = Address(_public_bytes(private_key.public_key()))

    # ---- Constructors ----

    @classmethod
    def generate(cls) -> "Keypair":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: BytesLike) -> "Keypair":
        seed = bytes(seed)
        if len(seed) != SEED_LEN:
            raise ValueError(f"seed must be {SEED_LEN} bytes, got {len(seed)}")
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    @classmethod
    def from_secret_key(cls, secret: BytesLike) -> "Keypair":
        """
        Import the 64-byte `seed || public_key` layout.

        Raises ValueError if the public half does not match the seed.
        """
        secret = bytes(secret)
        if len(secret) != SECRET_KEY_LEN:
            raise ValueError(f"secret key must be {SECRET_KEY_LEN} bytes, got {len(secret)}")
        kp = cls.from_seed(secret[:SEED_LEN])
        if kp.public_key.raw != secret[SEED_LEN:]:
            raise ValueError("secret key public half does not match its seed")
        return kp

    @classmethod
    def from_json_file(cls, path: Union[str, os.PathLike]) -> "Keypair":
        """Load a CLI-style keypair file: a JSON array of 64 byte values."""
        with open(path, "r", encoding="utf-8") as f:
            values = json.load(f)
        if not isinstance(values, list) or not all(isinstance(v, int) for v in values):
            raise ValueError(f"{path}: expected a JSON array of integers")
        return cls.from_secret_key(bytes(values))

    # ---- Properties ----

    @property
    def public_key(self) -> Address:
        return self._address

    @property
    def secret_key(self) -> bytes:
        # seed || public key; callers are responsible for secure storage
        return self._seed + self._address.raw

    def to_json(self) -> str:
        return json.dumps(list(self.secret_key))

    # ---- Operations ----

    def sign(self, message: BytesLike) -> bytes:
        return self._sk.sign(bytes(message))

    def verify(self, message: BytesLike, signature: BytesLike) -> bool:
        return verify_signature(self._address, message, signature)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Keypair):
            return NotImplemented
        return self._seed == other._seed

    def __hash__(self) -> int:
        return hash(self._address)

    def __repr__(self) -> str:
        return f"Keypair({self._address})"


def verify_signature(address: AddressLike, message: BytesLike, signature: BytesLike) -> bool:
    """True iff `signature` is a valid Ed25519 signature of `message` by `address`."""
    sig = bytes(signature)
    if len(sig) != SIGNATURE_LEN:
        return False
    try:
        pk = Ed25519PublicKey.from_public_bytes(as_address(address).raw)
        pk.verify(sig, bytes(message))
    except (InvalidSignature, ValueError):
        return False
    return True


def load_keypair(path: Optional[Union[str, os.PathLike]]) -> Optional[Keypair]:
    if path is None:
        return None
    return Keypair.from_json_file(os.path.expanduser(str(path)))
