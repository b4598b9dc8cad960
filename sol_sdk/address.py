"""
sol_sdk.address
===============

Address value type, validation, and program-derived address (PDA) derivation.

Format
------
An address is 32 raw bytes, rendered as base58 text. Wallet addresses are
Ed25519 public keys; program-derived addresses are SHA-256 digests that are
deliberately *not* valid curve points, so no private key can exist for them
and only the owning program can authorize actions on them by supplying the
same seeds:

    candidate = sha256(seed_1 || ... || seed_n || bump || program_id || "ProgramDerivedAddress")

This module provides:
- Address (frozen value; parse from base58 / bytes / Address)
- find_program_address(seeds, program_id) -> (Address, bump)
- create_program_address(seeds, program_id) -> Address
- metadata_address(mint), associated_token_address(owner, mint)
- is_valid(text) -> bool
- well-known program ids (system, token, associated-token, metadata)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .errors import InvalidSeeds, NoValidBumpFound
from .utils.base58 import Base58Error, b58decode, b58encode
from .utils.bytes import BytesLike
from .utils.ed25519 import is_on_curve
from .utils.hash import SHA256

__all__ = [
    "ADDRESS_LEN",
    "MAX_SEED_LEN",
    "MAX_SEEDS",
    "PDA_MARKER",
    "Address",
    "AddressLike",
    "as_address",
    "is_valid",
    "create_program_address",
    "find_program_address",
    "metadata_address",
    "associated_token_address",
    "SYSTEM_PROGRAM_ID",
    "TOKEN_PROGRAM_ID",
    "ASSOCIATED_TOKEN_PROGRAM_ID",
    "METADATA_PROGRAM_ID",
    "SYSVAR_RENT_ID",
]

log = logging.getLogger(__name__)

ADDRESS_LEN = 32
MAX_SEED_LEN = 32
MAX_SEEDS = 16
PDA_MARKER = b"ProgramDerivedAddress"


# ---- Value type ---------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Address:
    """A 32-byte ledger address. Renders as base58."""

    raw: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.raw, (bytes, bytearray, memoryview)):
            raise TypeError("Address expects bytes")
        object.__setattr__(self, "raw", bytes(self.raw))
        if len(self.raw) != ADDRESS_LEN:
            raise ValueError(f"address must be {ADDRESS_LEN} bytes, got {len(self.raw)}")

    @classmethod
    def from_string(cls, text: str) -> "Address":
        try:
            return cls(b58decode(text.strip(), expected_len=ADDRESS_LEN))
        except Base58Error as e:
            raise ValueError(f"invalid address {text!r}: {e}") from e

    @classmethod
    def default(cls) -> "Address":
        return cls(bytes(ADDRESS_LEN))

    def is_on_curve(self) -> bool:
        return is_on_curve(self.raw)

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return b58encode(self.raw)

    def __repr__(self) -> str:
        return f"Address({b58encode(self.raw)!r})"


AddressLike = Union[Address, str, bytes, bytearray]


def as_address(value: AddressLike) -> Address:
    """Coerce base58 text, raw 32 bytes, or an Address into an Address."""
    if isinstance(value, Address):
        return value
    if isinstance(value, str):
        return Address.from_string(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return Address(bytes(value))
    # Keypair and other objects exposing a public key
    pk = getattr(value, "public_key", None)
    if isinstance(pk, Address):
        return pk
    raise TypeError(f"cannot interpret {type(value).__name__} as an address")


def is_valid(text: str) -> bool:
    try:
        Address.from_string(text)
    except (ValueError, TypeError):
        return False
    return True


SYSTEM_PROGRAM_ID = Address.from_string("11111111111111111111111111111111")
TOKEN_PROGRAM_ID = Address.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = Address.from_string("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")
METADATA_PROGRAM_ID = Address.from_string("metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s")
SYSVAR_RENT_ID = Address.from_string("SysvarRent111111111111111111111111111111111")


# ---- Program-derived addresses -------------------------------------------------

Seed = Union[BytesLike, Address, str]


def _seed_bytes(seed: Seed) -> bytes:
    if isinstance(seed, Address):
        return seed.raw
    if isinstance(seed, str):
        return seed.encode("utf-8")
    if isinstance(seed, (bytes, bytearray, memoryview)):
        return bytes(seed)
    raise TypeError(f"unsupported seed type: {type(seed).__name__}")


def _normalize_seeds(seeds: Iterable[Seed], program_id: Address, *, max_seeds: int) -> List[bytes]:
    out = [_seed_bytes(s) for s in seeds]
    if len(out) > max_seeds:
        raise InvalidSeeds(f"too many seeds: {len(out)} > {max_seeds}", str(program_id))
    for i, s in enumerate(out):
        if len(s) > MAX_SEED_LEN:
            raise InvalidSeeds(f"seed {i} is {len(s)} bytes (max {MAX_SEED_LEN})", str(program_id))
    return out


def _candidate(seeds: Sequence[bytes], program_id: Address) -> bytes:
    h = SHA256()
    for s in seeds:
        h.update(s)
    h.update(program_id.raw)
    h.update(PDA_MARKER)
    return h.digest()


def create_program_address(seeds: Iterable[Seed], program_id: AddressLike) -> Address:
    """
    Derive an address from caller-supplied seeds (bump included).

    Raises InvalidSeeds when the seeds break ledger limits or the result lies
    on the curve.
    """
    pid = as_address(program_id)
    norm = _normalize_seeds(seeds, pid, max_seeds=MAX_SEEDS)
    digest = _candidate(norm, pid)
    if is_on_curve(digest):
        raise InvalidSeeds("derived address lies on the ed25519 curve", str(pid))
    return Address(digest)


def find_program_address(seeds: Iterable[Seed], program_id: AddressLike) -> Tuple[Address, int]:
    """
    Find the first off-curve address for `seeds`, trying bumps 255 down to 0.

    Returns
    -------
    (Address, bump)

    Deterministic: the same seeds and program always give the same pair.
    """
    pid = as_address(program_id)
    norm = _normalize_seeds(seeds, pid, max_seeds=MAX_SEEDS - 1)
    for bump in range(255, -1, -1):
        digest = _candidate(norm + [bytes([bump])], pid)
        if not is_on_curve(digest):
            return Address(digest), bump
    log.error("no off-curve bump for program %s (%d seeds)", pid, len(norm))
    raise NoValidBumpFound(str(pid), len(norm))


def metadata_address(mint: AddressLike, *, program_id: Optional[AddressLike] = None) -> Address:
    """Metadata record PDA for a token mint."""
    pid = as_address(program_id) if program_id is not None else METADATA_PROGRAM_ID
    return find_program_address([b"metadata", pid, as_address(mint)], pid)[0]


def associated_token_address(
    owner: AddressLike,
    mint: AddressLike,
    *,
    token_program_id: AddressLike = TOKEN_PROGRAM_ID,
) -> Address:
    """Associated token account PDA holding `mint` units for `owner`."""
    seeds = [as_address(owner), as_address(token_program_id), as_address(mint)]
    return find_program_address(seeds, ASSOCIATED_TOKEN_PROGRAM_ID)[0]
