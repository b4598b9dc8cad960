"""
sol_sdk.tx.assemble
===================

Sign a compiled message with every required key and produce a `SignedUnit`.

`assemble(message, signers)` is all-or-nothing: it either returns a unit whose
signature slots are all filled and locally verified, or raises one of
`MissingSigner`, `UnusedSigner`, `SigningFailed`.

A `SignedUnit` also tracks its submission lifecycle:

    BUILT -> SIGNED -> SENT -> ACCEPTED | REJECTED | INDETERMINATE

Only a SIGNED unit may be submitted. Terminal units are never resent; rebuild
against a fresh checkpoint instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Protocol, Tuple

from ..address import Address
from ..errors import MissingSigner, SigningFailed, UnusedSigner
from ..types.core import CompiledMessage
from ..utils.base58 import b58encode
from ..wallet.signer import verify_signature
from .encode import (
    PACKET_DATA_SIZE,
    deserialize_transaction,
    serialize_message,
    serialize_transaction,
    to_base64,
)

__all__ = ["SignerLike", "UnitState", "SignedUnit", "assemble"]

log = logging.getLogger(__name__)


class SignerLike(Protocol):
    @property
    def public_key(self) -> Address: ...

    def sign(self, message: bytes) -> bytes: ...


class UnitState(str, Enum):
    BUILT = "built"
    SIGNED = "signed"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    INDETERMINATE = "indeterminate"

    @property
    def is_terminal(self) -> bool:
        return self in (UnitState.ACCEPTED, UnitState.REJECTED, UnitState.INDETERMINATE)


_TRANSITIONS: Dict[UnitState, Tuple[UnitState, ...]] = {
    UnitState.BUILT: (UnitState.SIGNED,),
    UnitState.SIGNED: (UnitState.SENT,),
    UnitState.SENT: (UnitState.ACCEPTED, UnitState.REJECTED, UnitState.INDETERMINATE),
}


@dataclass
class SignedUnit:
    """
    A compiled message plus one signature per required signer, in table order.

    `identifier` is the base58 form of the first signature (the fee payer's).
    It is known before anything touches the network.
    """

    message: CompiledMessage
    message_bytes: bytes
    signatures: Tuple[Tuple[Address, bytes], ...] = ()
    state: UnitState = UnitState.BUILT
    history: List[UnitState] = field(default_factory=list, repr=False)

    @property
    def identifier(self) -> str:
        if not self.signatures:
            raise ValueError("unit has no signatures yet")
        return b58encode(self.signatures[0][1])

    def advance(self, to: UnitState) -> None:
        allowed = _TRANSITIONS.get(self.state, ())
        if to not in allowed:
            raise ValueError(f"illegal state transition {self.state.value} -> {to.value}")
        self.history.append(self.state)
        self.state = to

    def serialize(self) -> bytes:
        return serialize_transaction([sig for _, sig in self.signatures], self.message_bytes)

    def to_base64(self) -> str:
        return to_base64(self.serialize())

    def verify(self) -> bool:
        """Every slot filled, in table order, and verifying over the message bytes."""
        expected = self.message.signer_keys
        if len(self.signatures) != len(expected):
            return False
        for want, (addr, sig) in zip(expected, self.signatures):
            if addr != want or not verify_signature(addr, self.message_bytes, sig):
                return False
        return True

    @classmethod
    def from_bytes(cls, raw: bytes) -> "SignedUnit":
        """Parse a signed wire transaction. State is SIGNED iff every signature verifies."""
        sigs, msg, msg_bytes = deserialize_transaction(raw)
        unit = cls(msg, msg_bytes, tuple(zip(msg.signer_keys, sigs)))
        if unit.verify():
            unit.advance(UnitState.SIGNED)
        return unit


def _index_signers(signers: Iterable[Any]) -> Dict[Address, Any]:
    by_addr: Dict[Address, Any] = {}
    for s in signers:
        pk = getattr(s, "public_key", None)
        if not isinstance(pk, Address):
            raise TypeError(f"signer {s!r} has no Address public_key")
        by_addr.setdefault(pk, s)
    return by_addr


def assemble(message: CompiledMessage, signers: Iterable[SignerLike]) -> SignedUnit:
    """
    Sign `message` with exactly the keys it requires.

    Raises
    ------
    MissingSigner
        A signer-flagged account has no matching key.
    UnusedSigner
        A supplied key is not a signer of this message.
    SigningFailed
        A key produced a signature that does not verify.
    """
    by_addr = _index_signers(signers)
    required = message.signer_keys

    for addr in required:
        if addr not in by_addr:
            raise MissingSigner(str(addr))
    required_set = set(required)
    for addr in by_addr:
        if addr not in required_set:
            raise UnusedSigner(str(addr))

    msg_bytes = serialize_message(message)
    unit = SignedUnit(message, msg_bytes)
    slots: List[Tuple[Address, bytes]] = []
    for addr in required:
        try:
            sig = bytes(by_addr[addr].sign(msg_bytes))
        except (ValueError, TypeError) as e:
            raise SigningFailed(str(addr), f"signer raised: {e}") from e
        if not verify_signature(addr, msg_bytes, sig):
            raise SigningFailed(str(addr))
        slots.append((addr, sig))

    unit.signatures = tuple(slots)
    unit.advance(UnitState.SIGNED)

    size = len(unit.serialize())
    if size > PACKET_DATA_SIZE:
        log.warning(
            "transaction %s is %d bytes, above the %d byte packet limit",
            unit.identifier,
            size,
            PACKET_DATA_SIZE,
        )
    log.debug("assembled %s with %d signature(s)", unit.identifier, len(slots))
    return unit
