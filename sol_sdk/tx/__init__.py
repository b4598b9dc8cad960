"""
sol_sdk.tx
==========

Transaction pipeline: compile, encode, assemble, send.

Submodules
----------
- build   : Message compilation (account table merge/ordering) and `build_transaction`.
- encode  : Byte-exact wire encoding of messages and signed transactions.
- assemble: Signing with exactly the required keys; the `SignedUnit` lifecycle.
- send    : Submission with Accepted / Rejected / Indeterminate outcomes, and confirmation.

Typical usage
-------------
    from sol_sdk.tx import build, send

    unit, checkpoint = build.build_transaction(rpc, payer, [payer], instructions)
    outcome = send.submit(unit, rpc)
    if outcome.ok:
        send.wait_for_confirmation(
            rpc, unit.identifier, last_valid_block_height=checkpoint.last_valid_block_height
        )
"""

from __future__ import annotations

from . import assemble as assemble
from . import build as build
from . import encode as encode
from . import send as send

__all__ = ["assemble", "build", "encode", "send"]
