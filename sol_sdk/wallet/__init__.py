"""
sol_sdk.wallet
==============

Ed25519 keypairs and signature verification.

    from sol_sdk.wallet import Keypair
    kp = Keypair.from_json_file("~/.config/solana/id.json")
"""

from __future__ import annotations

from .signer import Keypair, load_keypair, verify_signature

__all__ = ["Keypair", "load_keypair", "verify_signature"]
