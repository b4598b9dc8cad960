"""
End-to-end flows: derive → compile → assemble → submit → confirm, against an
in-process node speaking JSON-RPC over httpx.MockTransport.
"""

import base64
import json
import struct

import httpx
from sol_sdk.address import SYSTEM_PROGRAM_ID, find_program_address
from sol_sdk.rpc.http import RpcClient
from sol_sdk.tx.assemble import SignedUnit, UnitState, assemble
from sol_sdk.tx.build import build_transaction, compile_message
from sol_sdk.tx.send import Accepted, send_and_confirm, submit
from sol_sdk.types.core import AccountMeta, Instruction

from conftest import BLOCKHASH, LAST_VALID_BLOCK_HEIGHT, FakeLedger, keypair


def transfer(source, dest, lamports):
    """System-program style transfer: opaque 12-byte payload."""
    return Instruction(
        SYSTEM_PROGRAM_ID,
        (AccountMeta.signer(source), AccountMeta.writable(dest)),
        struct.pack("<IQ", 2, lamports),
    )


class LedgerNode:
    """Accepts any correctly signed transaction and confirms it on the next poll."""

    def __init__(self):
        self.landed = {}
        self.methods = []

    def __call__(self, request):
        payload = json.loads(request.content)
        method, params = payload["method"], payload["params"]
        self.methods.append(method)
        if method == "getLatestBlockhash":
            result = {"context": {"slot": 10}, "value": {"blockhash": BLOCKHASH, "lastValidBlockHeight": LAST_VALID_BLOCK_HEIGHT}}
        elif method == "sendTransaction":
            unit = SignedUnit.from_bytes(base64.b64decode(params[0]))
            if unit.state is not UnitState.SIGNED:
                return httpx.Response(
                    200,
                    json={"jsonrpc": "2.0", "id": payload["id"], "error": {"code": -32003, "message": "Transaction signature verification failure"}},
                )
            self.landed[unit.identifier] = unit
            result = unit.identifier
        elif method == "getSignatureStatuses":
            result = {
                "context": {"slot": 11},
                "value": [
                    {"slot": 11, "confirmations": 0, "err": None, "confirmationStatus": "confirmed"} if s in self.landed else None
                    for s in params[0]
                ],
            }
        elif method == "getBlockHeight":
            result = LAST_VALID_BLOCK_HEIGHT - 10
        else:
            raise AssertionError(f"unexpected method {method}")
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": payload["id"], "result": result})


def test_two_transfers_and_fresh_account_compile_and_sign_with_payer_only():
    payer = keypair(1)
    r1, r2 = keypair(2).public_key, keypair(3).public_key
    fresh = keypair(4).public_key

    ixs = [
        transfer(payer.public_key, r1, 1_000),
        transfer(payer.public_key, r2, 2_000),
        Instruction(SYSTEM_PROGRAM_ID, (AccountMeta.writable(fresh),), b"\x00" * 4),
    ]
    msg = compile_message(payer.public_key, BLOCKHASH, ixs)

    # fee payer first; the transfer signer is the same key, merged into it
    assert msg.account_keys[0] == payer.public_key
    assert msg.account_keys.count(payer.public_key) == 1
    assert msg.header.num_required_signatures == 1
    # recipients follow in first-seen order, then the fresh account, then the program
    assert msg.account_keys[1:] == (r1, r2, fresh, SYSTEM_PROGRAM_ID)
    assert [msg.is_writable(i) for i in range(5)] == [True, True, True, True, False]

    unit = assemble(msg, [payer])
    assert unit.verify()
    assert [a for a, _ in unit.signatures] == [payer.public_key]


def test_repeated_derivation_is_byte_identical():
    seeds = [b"escrow", keypair(6).public_key.raw, (7).to_bytes(8, "little")]
    first_addr, first_bump = find_program_address(seeds, SYSTEM_PROGRAM_ID)
    second_addr, second_bump = find_program_address([bytes(s) for s in seeds], SYSTEM_PROGRAM_ID)
    assert first_addr.raw == second_addr.raw
    assert bytes([first_bump]) == bytes([second_bump])


def test_build_submit_confirm_over_http():
    node = LedgerNode()
    payer = keypair(1)
    rpc = RpcClient("http://node.test", transport=httpx.MockTransport(node), sleep=lambda s: None)

    unit, checkpoint = build_transaction(rpc, payer.public_key, [payer], [transfer(payer.public_key, keypair(2).public_key, 5)])
    assert checkpoint.blockhash == BLOCKHASH
    assert checkpoint.last_valid_block_height == LAST_VALID_BLOCK_HEIGHT
    assert unit.message.recent_blockhash == BLOCKHASH

    status = send_and_confirm(rpc, unit, checkpoint=checkpoint, sleep=lambda s: None)
    assert status["confirmationStatus"] == "confirmed"
    assert unit.state is UnitState.ACCEPTED
    assert unit.identifier in node.landed
    assert node.methods == ["getLatestBlockhash", "sendTransaction", "getSignatureStatuses"]


def test_node_rejecting_bad_signature_yields_rejected_outcome():
    node = LedgerNode()
    payer = keypair(1)
    rpc = RpcClient("http://node.test", transport=httpx.MockTransport(node), sleep=lambda s: None)
    msg = compile_message(payer.public_key, BLOCKHASH, [transfer(payer.public_key, keypair(2).public_key, 5)])
    unit = assemble(msg, [payer])
    # corrupt the signature in place, as a faulty relay might
    addr, sig = unit.signatures[0]
    unit.signatures = ((addr, bytes(64)),)

    outcome = submit(unit, rpc)
    assert not outcome.ok
    assert outcome.code == -32003
    assert unit.state is UnitState.REJECTED


def test_build_transaction_passes_commitment():
    ledger = FakeLedger()
    payer = keypair(1)
    unit, _ = build_transaction(
        ledger, payer, [payer], [transfer(payer.public_key, keypair(2).public_key, 1)], commitment="finalized"
    )
    assert ledger.calls[0] == ("getLatestBlockhash", "finalized")
    assert submit(unit, ledger) == Accepted(unit.identifier)
