import pytest
from sol_sdk.address import SYSTEM_PROGRAM_ID, Address
from sol_sdk.config import SDKConfig
from sol_sdk.errors import EmptyOperationList, TooManyAccounts
from sol_sdk.tx.build import MAX_ACCOUNTS, build_transaction, compile_message
from sol_sdk.tx.encode import (deserialize_message, serialize_message,
                               to_base64)
from sol_sdk.types.core import (AccountMeta, Checkpoint, Instruction,
                                signer_addresses)
from sol_sdk.utils.base58 import b58decode
from sol_sdk.utils.hash import sha256

from conftest import BLOCKHASH, keypair


def _addr(label: str) -> Address:
    # arbitrary 32 bytes; curve membership is irrelevant for table layout
    return Address(sha256(label.encode()))


PROGRAM_A = _addr("program-a")
PROGRAM_B = _addr("program-b")


def test_fee_payer_first_and_bucket_order(payer):
    ro_signer = keypair(2).public_key
    w = _addr("writable")
    r = _addr("readonly")
    ix = Instruction(
        PROGRAM_A,
        (
            AccountMeta.signer(ro_signer, writable=False),
            AccountMeta.writable(w),
            AccountMeta.readonly(r),
        ),
        b"\x01",
    )
    msg = compile_message(payer.public_key, BLOCKHASH, [ix])

    assert msg.account_keys == (payer.public_key, ro_signer, w, PROGRAM_A, r)
    assert msg.fee_payer == payer.public_key
    h = msg.header
    assert (h.num_required_signatures, h.num_readonly_signed_accounts, h.num_readonly_unsigned_accounts) == (2, 1, 2)
    assert msg.instructions[0].program_id_index == 3
    assert msg.instructions[0].accounts == (1, 2, 4)
    assert msg.instructions[0].data == b"\x01"
    assert [msg.is_writable(i) for i in range(5)] == [True, False, True, False, False]
    assert [msg.is_signer(i) for i in range(5)] == [True, True, False, False, False]


def test_flags_are_or_merged_across_instructions(payer):
    shared = _addr("shared")
    ix1 = Instruction(PROGRAM_A, (AccountMeta.readonly(shared),))
    ix2 = Instruction(PROGRAM_B, (AccountMeta.writable(shared),))
    msg = compile_message(payer.public_key, BLOCKHASH, [ix1, ix2])

    assert msg.account_keys.count(shared) == 1
    metas = {m.pubkey: m for m in msg.account_metas()}
    assert metas[shared].is_writable and not metas[shared].is_signer
    # programs stay read-only, first-seen order
    assert msg.account_keys[-2:] == (PROGRAM_A, PROGRAM_B)


def test_program_marked_writable_elsewhere_is_promoted(payer):
    ix1 = Instruction(PROGRAM_A, ())
    ix2 = Instruction(PROGRAM_B, (AccountMeta.writable(PROGRAM_A),))
    msg = compile_message(payer.public_key, BLOCKHASH, [ix1, ix2])
    assert msg.account_keys == (payer.public_key, PROGRAM_A, PROGRAM_B)
    assert msg.is_writable(1)
    assert not msg.is_writable(2)


def test_fee_payer_referenced_read_only_stays_writable_signer(payer):
    ix = Instruction(PROGRAM_A, (AccountMeta.readonly(payer.public_key),))
    msg = compile_message(payer.public_key, BLOCKHASH, [ix])
    assert msg.account_keys[0] == payer.public_key
    assert msg.is_signer(0) and msg.is_writable(0)
    assert msg.header.num_required_signatures == 1


def test_required_signers_equal_union_of_signer_flags(payer):
    s1, s2, s3 = (keypair(n).public_key for n in (2, 3, 4))
    ixs = [
        Instruction(PROGRAM_A, (AccountMeta.signer(s1), AccountMeta.writable(_addr("x")))),
        Instruction(PROGRAM_B, (AccountMeta.signer(s2, writable=False), AccountMeta.signer(s1))),
        Instruction(PROGRAM_A, (AccountMeta.signer(s3, writable=False),)),
    ]
    msg = compile_message(payer.public_key, BLOCKHASH, ixs)
    assert set(msg.signer_keys) == {payer.public_key} | set(signer_addresses(ixs))
    assert msg.signer_keys == (payer.public_key, s1, s2, s3)


def test_merge_is_stable_under_reordering(payer):
    a, b, c = _addr("a"), _addr("b"), _addr("c")
    s = keypair(5).public_key
    ixs = [
        Instruction(PROGRAM_A, (AccountMeta.writable(a), AccountMeta.readonly(b))),
        Instruction(PROGRAM_B, (AccountMeta.writable(b), AccountMeta.signer(s, writable=False))),
        Instruction(PROGRAM_A, (AccountMeta.readonly(c), AccountMeta.readonly(a))),
    ]
    forward = compile_message(payer.public_key, BLOCKHASH, ixs)
    backward = compile_message(payer.public_key, BLOCKHASH, list(reversed(ixs)))

    def flags(msg):
        return {(m.pubkey, m.is_signer, m.is_writable) for m in msg.account_metas()}

    assert flags(forward) == flags(backward)
    assert forward.header == backward.header
    assert forward.account_keys[0] == backward.account_keys[0] == payer.public_key


def test_empty_instruction_list_is_rejected(payer):
    with pytest.raises(EmptyOperationList):
        compile_message(payer.public_key, BLOCKHASH, [])


def test_too_many_accounts(payer):
    metas = tuple(AccountMeta.readonly(_addr(f"acct-{i}")) for i in range(MAX_ACCOUNTS - 1))
    with pytest.raises(TooManyAccounts) as ei:
        compile_message(payer.public_key, BLOCKHASH, [Instruction(PROGRAM_A, metas)])
    assert ei.value.count == MAX_ACCOUNTS + 1
    assert ei.value.limit == MAX_ACCOUNTS

    # exactly at the limit is fine
    msg = compile_message(payer.public_key, BLOCKHASH, [Instruction(PROGRAM_A, metas[:-1])])
    assert len(msg.account_keys) == MAX_ACCOUNTS

    with pytest.raises(TooManyAccounts):
        compile_message(payer.public_key, BLOCKHASH, [Instruction(PROGRAM_A, metas[:2])], max_accounts=3)


@pytest.mark.parametrize("limit", [0, MAX_ACCOUNTS + 1, 400])
def test_account_limit_beyond_u8_indices_is_refused(payer, limit):
    metas = tuple(AccountMeta.readonly(_addr(f"acct-{i}")) for i in range(3))
    with pytest.raises(ValueError, match="max_accounts"):
        compile_message(payer.public_key, BLOCKHASH, [Instruction(PROGRAM_A, metas)], max_accounts=limit)


def _wide_instruction(n):
    return Instruction(PROGRAM_A, tuple(AccountMeta.readonly(_addr(f"acct-{i}")) for i in range(n)))


def test_build_transaction_uses_configured_account_limit(payer, ledger, monkeypatch):
    monkeypatch.setenv("SOLSDK_MAX_ACCOUNTS", "4")
    with pytest.raises(TooManyAccounts) as ei:
        build_transaction(ledger, payer.public_key, [payer], [_wide_instruction(8)])
    assert ei.value.count == 10
    assert ei.value.limit == 4

    with pytest.raises(TooManyAccounts):
        build_transaction(
            ledger, payer.public_key, [payer], [_wide_instruction(8)], config=SDKConfig(max_accounts=6)
        )

    # an explicit limit wins over the configured one
    unit, _ = build_transaction(ledger, payer.public_key, [payer], [_wide_instruction(8)], max_accounts=10)
    assert len(unit.message.account_keys) == 10


def test_blockhash_forms_are_equivalent(payer):
    ix = Instruction(SYSTEM_PROGRAM_ID, (AccountMeta.writable(_addr("to")),))
    by_text = compile_message(payer.public_key, BLOCKHASH, [ix])
    by_bytes = compile_message(payer.public_key, b58decode(BLOCKHASH), [ix])
    by_checkpoint = compile_message(payer.public_key, Checkpoint(BLOCKHASH, 10), [ix])
    assert by_text == by_bytes == by_checkpoint

    with pytest.raises(ValueError):
        compile_message(payer.public_key, "not a blockhash", [ix])
    with pytest.raises(ValueError):
        compile_message(payer.public_key, bytes(31), [ix])


def test_legacy_wire_layout_is_byte_exact(payer):
    ix = Instruction(PROGRAM_A, (AccountMeta.writable(payer.public_key),), b"\x01\x02")
    msg = compile_message(payer.public_key, BLOCKHASH, [ix], version=None)
    expected = (
        bytes([1, 0, 1])
        + b"\x02"
        + payer.public_key.raw
        + PROGRAM_A.raw
        + b58decode(BLOCKHASH)
        + b"\x01"  # one instruction
        + b"\x01"  # program index
        + b"\x01\x00"  # one account: index 0
        + b"\x02\x01\x02"  # data
    )
    assert serialize_message(msg) == expected


def test_v0_prefix_and_empty_lookup_section(payer):
    ix = Instruction(PROGRAM_A, (AccountMeta.writable(payer.public_key),), b"\x01\x02")
    legacy = serialize_message(compile_message(payer.public_key, BLOCKHASH, [ix], version=None))
    v0 = serialize_message(compile_message(payer.public_key, BLOCKHASH, [ix], version=0))
    assert v0[0] == 0x80
    assert v0[1:-1] == legacy
    assert v0[-1:] == b"\x00"


@pytest.mark.parametrize("version", [None, 0])
def test_encode_decode_preserves_message(payer, version):
    ixs = [
        Instruction(PROGRAM_A, (AccountMeta.signer(keypair(2).public_key), AccountMeta.writable(_addr("w"))), b"\x00" * 200),
        Instruction(PROGRAM_B, (AccountMeta.readonly(_addr("r")),), b""),
    ]
    msg = compile_message(payer.public_key, BLOCKHASH, ixs, version=version)
    raw = serialize_message(msg)
    assert deserialize_message(raw) == msg
    assert isinstance(to_base64(raw), str)


def test_decode_rejects_malformed_messages(payer):
    ix = Instruction(PROGRAM_A, (), b"")
    raw = serialize_message(compile_message(payer.public_key, BLOCKHASH, [ix], version=0))
    with pytest.raises(ValueError):
        deserialize_message(raw + b"\x00")  # trailing bytes
    with pytest.raises(ValueError):
        deserialize_message(raw[:-1] + b"\x01")  # lookup tables
    with pytest.raises(ValueError):
        deserialize_message(b"\x81" + raw[1:])  # unknown version
    with pytest.raises(ValueError):
        deserialize_message(raw[:20])
    with pytest.raises(ValueError):
        deserialize_message(b"")


def test_instruction_validates_account_metas():
    with pytest.raises(TypeError):
        Instruction(PROGRAM_A, (PROGRAM_B,))
    ix = Instruction(str(PROGRAM_A), [AccountMeta(str(PROGRAM_B), True, True)], bytearray(b"\x05"))
    assert ix.program_id == PROGRAM_A
    assert ix.accounts[0].pubkey == PROGRAM_B
    assert ix.data == b"\x05"
