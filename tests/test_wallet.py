import json

import pytest
from sol_sdk.address import Address
from sol_sdk.wallet.signer import Keypair, load_keypair, verify_signature


def _seed(n: int = 32) -> bytes:
    # Deterministic test seed: 0x00, 0x01, ..., 0x1f
    return bytes(range(n))


def test_rfc8032_test_vector_1():
    # RFC 8032 section 7.1, TEST 1 (empty message)
    seed = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
    kp = Keypair.from_seed(seed)
    assert kp.public_key.raw.hex() == "d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a"
    sig = kp.sign(b"")
    assert sig.hex() == (
        "e5564300c360ac729086e2cc806e828a84877f1eb8e5d974d873e06522490155"
        "5fb8821590a33bacc61e39701cf9b46bd25bf5f0595bbe24655141438e7a100b"
    )
    assert kp.verify(b"", sig)


def test_seed_determinism_and_address():
    a = Keypair.from_seed(_seed())
    b = Keypair.from_seed(_seed())
    assert a == b
    assert hash(a) == hash(b)
    assert isinstance(a.public_key, Address)
    assert a.public_key.is_on_curve()
    assert a.sign(b"msg") == b.sign(b"msg")
    assert repr(a) == f"Keypair({a.public_key})"


def test_generate_is_random():
    assert Keypair.generate() != Keypair.generate()


def test_verify_rejects_tampering():
    kp = Keypair.from_seed(_seed())
    other = Keypair.from_seed(bytes(32))
    sig = kp.sign(b"transfer 5")
    assert verify_signature(kp.public_key, b"transfer 5", sig)
    assert verify_signature(str(kp.public_key), b"transfer 5", sig)
    assert not verify_signature(kp.public_key, b"transfer 6", sig)
    assert not verify_signature(other.public_key, b"transfer 5", sig)
    assert not verify_signature(kp.public_key, b"transfer 5", sig[:-1])
    assert not verify_signature(kp.public_key, b"transfer 5", bytes(64))


def test_secret_key_layout():
    kp = Keypair.from_seed(_seed())
    secret = kp.secret_key
    assert len(secret) == 64
    assert secret[:32] == _seed()
    assert secret[32:] == kp.public_key.raw
    assert Keypair.from_secret_key(secret) == kp

    with pytest.raises(ValueError):
        Keypair.from_secret_key(secret[:32] + bytes(32))
    with pytest.raises(ValueError):
        Keypair.from_secret_key(secret[:63])
    with pytest.raises(ValueError):
        Keypair.from_seed(_seed(31))


def test_json_keypair_file(tmp_path):
    kp = Keypair.from_seed(_seed())
    path = tmp_path / "id.json"
    path.write_text(kp.to_json(), encoding="utf-8")
    assert json.loads(path.read_text()) == list(kp.secret_key)

    assert Keypair.from_json_file(path) == kp
    assert load_keypair(str(path)) == kp
    assert load_keypair(None) is None

    bad = tmp_path / "bad.json"
    bad.write_text('{"secret": 1}', encoding="utf-8")
    with pytest.raises(ValueError):
        Keypair.from_json_file(bad)
