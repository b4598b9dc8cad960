import json

import pytest
from sol_sdk.errors import CacheError
from sol_sdk.filestore.address_cache import LocalAddressCache
from sol_sdk.filestore.atomic import atomic_write

from conftest import keypair


@pytest.fixture
def cache(tmp_path):
    return LocalAddressCache(tmp_path / "nested" / "keys.json")


def test_missing_file_is_empty(cache):
    assert cache.load() == {}
    assert cache.get("tokenMint") is None


def test_save_then_load(cache):
    mint = keypair(5).public_key
    meta = keypair(6).public_key
    assert cache.save("tokenMint", mint) == {"tokenMint": mint}
    cache.save("metadata", str(meta))

    assert cache.load() == {"tokenMint": mint, "metadata": meta}
    assert cache.get("metadata") == meta

    doc = json.loads(cache.path.read_text(encoding="utf-8"))
    assert doc == {"metadata": str(meta), "tokenMint": str(mint)}
    assert list(doc) == ["metadata", "tokenMint"]


def test_save_replaces_existing_name(cache):
    cache.save("tokenMint", keypair(5).public_key)
    cache.save("tokenMint", keypair(7).public_key)
    assert cache.load() == {"tokenMint": keypair(7).public_key}


def test_remove(cache):
    cache.save("a", keypair(5).public_key)
    assert cache.remove("a") is True
    assert cache.remove("a") is False
    assert cache.load() == {}


def test_rejects_bad_input(cache):
    with pytest.raises(ValueError):
        cache.save("", keypair(5).public_key)
    with pytest.raises(ValueError):
        cache.save("x", "not-an-address")
    assert not cache.path.exists()


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[1, 2, 3]",
        '{"tokenMint": "abc"}',
    ],
)
def test_corrupt_files_raise_cache_error(cache, content):
    atomic_write(cache.path, content.encode("utf-8"))
    with pytest.raises(CacheError) as ei:
        cache.load()
    assert ei.value.path == str(cache.path)


def test_empty_file_is_empty_cache(cache):
    atomic_write(cache.path, b"")
    assert cache.load() == {}


def test_atomic_write_leaves_no_temp_files(tmp_path):
    target = tmp_path / "out.json"
    atomic_write(target, b"one")
    atomic_write(target, b"two")
    assert target.read_bytes() == b"two"
    assert [p.name for p in tmp_path.iterdir()] == ["out.json"]
