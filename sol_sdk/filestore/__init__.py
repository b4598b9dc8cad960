"""
sol_sdk.filestore
=================

Local on-disk state: atomic file writes and the named-address cache.

    from sol_sdk.filestore import LocalAddressCache
    cache = LocalAddressCache()
    cache.save("tokenMint", mint.public_key)
"""

from __future__ import annotations

from .address_cache import DEFAULT_CACHE_PATH, LocalAddressCache
from .atomic import atomic_write, ensure_dir

__all__ = ["DEFAULT_CACHE_PATH", "LocalAddressCache", "atomic_write", "ensure_dir"]
