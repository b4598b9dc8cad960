"""
sol_sdk.filestore.address_cache
===============================

Named addresses persisted across runs in a small JSON file, e.g. a mint
created by one script and used by the next:

    {
      "tokenMint": "7xKX...",
      "metadata": "9aQe..."
    }

Writes are atomic; a crash mid-save leaves the previous file intact.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

from ..address import Address, AddressLike, as_address
from ..errors import CacheError
from .atomic import atomic_write

__all__ = ["DEFAULT_CACHE_PATH", "LocalAddressCache"]

log = logging.getLogger(__name__)

DEFAULT_CACHE_PATH = Path(".local_keys") / "keys.json"


@dataclass
class LocalAddressCache:
    path: Union[str, Path] = DEFAULT_CACHE_PATH

    def __post_init__(self) -> None:
        self.path = Path(self.path).expanduser()

    def load(self) -> Dict[str, Address]:
        """All saved names. A missing file is an empty cache."""
        p = Path(self.path)
        try:
            text = p.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise CacheError(f"cannot read cache: {e}", str(p)) from e
        try:
            raw = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            raise CacheError(f"invalid JSON: {e}", str(p)) from e
        if not isinstance(raw, dict):
            raise CacheError("cache root must be a JSON object", str(p))
        out: Dict[str, Address] = {}
        for name, value in raw.items():
            try:
                out[str(name)] = as_address(value)
            except (ValueError, TypeError) as e:
                raise CacheError(f"entry {name!r} is not an address: {e}", str(p)) from e
        return out

    def get(self, name: str) -> Optional[Address]:
        return self.load().get(name)

    def save(self, name: str, address: AddressLike) -> Dict[str, Address]:
        """Insert or replace `name`, returning the updated mapping."""
        if not name:
            raise ValueError("name must be non-empty")
        entries = self.load()
        entries[name] = as_address(address)
        self._write(entries)
        log.debug("saved %s=%s to %s", name, entries[name], self.path)
        return entries

    def remove(self, name: str) -> bool:
        entries = self.load()
        if name not in entries:
            return False
        del entries[name]
        self._write(entries)
        return True

    def _write(self, entries: Dict[str, Address]) -> None:
        doc = {k: str(v) for k, v in entries.items()}
        data = (json.dumps(doc, indent=2, sort_keys=True) + "\n").encode("utf-8")
        try:
            atomic_write(self.path, data)
        except OSError as e:
            raise CacheError(f"cannot write cache: {e}", str(self.path)) from e
