"""
sol_sdk.filestore.atomic
========================

Small file helpers for local state.

- `ensure_dir()` idempotent directory creation
- `atomic_write()` same-dir temp + fsync + atomic replace
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import Union


def ensure_dir(path: Union[str, Path], *, mode: int = 0o755) -> Path:
    """
    Create a directory (and parents) if missing. Safe under races.

    Returns the absolute `Path`.
    """
    p = Path(path).expanduser().resolve()
    p.mkdir(parents=True, exist_ok=True)
    with contextlib.suppress(OSError):
        os.chmod(p, mode)
    return p


def _fsync_dir(dirpath: Path) -> None:
    # Best-effort; some filesystems refuse directory fsync
    try:
        fd = os.open(str(dirpath), os.O_DIRECTORY)  # type: ignore[attr-defined]
    except (AttributeError, OSError):  # pragma: no cover
        return
    try:
        os.fsync(fd)
    except OSError:  # pragma: no cover
        pass
    finally:
        os.close(fd)


def atomic_write(path: Union[str, Path], data: Union[bytes, bytearray, memoryview], *, mode: int = 0o644) -> Path:
    """
    Atomically write `data` to `path` with a temp file + replace.

    Readers see either the old content or the new content, never a partial
    file. Returns the absolute `Path` written.
    """
    target = Path(path).expanduser().resolve()
    parent = ensure_dir(target.parent)
    fd, tmpname = tempfile.mkstemp(prefix=".tmp.", dir=str(parent))
    tmp = Path(tmpname)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(memoryview(data))
            f.flush()
            os.fsync(f.fileno())
        with contextlib.suppress(OSError):
            os.chmod(tmp, mode)
        os.replace(str(tmp), str(target))
        _fsync_dir(parent)
    finally:
        if tmp.exists():
            with contextlib.suppress(OSError):
                tmp.unlink()
    return target


__all__ = ["ensure_dir", "atomic_write"]
