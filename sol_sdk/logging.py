"""
sol_sdk.logging
---------------

Structured logging with:
- JSON or concise colored text formats
- Context-local fields via `contextvars` (tx, cluster, component, ...)
- Safe JSON serialization (bytes → hex, Paths → str, Addresses → base58)

The library itself only emits records through `logging.getLogger(__name__)`;
handlers are installed by applications (the CLI calls `configure`).

Usage
-----
    from sol_sdk import logging as slog

    slog.configure(json=False, level="INFO")  # once at process start
    log = slog.get_logger(__name__)

    with slog.scope(tx=unit.identifier):
        log.info("submitting")

Environment
-----------
SOLSDK_LOG_FORMAT=(json|text) overrides the format, SOLSDK_LOG_LEVEL the level.
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import os
import sys
import traceback
import types
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

__all__ = [
    "DEFAULT_CONTEXT_KEYS",
    "JSONFormatter",
    "TextFormatter",
    "bind",
    "unbind",
    "context",
    "clear_context",
    "scope",
    "configure",
    "get_logger",
]

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_SOLSDK_LOG_CONTEXT", default={})

DEFAULT_CONTEXT_KEYS = ("tx", "cluster", "component", "rpc")

_RECORD_ATTRS = frozenset(
    (
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
    )
)


# ----------------------------
# Context
# ----------------------------


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    """Merge fields into the active context."""
    cur = dict(_LOG_CONTEXT.get())
    cur.update({k: _coerce_value(v) for k, v in fields.items()})
    _LOG_CONTEXT.set(cur)


def unbind(*keys: str) -> None:
    cur = dict(_LOG_CONTEXT.get())
    for k in keys:
        cur.pop(k, None)
    _LOG_CONTEXT.set(cur)


def clear_context() -> None:
    _LOG_CONTEXT.set({})


@contextmanager
def scope(**fields: Any) -> Iterator[None]:
    """Bind `fields` for the duration of the block, restoring the prior context."""
    token = _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **{k: _coerce_value(v) for k, v in fields.items()}})
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


# ----------------------------
# JSON & Text formatters
# ----------------------------


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    if isinstance(v, Path):
        return str(v)
    if isinstance(v, _dt.datetime):
        if v.tzinfo is None:
            v = v.replace(tzinfo=_dt.timezone.utc)
        return v.isoformat()
    return str(v)


class _SafeJSONEncoder(json.JSONEncoder):
    def default(self, o: Any) -> Any:  # type: ignore[override]
        return _coerce_value(o)


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


_LEVEL_TO_INT = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}

ANSI = types.SimpleNamespace(
    RESET="\x1b[0m",
    BOLD="\x1b[1m",
    FG=types.SimpleNamespace(
        RED="\x1b[31m",
        GREEN="\x1b[32m",
        YELLOW="\x1b[33m",
        MAGENTA="\x1b[35m",
        CYAN="\x1b[36m",
        GREY="\x1b[90m",
        WHITE="\x1b[37m",
    ),
)

_LEVEL_COLOR = {
    logging.DEBUG: ANSI.FG.GREY,
    logging.INFO: ANSI.FG.GREEN,
    logging.WARNING: ANSI.FG.YELLOW,
    logging.ERROR: ANSI.FG.RED,
    logging.CRITICAL: ANSI.BOLD + ANSI.FG.MAGENTA,
}


def _supports_color(stream: Any) -> bool:
    isatty = getattr(stream, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty()) and os.environ.get("NO_COLOR") is None
    except ValueError:  # closed stream
        return False


def _extras(record: logging.LogRecord, skip: Any = ()) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in record.__dict__.items():
        if k.startswith("_") or k in _RECORD_ATTRS or k in skip:
            continue
        out[k] = _coerce_value(v)
    return out


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(context())
        for k, v in _extras(record, payload).items():
            payload[k] = v
        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return json.dumps(payload, cls=_SafeJSONEncoder, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """
    Human-friendly one-liner:
      2026-01-05T12:34:56.789+00:00 | INFO  | sol_sdk.tx.send | tx=5h3.. | transaction accepted
    With colors when supported.
    """

    def __init__(self, stream: Any = None):
        super().__init__()
        self._color = _supports_color(stream) if stream is not None else False

    def format(self, record: logging.LogRecord) -> str:
        ts = _utcnow_iso()
        lvl = record.levelname
        name = record.name

        ctx = context()
        ctx_str = " ".join(f"{k}={ctx[k]}" for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None)
        extras = _extras(record, set(DEFAULT_CONTEXT_KEYS) | set(ctx))
        extras_str = (" " + " ".join(f"{k}={v}" for k, v in extras.items())) if extras else ""

        if self._color:
            c = _LEVEL_COLOR.get(record.levelno, ANSI.FG.WHITE)
            lvl_s = f"{c}{lvl:<5}{ANSI.RESET}"
            name_s = f"{ANSI.FG.CYAN}{name}{ANSI.RESET}"
            ts_s = f"{ANSI.FG.GREY}{ts}{ANSI.RESET}"
            ctx_s = f"{ANSI.FG.GREY}{ctx_str}{ANSI.RESET}" if ctx_str else ""
        else:
            lvl_s = f"{lvl:<5}"
            name_s = name
            ts_s = ts
            ctx_s = ctx_str

        line = f"{ts_s} | {lvl_s} | {name_s}"
        if ctx_s:
            line += f" | {ctx_s}"
        line += extras_str
        line += f" | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# ----------------------------
# Public setup API
# ----------------------------


def configure(
    *,
    json: Optional[bool] = None,
    level: Union[str, int, None] = None,
    stream: io.TextIOBase = sys.stderr,
    file_path: Optional[Union[Path, str]] = None,
) -> None:
    """
    Configure the root logger. Replaces existing root handlers.

    Parameters
    ----------
    json : bool | None
        If None, determined by env SOLSDK_LOG_FORMAT=(json|text), else text on
        a TTY and JSON otherwise.
    level : str | int | None
        Minimum level. None reads SOLSDK_LOG_LEVEL (default INFO).
    file_path : Path | str | None
        Optional file to additionally write JSON logs to.
    """
    chosen_json = _decide_json(json, stream)
    lvl = _coerce_level(level if level is not None else os.environ.get("SOLSDK_LOG_LEVEL", "INFO"))

    root = logging.getLogger()
    root.setLevel(lvl)
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(stream)
    console.setLevel(lvl)
    console.setFormatter(JSONFormatter() if chosen_json else TextFormatter(stream))
    root.addHandler(console)

    if file_path:
        p = Path(file_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, encoding="utf-8")
        fh.setLevel(lvl)
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)

    # httpx logs every request at INFO
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(max(lvl, logging.WARNING))


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "sol_sdk")


# ----------------------------
# Internals
# ----------------------------


def _coerce_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    return _LEVEL_TO_INT.get(str(level).strip().upper(), logging.INFO)


def _decide_json(json_flag: Optional[bool], stream: Any) -> bool:
    if json_flag is not None:
        return json_flag
    env = os.environ.get("SOLSDK_LOG_FORMAT", "").strip().lower()
    if env in ("json", "text"):
        return env == "json"
    return not _supports_color(stream)
