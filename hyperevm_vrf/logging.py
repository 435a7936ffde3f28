"""
hyperevm_vrf.logging
--------------------

Structured logging for the SDK and its CLI:
- JSON or concise text formats
- Context-local fields via `contextvars` (request_id, round, tx_hash, ...)
- Stdlib only; library modules just use `logging.getLogger(__name__)` and
  never configure handlers on import

Usage
-----
    from hyperevm_vrf import logging as vlog

    vlog.configure(json=False, level="INFO")  # once, in an application
    log = vlog.get_logger(__name__)

    with vlog.context_scope(request_id=17):
        log.info("fulfilling")
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import os
import sys
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "context",
    "context_scope",
    "JSONFormatter",
    "TextFormatter",
    "configure",
    "get_logger",
]

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_HYPEREVM_VRF_LOG_CONTEXT", default={})

CONTEXT_KEYS = ("request_id", "round", "tx_hash", "attempt")

_ENV_FORMAT = "HYPEREVM_VRF_LOG_FORMAT"
_ENV_LEVEL = "HYPEREVM_VRF_LOG_LEVEL"

_RESERVED = frozenset(
    (
        "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
        "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
        "created", "msecs", "relativeCreated", "thread", "threadName",
        "processName", "process", "taskName", "message",
    )
)


# ----------------------------
# Context
# ----------------------------


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_LOG_CONTEXT.get())


@contextmanager
def context_scope(**fields: Any) -> Iterator[None]:
    """Bind `fields` for the duration of the scope; restores prior context on exit."""
    token = _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **{k: _coerce_value(v) for k, v in fields.items()}})
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


# ----------------------------
# Formatters
# ----------------------------


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return "0x" + bytes(v).hex()
    if isinstance(v, _dt.datetime):
        if v.tzinfo is None:
            v = v.replace(tzinfo=_dt.timezone.utc)
        return v.isoformat()
    if is_dataclass(v) and not isinstance(v, type):
        return asdict(v)
    return str(v)


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: _coerce_value(v)
        for k, v in record.__dict__.items()
        if not k.startswith("_") and k not in _RESERVED
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(context())
        for k, v in _extras(record).items():
            payload.setdefault(k, v)
        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return json.dumps(payload, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """
    One-liner:
      2026-01-05T12:34:56.789+00:00 | INFO  | hyperevm_vrf.fulfiller | request_id=17 | fulfillRandomness sent
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        parts = [f"{k}={ctx[k]}" for k in CONTEXT_KEYS if ctx.get(k) is not None]
        parts.extend(f"{k}={v}" for k, v in _extras(record).items() if k not in ctx)
        line = f"{_utcnow_iso()} | {record.levelname:<5} | {record.name}"
        if parts:
            line += " | " + " ".join(parts)
        line += f" | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# ----------------------------
# Setup
# ----------------------------


_LEVEL_TO_INT = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return _LEVEL_TO_INT.get(level.strip().upper(), logging.INFO)


def _decide_json(json_flag: Optional[bool]) -> bool:
    if json_flag is not None:
        return json_flag
    return os.environ.get(_ENV_FORMAT, "text").strip().lower() == "json"


def configure(
    *,
    json: Optional[bool] = None,
    level: Optional[str | int] = None,
    stream: io.TextIOBase = sys.stderr,  # type: ignore[assignment]
    logger_name: str = "hyperevm_vrf",
) -> logging.Logger:
    """
    Attach a single console handler to the SDK's logger tree.

    `json`/`level` default to HYPEREVM_VRF_LOG_FORMAT (json|text) and
    HYPEREVM_VRF_LOG_LEVEL. Calling again replaces the previous handler.
    """
    lvl = _coerce_level(level if level is not None else os.environ.get(_ENV_LEVEL, "INFO"))
    logger = logging.getLogger(logger_name)
    logger.setLevel(lvl)
    for h in list(logger.handlers):
        if getattr(h, "_hyperevm_vrf", False):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(lvl)
    handler.setFormatter(JSONFormatter() if _decide_json(json) else TextFormatter())
    handler._hyperevm_vrf = True  # type: ignore[attr-defined]
    logger.addHandler(handler)

    for noisy in ("httpx", "httpcore", "urllib3", "web3"):
        logging.getLogger(noisy).setLevel(max(lvl, logging.WARNING))
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name or "hyperevm_vrf")
