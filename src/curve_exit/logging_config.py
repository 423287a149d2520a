"""
Logging setup for the Curve Exit Badge service.

``LOG_FORMAT=json`` emits one object per line for the log shipper; anything
else gives plain text.  ``LOG_LEVEL`` picks the root level.

Every line carries the request ID bound by the API middleware (``-`` for
work outside a request).  Helius keys travel in the ``api-key`` query
parameter, so URLs are masked before they reach any handler output.
"""

from __future__ import annotations

import json as json_mod
import logging
import re
import sys
import uuid
from contextvars import ContextVar
from typing import IO, Optional

from config import LOG_FORMAT, LOG_LEVEL

SERVICE_NAME = "curve-exit-badge"

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="-")

# Chatty per-request loggers of the HTTP stack
_QUIET_LOGGERS = ("httpx", "httpcore")

_API_KEY_RE = re.compile(r"(api-key=)[^&\s\"']+")
_INBOUND_ID_RE = re.compile(r"[A-Za-z0-9_-]{8,64}")

_TEXT_LAYOUT = "%(asctime)s [%(levelname)s] %(name)s (%(request_id)s) %(message)s"


def redact(text: str) -> str:
    """Mask Helius API keys embedded in URLs."""
    return _API_KEY_RE.sub(r"\1***", text)


def bind_request_id(inbound: Optional[str] = None) -> str:
    """Bind the current request's ID and return it.

    A well-formed ``X-Request-ID`` from the payment gateway is kept so one
    ID follows the call end to end; otherwise a fresh 12-char hex ID is made.
    """
    rid = inbound if inbound and _INBOUND_ID_RE.fullmatch(inbound) else uuid.uuid4().hex[:12]
    request_id_ctx.set(rid)
    return rid


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get()  # type: ignore[attr-defined]
        return True


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(_TEXT_LAYOUT, defaults={"request_id": "-"})

    def format(self, record: logging.LogRecord) -> str:
        return redact(super().format(record))


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "request_id": getattr(record, "request_id", request_id_ctx.get()),
            "msg": redact(record.getMessage()),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = redact(self.formatException(record.exc_info))
        return json_mod.dumps(entry, default=str)


def setup_logging(
    level: Optional[str] = None,
    fmt: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """Replace the root handlers with one configured handler and return it."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JsonLineFormatter() if (fmt or LOG_FORMAT) == "json" else TextFormatter())
    handler.addFilter(ContextFilter())
    root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
