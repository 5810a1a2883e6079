"""Process-wide logging setup with request-id correlation.

Two output formats are supported, selected by ``LOG_FORMAT``:

* ``text``: single-line console output with trailing ``key=value`` extras.
* ``json``: one JSON object per line for log shipping.

The request id bound by the HTTP middleware (and by the realtime endpoint per
connection) is stored in a context variable and stamped onto every record.
"""

from __future__ import annotations

import json
import logging
import time
from contextvars import ContextVar, Token
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from trellone.core.config import settings

_REQUEST_ID: ContextVar[str | None] = ContextVar("trellone_request_id", default=None)

_STANDARD_ATTRS: set[str] = {
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
    "message",
    "asctime",
    "request_id",
    "taskName",
    "color_message",
}

_CONFIGURED_FLAG = "_trellone_configured"
_QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "alembic.runtime.migration")


def bind_request_id(request_id: str | None) -> Token[str | None]:
    """Bind a request id to the current context and return the reset token."""
    return _REQUEST_ID.set(request_id)


def reset_request_id(token: Token[str | None]) -> None:
    _REQUEST_ID.reset(token)


def current_request_id() -> str | None:
    return _REQUEST_ID.get()


def _json_default(value: object) -> object:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _record_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


def _format_extra_value(value: object) -> str:
    if isinstance(value, str):
        return value if value and " " not in value else json.dumps(value)
    return json.dumps(value, default=_json_default)


class TextLogFormatter(logging.Formatter):
    """Render records as ``<time> <level> <logger> [rid=<id>] <message> k=v``."""

    def __init__(self, *, use_utc: bool) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-5s %(name)s [rid=%(request_id)s] %(message)s",
        )
        if use_utc:
            self.converter = time.gmtime

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = getattr(record, "request_id", None) or _REQUEST_ID.get() or "-"
        base = super().format(record)
        extras = [
            f"{key}={_format_extra_value(value)}"
            for key, value in sorted(_record_extras(record).items())
        ]
        if extras:
            return f"{base} " + " ".join(extras)
        return base


class JsonLogFormatter(logging.Formatter):
    """Render records as one JSON object per line."""

    def __init__(self, *, use_utc: bool) -> None:
        super().__init__()
        self._use_utc = use_utc

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        tz = UTC if self._use_utc else None
        return datetime.fromtimestamp(record.created, tz=tz).isoformat(timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None) or _REQUEST_ID.get(),
        }
        payload.update(_record_extras(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_json_default, separators=(",", ":"))


def _build_formatter(log_format: str, *, use_utc: bool) -> logging.Formatter:
    if log_format.strip().lower() == "json":
        return JsonLogFormatter(use_utc=use_utc)
    return TextLogFormatter(use_utc=use_utc)


def configure_logging() -> None:
    """Install a single root stream handler using the configured format and level."""
    root_logger = logging.getLogger()
    level = logging.getLevelName(settings.log_level.strip().upper())
    if not isinstance(level, int):
        level = logging.INFO

    if not getattr(root_logger, _CONFIGURED_FLAG, False) or not root_logger.handlers:
        root_logger.handlers = [logging.StreamHandler()]
        setattr(root_logger, _CONFIGURED_FLAG, True)

    handler = root_logger.handlers[0]
    handler.setFormatter(_build_formatter(settings.log_format, use_utc=settings.log_use_utc))
    root_logger.setLevel(level)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
