"""Structured logging for the localization API.

``L10N_LOG_FORMAT=console`` renders one readable line per record with sorted
``key=value`` extras; ``L10N_LOG_FORMAT=json`` renders one JSON object per line.
Both include the request correlation id bound by the request middleware.
"""

from __future__ import annotations

import json
import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from l10n_api.settings import Settings

SERVICE_NAME = "l10n-api"

_correlation_id: ContextVar[str | None] = ContextVar("l10n_correlation_id", default=None)

# Everything a bare LogRecord carries is rendered by the formatter itself.
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "correlation_id",
    "color_message",
}

# Third-party loggers rerouted through the root handler.
_ROUTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "alembic", "sqlalchemy")
_SQL_LOGGERS = ("sqlalchemy", "sqlalchemy.engine", "sqlalchemy.pool")


def bind_request_context(correlation_id: str | None) -> None:
    _correlation_id.set(correlation_id)


def clear_request_context() -> None:
    _correlation_id.set(None)


def current_request_id() -> str | None:
    return _correlation_id.get()


def log_context(
    *,
    subject_id: str | None = None,
    service_id: str | None = None,
    resource_kind: str | None = None,
    resource_id: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """Build the ``extra=`` mapping for a log call.

    The identity/resource fields are dropped when unset so console lines stay
    short; anything passed through ``**extra`` is kept as given.
    """

    named = {
        "subject_id": subject_id,
        "service_id": service_id,
        "resource_kind": resource_kind,
        "resource_id": resource_id,
    }
    context = {key: str(value) for key, value in named.items() if value is not None}
    context.update(extra)
    return context


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED and not key.startswith("_")
    }


class _UtcFormatter(logging.Formatter):
    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=UTC)
        return f"{stamp:%Y-%m-%dT%H:%M:%S}.{int(record.msecs):03d}Z"

    @staticmethod
    def _correlation_id(record: logging.LogRecord) -> str:
        return getattr(record, "correlation_id", None) or _correlation_id.get() or "-"


class ConsoleLogFormatter(_UtcFormatter):
    """Single-line records, e.g.

    ``2026-03-02T10:15:00.302Z INFO  l10n_api.access [cid=ab12] access.denied subject_id=alice``
    """

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-5s %(name)s [cid=%(correlation_id)s] %(message)s"
        )

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = self._correlation_id(record)
        line = super().format(record)
        pairs = " ".join(
            f"{key}={'null' if value is None else value}"
            for key, value in sorted(_extras(record).items())
        )
        return f"{line} {pairs}" if pairs else line


class JsonLogFormatter(_UtcFormatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": self._correlation_id(record),
            **_extras(record),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


def setup_logging(settings: Settings) -> None:
    """Install one stream handler on the root logger; safe to call repeatedly."""

    level = logging.getLevelName(settings.log_level)
    handler = logging.StreamHandler()
    formatter = JsonLogFormatter() if settings.log_format == "json" else ConsoleLogFormatter()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in _ROUTED_LOGGERS:
        routed = logging.getLogger(name)
        routed.handlers.clear()
        routed.propagate = True
        routed.disabled = False
        routed.setLevel(level)

    logging.getLogger("l10n_api.request").setLevel(settings.effective_request_log_level)
    if not settings.access_log_enabled:
        logging.getLogger("uvicorn.access").disabled = True

    sql_level = settings.database_log_level or "WARNING"
    for name in _SQL_LOGGERS:
        logging.getLogger(name).setLevel(sql_level)


__all__ = [
    "ConsoleLogFormatter",
    "JsonLogFormatter",
    "SERVICE_NAME",
    "bind_request_context",
    "clear_request_context",
    "current_request_id",
    "log_context",
    "setup_logging",
]
