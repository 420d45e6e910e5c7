"""Sync engine factory: SQLite for development and tests, PostgreSQL in production."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.pool import StaticPool

from .settings import DatabaseSettingsProtocol

logger = logging.getLogger(__name__)

DatabaseSettings = DatabaseSettingsProtocol


def is_sqlite_memory_url(url: URL) -> bool:
    database = (url.database or "").strip()
    if database in ("", ":memory:"):
        return True
    return database.startswith("file:") and url.query.get("mode") == "memory"


def _sqlite_file(url: URL) -> Path | None:
    database = (url.database or "").strip()
    if is_sqlite_memory_url(url) or database.startswith("file:"):
        return None
    return Path(database).resolve()


def _sqlite_pragmas(dbapi_connection: Any, _record: Any) -> None:
    # Cascades on translation/owner rows rely on SQLite enforcing foreign keys.
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def _sqlite_engine(url: URL, echo: bool) -> Engine:
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if is_sqlite_memory_url(url):
        # One shared connection, otherwise every checkout sees an empty database.
        options["poolclass"] = StaticPool
    else:
        path = _sqlite_file(url)
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(url, echo=echo, **options)
    event.listen(engine, "connect", _sqlite_pragmas)
    return engine


def build_engine(settings: DatabaseSettings) -> Engine:
    url = make_url(str(settings.database_url))
    backend = url.get_backend_name()
    if backend == "sqlite":
        engine = _sqlite_engine(url, settings.database_echo)
    else:
        engine = create_engine(
            url,
            echo=settings.database_echo,
            pool_pre_ping=True,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_recycle=settings.database_pool_recycle,
        )
    logger.debug("db.engine.created", extra={"backend": backend, "database": url.database})
    return engine


__all__ = ["DatabaseSettings", "build_engine", "is_sqlite_memory_url"]
