"""Alembic environment for the l10n schema.

Programmatic callers (``l10n_db.migrations_runner``) pass their settings object
through ``config.attributes["settings"]``; the ``alembic`` command line falls
back to ``sqlalchemy.url`` or the ``L10N_DATABASE_URL`` environment.
"""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context

import l10n_db.models  # noqa: F401  (registers tables on Base.metadata)
from l10n_db.base import Base
from l10n_db.engine import DatabaseSettings, build_engine
from l10n_db.settings import Settings

config = context.config
target_metadata = Base.metadata

if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name)


def _settings() -> DatabaseSettings:
    provided = config.attributes.get("settings")
    if provided is not None:
        return provided
    url = config.get_main_option("sqlalchemy.url")
    if url:
        return Settings(_env_file=None, database_url=url)
    return Settings()


def _migrate(**options) -> None:
    # Batch mode lets ALTER TABLE work on SQLite.
    context.configure(target_metadata=target_metadata, render_as_batch=True, **options)
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    _migrate(
        url=str(_settings().database_url),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    engine = build_engine(_settings())
    try:
        with engine.connect() as connection:
            _migrate(connection=connection)
    finally:
        engine.dispose()
