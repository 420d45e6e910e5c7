"""Programmatic Alembic runner for the localization schema."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from importlib import resources

from alembic import command
from alembic.config import Config

from .engine import DatabaseSettings
from .settings import get_settings

__all__ = ["alembic_config", "downgrade_migrations", "run_migrations"]

logger = logging.getLogger(__name__)


@contextmanager
def alembic_config(settings: DatabaseSettings | None = None) -> Iterator[Config]:
    package = resources.files("l10n_db")
    with (
        resources.as_file(package / "alembic.ini") as alembic_ini,
        resources.as_file(package / "migrations") as migrations_dir,
    ):
        if not alembic_ini.exists():
            raise FileNotFoundError(f"Alembic config not found at {alembic_ini}")
        if not migrations_dir.exists():
            raise FileNotFoundError(f"Alembic migrations not found at {migrations_dir}")

        alembic_cfg = Config(str(alembic_ini))
        alembic_cfg.set_main_option("script_location", str(migrations_dir))
        resolved = settings or get_settings()
        alembic_cfg.attributes["settings"] = resolved
        alembic_cfg.attributes["configure_logger"] = False
        # ConfigParser treats % as interpolation; escape to preserve URL encoding.
        safe_url = str(resolved.database_url).replace("%", "%%")
        alembic_cfg.set_main_option("sqlalchemy.url", safe_url)
        yield alembic_cfg


def run_migrations(settings: DatabaseSettings | None = None, *, revision: str = "head") -> None:
    with alembic_config(settings) as alembic_cfg:
        logger.info("db.migrations.upgrade", extra={"revision": revision})
        command.upgrade(alembic_cfg, revision)


def downgrade_migrations(
    settings: DatabaseSettings | None = None, *, revision: str = "base"
) -> None:
    with alembic_config(settings) as alembic_cfg:
        logger.info("db.migrations.downgrade", extra={"revision": revision})
        command.downgrade(alembic_cfg, revision)
