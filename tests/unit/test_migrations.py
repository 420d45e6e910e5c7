from __future__ import annotations

from pathlib import Path

from sqlalchemy import inspect

from l10n_db.engine import build_engine
from l10n_db.migrations_runner import downgrade_migrations, run_migrations
from l10n_db.settings import Settings

EXPECTED_TABLES = {
    "alembic_version",
    "event",
    "l10n_key",
    "namespace",
    "release_bundle",
    "service",
    "service_owner",
    "translation",
}


def test_upgrade_and_downgrade_round_trip(tmp_path: Path) -> None:
    settings = Settings(_env_file=None, database_url=f"sqlite:///{tmp_path / 'schema.sqlite'}")

    run_migrations(settings)
    engine = build_engine(settings)
    try:
        assert set(inspect(engine).get_table_names()) == EXPECTED_TABLES

        downgrade_migrations(settings)
        assert set(inspect(engine).get_table_names()) == {"alembic_version"}
    finally:
        engine.dispose()
