"""Shared pytest fixtures."""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

import l10n_db.models  # noqa: F401
from l10n_db.base import Base
from l10n_db.engine import build_engine
from l10n_db.settings import Settings as DatabaseSettings
from tests.utils import SeededCatalog, seed_catalog


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep tests deterministic regardless of shell/.env overrides.
    for key in list(os.environ):
        if key.startswith("L10N_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = build_engine(DatabaseSettings(_env_file=None, database_url="sqlite:///:memory:"))
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    session = factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def catalog(db_session: Session) -> SeededCatalog:
    seeded = seed_catalog(db_session)
    db_session.commit()
    return seeded
