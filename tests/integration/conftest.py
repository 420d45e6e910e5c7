from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session, sessionmaker

from l10n_api.main import create_app
from l10n_api.settings import Settings
from l10n_db.migrations_runner import run_migrations
from tests.utils import TEST_JWT_SECRET, SeededCatalog, seed_catalog


def _build_test_settings(tmp_path: Path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite:///{tmp_path / 'l10n-test.sqlite'}",
        "jwt_secret": TEST_JWT_SECRET,
        "log_level": "WARNING",
        "access_log_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    settings = _build_test_settings(tmp_path)
    run_migrations(settings)
    return settings


@pytest.fixture()
def app(settings: Settings) -> FastAPI:
    return create_app(settings=settings)


@pytest_asyncio.fixture()
async def started_app(app: FastAPI) -> AsyncIterator[FastAPI]:
    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture()
async def async_client(started_app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=started_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture()
def db_sessionmaker(started_app: FastAPI) -> sessionmaker[Session]:
    return started_app.state.db_sessionmaker


@pytest.fixture()
def catalog(db_sessionmaker: sessionmaker[Session]) -> SeededCatalog:
    with db_sessionmaker() as session:
        seeded = seed_catalog(session)
        session.commit()
    return seeded


@pytest_asyncio.fixture()
async def error_client(started_app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Client that receives the 500 response instead of the re-raised exception."""

    transport = ASGITransport(app=started_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
