"""Engine lifecycle and the per-request session dependencies.

Each request gets exactly one :class:`~sqlalchemy.orm.Session`; every service
built for that request shares it, so a catalog change and its audit events
commit (or roll back) together. Read endpoints never commit; an endpoint that
depends on :func:`get_db_write` commits once after the handler returns. The
session is function-scoped, so the commit happens before the response is
sent and a failed commit surfaces as a 500 instead of a false success.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from starlette.exceptions import HTTPException

from l10n_api.common.problem_details import ApiError
from l10n_api.core.auth.errors import (
    AuthenticationError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from l10n_api.settings import Settings, get_settings
from l10n_db.engine import build_engine

logger = logging.getLogger(__name__)

_CLIENT_ERRORS = (
    AuthenticationError,
    PermissionDeniedError,
    ResourceNotFoundError,
    RequestValidationError,
)


def init_db(app: FastAPI, settings: Settings | None = None) -> None:
    previous: Engine | None = getattr(app.state, "db_engine", None)
    if previous is not None:
        previous.dispose()
    engine = build_engine(settings or get_settings())
    app.state.db_engine = engine
    app.state.db_sessionmaker = sessionmaker(bind=engine, expire_on_commit=False)


def shutdown_db(app: FastAPI) -> None:
    engine: Engine | None = getattr(app.state, "db_engine", None)
    if engine is not None:
        engine.dispose()
    app.state.db_engine = None
    app.state.db_sessionmaker = None


def get_session_factory(app: FastAPI) -> sessionmaker[Session]:
    factory = getattr(app.state, "db_sessionmaker", None)
    if factory is None:
        raise RuntimeError("Database not initialized; init_db() runs in the app lifespan.")
    return factory


def _is_client_error(exc: BaseException) -> bool:
    if isinstance(exc, (HTTPException, ApiError)):
        return exc.status_code < 500
    return isinstance(exc, _CLIENT_ERRORS)


def _request_session(request: Request) -> Iterator[Session]:
    session = get_session_factory(request.app)()
    try:
        yield session
        if getattr(request.state, "db_force_write", False):
            session.commit()
        else:
            session.rollback()
    except BaseException as exc:
        session.rollback()
        if not _is_client_error(exc):
            logger.warning(
                "db.session.rollback",
                extra={"path": request.url.path, "method": request.method},
                exc_info=exc,
            )
        raise
    finally:
        session.close()


_SessionDep = Annotated[Session, Depends(_request_session, scope="function")]


def get_db_write(request: Request, session: _SessionDep) -> Session:
    request.state.db_force_write = True
    return session


def get_db_read(session: _SessionDep) -> Session:
    return session


__all__ = ["get_db_read", "get_db_write", "get_session_factory", "init_db", "shutdown_db"]
