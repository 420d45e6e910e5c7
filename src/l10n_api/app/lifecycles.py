"""FastAPI lifespan helpers for the l10n application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import Lifespan
from sqlalchemy.engine import make_url

from l10n_api.common.logging import log_context
from l10n_api.db import init_db, shutdown_db
from l10n_api.settings import Settings

logger = logging.getLogger(__name__)


def create_application_lifespan(
    *,
    settings: Settings,
) -> Lifespan[FastAPI]:
    """Return the FastAPI lifespan handler used by the app factory."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.settings = settings
        logger.info(
            "l10n_api.startup",
            extra=log_context(
                logging_level=settings.log_level,
                auth_disabled=bool(settings.auth_disabled),
                editor_write_scope=settings.editor_write_scope,
                version=settings.app_version,
            ),
        )
        if settings.auth_disabled:
            logger.warning("auth.disabled", extra=log_context(auth_disabled=True))
        elif settings.jwt_secret is None:
            logger.warning(
                "auth.jwt_secret.missing",
                extra=log_context(detail="all bearer tokens will be rejected"),
            )

        if not settings.database_url:
            raise RuntimeError("Database settings are required (set L10N_DATABASE_URL).")
        safe_url = make_url(str(settings.database_url)).render_as_string(hide_password=True)
        logger.info("db.init.start", extra={"database_url": safe_url})
        init_db(app, settings)
        logger.info("db.init.complete", extra={"database_url": safe_url})
        try:
            yield
        finally:
            shutdown_db(app)
            logger.info("l10n_api.shutdown")

    return lifespan


__all__ = ["create_application_lifespan"]
