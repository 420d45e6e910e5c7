"""Application factory for the l10n key/translation API.

``uvicorn l10n_api.main:create_app --factory`` is the production entry point;
tests call :func:`create_app` with explicit settings.
"""

from __future__ import annotations

from fastapi import FastAPI

from .api.v1.router import create_api_router
from .app.lifecycles import create_application_lifespan
from .common.exceptions import register_exception_handlers
from .common.logging import setup_logging
from .common.middleware import register_middleware
from .features.health.router import router as health_router
from .settings import Settings, get_settings

API_PREFIX = "/api"


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    # Logging is configured before anything below emits records.
    setup_logging(settings)

    docs = settings.docs_enabled
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs" if docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=create_application_lifespan(settings=settings),
    )
    app.state.settings = settings

    register_exception_handlers(app)
    register_middleware(app, settings=settings)

    app.include_router(health_router)
    app.include_router(create_api_router(), prefix=API_PREFIX)
    return app


__all__ = ["API_PREFIX", "create_app"]
