"""Request middleware: correlation ids, access logging and CORS."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from l10n_api.settings import Settings

from .logging import bind_request_context, clear_request_context, log_context

REQUEST_ID_HEADER = "X-Request-ID"

access_logger = logging.getLogger("l10n_api.request")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a correlation id for the request and log its outcome."""

    def __init__(self, app, *, access_log: bool = True) -> None:
        super().__init__(app)
        self.access_log = access_log

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        request.state.correlation_id = request_id
        bind_request_context(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # The unhandled-exception handler already logged the traceback.
            access_logger.error(
                "request.error",
                extra=log_context(
                    path=request.url.path,
                    method=request.method,
                    duration_ms=_elapsed_ms(started),
                ),
            )
            clear_request_context()
            raise

        if self.access_log:
            access_logger.info(
                "request.complete",
                extra=log_context(
                    path=request.url.path,
                    method=request.method,
                    status_code=response.status_code,
                    duration_ms=_elapsed_ms(started),
                ),
            )
        clear_request_context()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000.0, 2)


def register_middleware(app: FastAPI, *, settings: Settings) -> None:
    if settings.server_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.server_cors_origins),
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
            allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
            expose_headers=[REQUEST_ID_HEADER],
        )
    app.add_middleware(RequestContextMiddleware, access_log=settings.access_log_enabled)


__all__ = ["REQUEST_ID_HEADER", "RequestContextMiddleware", "register_middleware"]
