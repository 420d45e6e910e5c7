"""Exception handlers rendering every API failure as Problem Details."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from l10n_api.common.logging import log_context
from l10n_api.common.problem_details import (
    PROBLEM_MEDIA_TYPE,
    ApiError,
    FieldError,
    field_errors,
    problem_for,
)
from l10n_api.core.auth.errors import (
    AuthenticationError,
    PermissionDeniedError,
    ResourceNotFoundError,
)

logger = logging.getLogger("l10n_api.errors")


def problem_response(
    request: Request,
    status_code: int,
    detail: str | None = None,
    *,
    errors: list[FieldError] | None = None,
    error_type: str | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    problem = problem_for(
        status_code,
        instance=request.url.path,
        request_id=getattr(request.state, "correlation_id", None),
        detail=detail,
        errors=errors,
        error_type=error_type,
    )
    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(),
        media_type=PROBLEM_MEDIA_TYPE,
        headers=dict(headers) if headers else None,
    )


def _detail_text(detail: Any) -> str | None:
    if detail is None or isinstance(detail, str):
        return detail
    return str(detail)


def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return problem_response(
        request,
        exc.status_code,
        exc.detail,
        errors=exc.errors,
        error_type=exc.error_type,
        headers=exc.headers,
    )


def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "http.error",
            extra=log_context(
                path=request.url.path, method=request.method, status_code=exc.status_code
            ),
        )
        return problem_response(request, exc.status_code)
    return problem_response(
        request, exc.status_code, _detail_text(exc.detail), headers=exc.headers
    )


def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return problem_response(request, 422, "Invalid request", errors=field_errors(exc.errors()))


def handle_authentication_error(request: Request, exc: AuthenticationError) -> JSONResponse:
    return problem_response(
        request,
        401,
        str(exc) or "Authentication required",
        headers={"WWW-Authenticate": "Bearer"},
    )


def handle_permission_denied(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    return problem_response(request, 403, str(exc) or "Forbidden")


def handle_not_found(request: Request, exc: ResourceNotFoundError) -> JSONResponse:
    return problem_response(request, 404, str(exc))


def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Log with a stack trace; the response never carries the exception text."""

    logger.exception(
        "unhandled_exception",
        extra=log_context(
            path=request.url.path,
            method=request.method,
            exception_type=type(exc).__name__,
        ),
    )
    return problem_response(request, 500, "Internal server error")


_HANDLERS: tuple[tuple[type[Exception], Callable[..., JSONResponse]], ...] = (
    (RequestValidationError, handle_validation_error),
    (HTTPException, handle_http_exception),
    (ApiError, handle_api_error),
    (AuthenticationError, handle_authentication_error),
    (PermissionDeniedError, handle_permission_denied),
    (ResourceNotFoundError, handle_not_found),
    (Exception, handle_unexpected_error),
)


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class, handler in _HANDLERS:
        app.add_exception_handler(exc_class, cast(Any, handler))


__all__ = [
    "handle_api_error",
    "handle_authentication_error",
    "handle_http_exception",
    "handle_not_found",
    "handle_permission_denied",
    "handle_unexpected_error",
    "handle_validation_error",
    "problem_response",
    "register_exception_handlers",
]
