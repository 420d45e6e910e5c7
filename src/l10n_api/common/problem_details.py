"""Problem Details (``application/problem+json``) payloads for the l10n API."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

from pydantic import Field

from .schema import BaseSchema

PROBLEM_MEDIA_TYPE = "application/problem+json"

# Location prefixes FastAPI puts in front of every validation error path.
_LOCATION_ROOTS = frozenset({"body", "query", "path", "header", "cookie"})


class ProblemKind(NamedTuple):
    type: str
    title: str


PROBLEM_KINDS: dict[int, ProblemKind] = {
    400: ProblemKind("bad_request", "Bad request"),
    401: ProblemKind("unauthorized", "Authentication required"),
    403: ProblemKind("forbidden", "Not allowed"),
    404: ProblemKind("not_found", "Resource not found"),
    405: ProblemKind("method_not_allowed", "Method not allowed"),
    409: ProblemKind("conflict", "Conflicting change"),
    422: ProblemKind("validation_error", "Validation error"),
    500: ProblemKind("internal_error", "Internal server error"),
    503: ProblemKind("service_unavailable", "Service unavailable"),
}


def problem_kind(status_code: int) -> ProblemKind:
    return PROBLEM_KINDS.get(status_code, ProblemKind("error", "Error"))


class FieldError(BaseSchema):
    """One invalid input location, e.g. ``translations[0].locale``."""

    path: str | None = None
    message: str
    code: str | None = None


class ProblemDetails(BaseSchema):
    type: str
    title: str
    status: int
    detail: str | None = None
    instance: str
    request_id: str | None = Field(default=None, alias="requestId")
    errors: list[FieldError] | None = None


class ApiError(RuntimeError):
    """An error the API reports as-is, with an explicit problem type."""

    def __init__(
        self,
        status_code: int,
        detail: str | None = None,
        *,
        error_type: str | None = None,
        errors: list[FieldError] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        kind = problem_kind(status_code)
        super().__init__(detail or kind.title)
        self.status_code = status_code
        self.error_type = error_type or kind.type
        self.detail = detail
        self.errors = errors
        self.headers = dict(headers) if headers else None


def validation_error(detail: str, issues: Iterable[tuple[str, str]]) -> ApiError:
    """422 ``validation_error`` with one entry per ``(path, message)`` issue."""

    errors = [FieldError(path=path, message=message, code="invalid") for path, message in issues]
    return ApiError(422, detail, errors=errors)


def error_path(loc: Iterable[Any]) -> str | None:
    """Render a pydantic ``loc`` as ``keys[0].locale``, dropping the location root."""

    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        elif part in _LOCATION_ROOTS and not path:
            continue
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or None


def field_errors(errors: Iterable[Mapping[str, Any]]) -> list[FieldError]:
    return [
        FieldError(
            path=error_path(error.get("loc") or ()),
            message=str(error.get("msg") or "Invalid value"),
            code=error.get("type"),
        )
        for error in errors
    ]


def problem_for(
    status_code: int,
    *,
    instance: str,
    request_id: str | None,
    detail: str | None = None,
    errors: list[FieldError] | None = None,
    error_type: str | None = None,
) -> ProblemDetails:
    kind = problem_kind(status_code)
    return ProblemDetails(
        type=error_type or kind.type,
        title=kind.title,
        status=status_code,
        detail=detail,
        instance=instance,
        request_id=request_id,
        errors=errors or None,
    )


__all__ = [
    "PROBLEM_KINDS",
    "PROBLEM_MEDIA_TYPE",
    "ApiError",
    "FieldError",
    "ProblemDetails",
    "ProblemKind",
    "error_path",
    "field_errors",
    "problem_for",
    "problem_kind",
    "validation_error",
]
