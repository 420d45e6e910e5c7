"""Operational liveness/readiness endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from l10n_api.api.deps import ReadSessionDep
from l10n_api.common.problem_details import ApiError
from l10n_api.core.http import SettingsDep
from l10n_db.base import utc_now

from .schemas import HealthCheckResponse, HealthComponentStatus

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Service liveness probe",
    response_model_exclude_none=True,
)
def read_liveness(settings: SettingsDep) -> HealthCheckResponse:
    """Return liveness status without touching the database."""

    return HealthCheckResponse(
        status="ok",
        timestamp=utc_now(),
        components=[
            HealthComponentStatus(name="api", status="available", detail=f"v{settings.app_version}")
        ],
    )


@router.get(
    "/ready",
    response_model=HealthCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Service readiness probe",
    response_model_exclude_none=True,
)
def read_readiness(settings: SettingsDep, db: ReadSessionDep) -> HealthCheckResponse:
    """Return readiness status after checking the database."""

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise ApiError(status.HTTP_503_SERVICE_UNAVAILABLE, "Database unavailable") from exc

    return HealthCheckResponse(
        status="ok",
        timestamp=utc_now(),
        components=[
            HealthComponentStatus(
                name="api", status="available", detail=f"v{settings.app_version}"
            ),
            HealthComponentStatus(name="database", status="available", detail="connected"),
        ],
    )


__all__ = ["router"]
