"""Pydantic schemas for the health endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from l10n_api.common.schema import BaseSchema


class HealthComponentStatus(BaseSchema):
    """Represents the health of an individual system component."""

    name: str = Field(..., description="Component identifier.")
    status: Literal["available", "unavailable"] = Field(
        ..., description="High-level component status flag."
    )
    detail: str | None = Field(default=None, description="Optional note about the component.")


class HealthCheckResponse(BaseSchema):
    """Top-level payload returned by `/health` and `/ready`."""

    status: Literal["ok", "error"] = Field(..., description="Overall health indicator.")
    timestamp: datetime = Field(..., description="UTC timestamp for when the check executed.")
    components: list[HealthComponentStatus] = Field(default_factory=list)
