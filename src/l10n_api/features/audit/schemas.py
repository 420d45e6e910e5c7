from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field

from l10n_api.common.schema import BaseSchema


class EventOut(BaseSchema):
    """Audit event with ``before``/``after`` already redacted."""

    id: str
    actor: str
    action: str
    entity_type: str = Field(alias="entityType")
    entity_id: str = Field(alias="entityId")
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    created_at: datetime = Field(alias="createdAt")


class EventPagination(BaseSchema):
    limit: int
    offset: int
    count: int
    total: int


class EventWindow(BaseSchema):
    start_date: datetime = Field(alias="startDate")
    end_date: datetime = Field(alias="endDate")


class EventListResponse(BaseSchema):
    items: list[EventOut]
    pagination: EventPagination
    window: EventWindow


__all__ = ["EventListResponse", "EventOut", "EventPagination", "EventWindow"]
