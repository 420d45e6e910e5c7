from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from l10n_api.api.deps import get_audit_service_read
from l10n_api.core.auth.identity import AuthenticatedIdentity
from l10n_api.core.http import require_capability
from l10n_api.core.rbac.policy import Permission
from l10n_db.models import AuditAction, AuditEntityType

from .schemas import EventListResponse, EventOut, EventPagination, EventWindow
from .service import MAX_PAGE_SIZE, AuditService, EventFilters, EventQueryError

router = APIRouter(tags=["events"])

AuditReadDep = Annotated[AuditService, Depends(get_audit_service_read)]
ViewerDep = Annotated[AuthenticatedIdentity, Depends(require_capability(Permission.READ))]


@router.get(
    "/events",
    response_model=EventListResponse,
    response_model_exclude_none=True,
    summary="List audit events",
)
def list_events(
    _identity: ViewerDep,
    audit: AuditReadDep,
    entity: Annotated[AuditEntityType | None, Query(description="Entity type")] = None,
    entity_id: Annotated[str | None, Query(alias="entityId")] = None,
    actor: Annotated[str | None, Query()] = None,
    action: Annotated[AuditAction | None, Query()] = None,
    start_date: Annotated[datetime | None, Query(alias="startDate")] = None,
    end_date: Annotated[datetime | None, Query(alias="endDate")] = None,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> EventListResponse:
    filters = EventFilters(
        entity_type=entity,
        entity_id=entity_id,
        actor=actor,
        action=action,
        start=start_date,
        end=end_date,
    )
    try:
        page = audit.list_events(filters, limit=limit, offset=offset)
    except EventQueryError as exc:
        raise HTTPException(422, detail=str(exc)) from exc

    return EventListResponse(
        items=[EventOut.model_validate(item) for item in page.items],
        pagination=EventPagination(
            limit=page.limit,
            offset=page.offset,
            count=len(page.items),
            total=page.total,
        ),
        window=EventWindow(start_date=page.start, end_date=page.end),
    )


__all__ = ["router"]
