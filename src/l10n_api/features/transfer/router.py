from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select

from l10n_api.api.deps import WriteSessionDep, get_access_service, get_transfer_service
from l10n_api.common.problem_details import validation_error
from l10n_api.core.auth.errors import ResourceNotFoundError
from l10n_api.core.http import IdentityDep
from l10n_api.core.rbac.policy import Permission
from l10n_db.models import ContentStatus, Service

from ..access.service import AccessService
from ..access.types import ResourceKind, ResourceRef
from .schemas import DiffReport, ExportPayload, ImportRequest, ImportResult
from .service import (
    ExportValidationError,
    ImportConflictError,
    ImportValidationError,
    TransferService,
    parse_locales,
)

router = APIRouter(tags=["transfer"])

AccessDep = Annotated[AccessService, Depends(get_access_service)]
TransferDep = Annotated[TransferService, Depends(get_transfer_service)]


def _load_service(session: WriteSessionDep, code: str) -> Service:
    service = session.execute(select(Service).where(Service.code == code)).scalar_one_or_none()
    if service is None:
        raise ResourceNotFoundError(ResourceKind.SERVICE.value, code)
    return service


@router.post(
    "/import",
    response_model=DiffReport | ImportResult,
    response_model_exclude_none=True,
    summary="Dry-run or apply a bulk import into one service",
    responses={201: {"model": ImportResult}, 200: {"model": DiffReport}},
)
def import_keys(
    payload: ImportRequest,
    identity: IdentityDep,
    session: WriteSessionDep,
    access: AccessDep,
    transfer: TransferDep,
    response: Response,
) -> DiffReport | ImportResult:
    service = _load_service(session, payload.service)
    access.require_access(
        identity, ResourceRef(ResourceKind.SERVICE, service.id), Permission.WRITE
    )

    try:
        if payload.dry_run:
            response.status_code = status.HTTP_200_OK
            return transfer.plan_import(service.id, payload.data.keys)
        result = transfer.apply_import(service, payload.data.keys, identity.subject_id)
    except ImportValidationError as exc:
        raise validation_error(str(exc), exc.errors) from exc
    except ImportConflictError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    response.status_code = status.HTTP_201_CREATED
    return result


@router.get(
    "/export",
    response_model=ExportPayload,
    response_model_exclude_none=True,
    summary="Export one service's keys and translations",
)
def export_keys(
    identity: IdentityDep,
    session: WriteSessionDep,
    access: AccessDep,
    transfer: TransferDep,
    service: Annotated[str, Query(min_length=1, description="Service code")],
    locales: Annotated[str | None, Query(description="Comma-separated locales")] = None,
    status_filter: Annotated[ContentStatus | None, Query(alias="status")] = None,
    include_empty: Annotated[bool, Query(alias="includeEmpty")] = False,
) -> ExportPayload:
    try:
        wanted_locales = parse_locales(locales)
    except ExportValidationError as exc:
        raise validation_error(str(exc), exc.errors) from exc

    target = _load_service(session, service)
    access.require_access(identity, ResourceRef(ResourceKind.SERVICE, target.id), Permission.READ)

    payload = transfer.export_service(
        target,
        locales=wanted_locales,
        status=status_filter,
        include_empty=include_empty,
    )
    transfer.record_export(target, payload, identity.subject_id)
    return payload


__all__ = ["router"]
