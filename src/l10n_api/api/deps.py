"""Service factories used by API routers.

Routers import per-request sessions and service constructors from here so
every service in a request shares one session (and one transaction).
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from l10n_api.core.http.dependencies import SettingsDep
from l10n_api.db import get_db_read, get_db_write

if TYPE_CHECKING:
    from l10n_api.features.access.service import AccessService
    from l10n_api.features.audit.service import AuditService
    from l10n_api.features.catalog.service import CatalogService
    from l10n_api.features.transfer.service import TransferService

WriteSessionDep = Annotated[Session, Depends(get_db_write)]
ReadSessionDep = Annotated[Session, Depends(get_db_read)]


def _access_service(session: Session, settings) -> AccessService:
    from l10n_api.features.access.service import AccessService

    return AccessService(session=session, editor_write_scope=settings.editor_write_scope)


def _audit_service(session: Session, settings) -> AuditService:
    from l10n_api.features.audit.redaction import create_redaction_config
    from l10n_api.features.audit.service import AuditService

    return AuditService(
        session=session,
        redaction_config=create_redaction_config(
            max_value_length=settings.redaction_max_value_length
        ),
        default_window=timedelta(days=settings.events_default_window_days),
        max_window=timedelta(days=settings.events_max_window_days),
        slow_query_ms=settings.events_slow_query_ms,
    )


def _catalog_service(session: Session, settings) -> CatalogService:
    from l10n_api.features.catalog.service import CatalogService

    return CatalogService(
        session=session,
        access=_access_service(session, settings),
        audit=_audit_service(session, settings),
    )


def _transfer_service(session: Session, settings) -> TransferService:
    from l10n_api.features.transfer.service import TransferService

    return TransferService(session=session, audit=_audit_service(session, settings))


def get_access_service_read(session: ReadSessionDep, settings: SettingsDep) -> AccessService:
    return _access_service(session, settings)


def get_audit_service_read(session: ReadSessionDep, settings: SettingsDep) -> AuditService:
    return _audit_service(session, settings)


def get_catalog_service(session: WriteSessionDep, settings: SettingsDep) -> CatalogService:
    return _catalog_service(session, settings)


def get_catalog_service_read(session: ReadSessionDep, settings: SettingsDep) -> CatalogService:
    return _catalog_service(session, settings)


def get_access_service(session: WriteSessionDep, settings: SettingsDep) -> AccessService:
    return _access_service(session, settings)


def get_transfer_service(session: WriteSessionDep, settings: SettingsDep) -> TransferService:
    return _transfer_service(session, settings)


__all__ = [
    "ReadSessionDep",
    "WriteSessionDep",
    "get_access_service",
    "get_access_service_read",
    "get_audit_service_read",
    "get_catalog_service",
    "get_catalog_service_read",
    "get_transfer_service",
]
