"""Key, translation, service and release bundle operations.

Every mutation runs an access check first, then writes the row and its
audit event in the caller's session. Nothing here commits; the request
session commits once the handler returns.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from l10n_api.common.logging import log_context
from l10n_api.core.auth.errors import ResourceNotFoundError
from l10n_api.core.auth.identity import AuthenticatedIdentity
from l10n_api.core.rbac.policy import Permission
from l10n_db.base import new_id
from l10n_db.models import (
    AuditAction,
    AuditEntityType,
    ContentStatus,
    L10nKey,
    Namespace,
    ReleaseBundle,
    Service,
    Translation,
    compute_checksum,
)

from ..access.service import AccessService
from ..access.types import ResourceKind, ResourceRef
from ..audit.service import AuditService
from .schemas import (
    KeyCreate,
    KeyUpdate,
    ReleaseBundleCreate,
    TranslationCreate,
    TranslationUpdate,
)

logger = logging.getLogger(__name__)

KEY_LIST_LIMIT = 100


class CatalogError(Exception):
    """Base class for catalog domain errors."""


class KeyConflictError(CatalogError):
    """Raised when a key id is already taken."""


class TranslationConflictError(CatalogError):
    """Raised when a key already has a translation for the locale."""


class CatalogValidationError(CatalogError):
    """Raised when a payload references rows that do not exist.

    ``errors`` holds ``(field path, message)`` pairs for the offending fields.
    """

    def __init__(self, message: str, *, errors: Sequence[tuple[str, str]] = ()) -> None:
        super().__init__(message)
        self.errors = list(errors)


def key_snapshot(key: L10nKey) -> dict[str, Any]:
    return {
        "id": key.id,
        "serviceId": key.service_id,
        "namespaceId": key.namespace_id,
        "keyName": key.key_name,
        "tags": sorted(key.tags or []),
        "status": ContentStatus(key.status).value,
    }


def translation_snapshot(translation: Translation) -> dict[str, Any]:
    return {
        "id": translation.id,
        "keyId": translation.key_id,
        "locale": translation.locale,
        "value": translation.value,
        "status": ContentStatus(translation.status).value,
        "version": translation.version,
    }


def release_bundle_snapshot(bundle: ReleaseBundle) -> dict[str, Any]:
    return {
        "id": bundle.id,
        "serviceId": bundle.service_id,
        "locales": list(bundle.locales),
        "snapshotRef": bundle.snapshot_ref,
    }


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CatalogService:
    """Service-scoped catalog CRUD with access checks and auditing."""

    def __init__(self, *, session: Session, access: AccessService, audit: AuditService) -> None:
        self._session = session
        self._access = access
        self._audit = audit

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------

    def find_service_by_code(self, code: str) -> Service | None:
        stmt = select(Service).where(Service.code == code)
        return self._session.execute(stmt).scalar_one_or_none()

    def list_services(self, identity: AuthenticatedIdentity) -> list[Service]:
        stmt = (
            select(Service)
            .where(self._access.filter_for(identity, Permission.READ, ResourceKind.SERVICE))
            .order_by(Service.code)
        )
        return list(self._session.execute(stmt).scalars())

    def get_service(
        self,
        identity: AuthenticatedIdentity,
        code: str,
        *,
        permission: Permission = Permission.READ,
    ) -> Service:
        service = self.find_service_by_code(code)
        if service is None:
            raise ResourceNotFoundError(ResourceKind.SERVICE.value, code)
        self._access.require_access(
            identity, ResourceRef(ResourceKind.SERVICE, service.id), permission
        )
        return service

    def list_release_bundles(
        self, identity: AuthenticatedIdentity, code: str
    ) -> list[ReleaseBundle]:
        service = self.get_service(identity, code)
        stmt = (
            select(ReleaseBundle)
            .where(ReleaseBundle.service_id == service.id)
            .order_by(ReleaseBundle.created_at.desc(), ReleaseBundle.id)
        )
        return list(self._session.execute(stmt).scalars())

    def create_release_bundle(
        self,
        identity: AuthenticatedIdentity,
        code: str,
        payload: ReleaseBundleCreate,
    ) -> ReleaseBundle:
        service = self.get_service(identity, code, permission=Permission.WRITE)
        bundle = ReleaseBundle(
            id=new_id(),
            service_id=service.id,
            locales=sorted(set(payload.locales)),
            snapshot_ref=payload.snapshot_ref,
        )
        self._session.add(bundle)
        self._session.flush()
        self._audit.log_event(
            actor=identity.subject_id,
            action=AuditAction.CREATE,
            entity_type=AuditEntityType.RELEASE_BUNDLE,
            entity_id=bundle.id,
            after=release_bundle_snapshot(bundle),
        )
        return bundle

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def list_keys(
        self,
        identity: AuthenticatedIdentity,
        *,
        prefix: str | None = None,
        service_code: str | None = None,
        limit: int = KEY_LIST_LIMIT,
    ) -> list[L10nKey]:
        """Keys the caller can read, filtered in the query rather than after it."""

        stmt = select(L10nKey).where(
            self._access.filter_for(identity, Permission.READ, ResourceKind.KEY)
        )
        if service_code:
            service = self.find_service_by_code(service_code)
            if service is None:
                return []
            stmt = stmt.where(L10nKey.service_id == service.id)
        if prefix:
            stmt = stmt.where(L10nKey.key_name.ilike(f"{_escape_like(prefix)}%", escape="\\"))
        stmt = stmt.order_by(L10nKey.key_name, L10nKey.id).limit(min(limit, KEY_LIST_LIMIT))
        return list(self._session.execute(stmt).scalars())

    def get_key(
        self,
        identity: AuthenticatedIdentity,
        key_id: str,
        *,
        permission: Permission = Permission.READ,
    ) -> L10nKey:
        self._access.require_access(identity, ResourceRef(ResourceKind.KEY, key_id), permission)
        stmt = (
            select(L10nKey)
            .options(selectinload(L10nKey.translations))
            .where(L10nKey.id == key_id)
        )
        key = self._session.execute(stmt).scalar_one_or_none()
        if key is None:
            raise ResourceNotFoundError(ResourceKind.KEY.value, key_id)
        return key

    def _check_namespace(self, namespace_id: str | None) -> None:
        if namespace_id is None:
            return
        if self._session.get(Namespace, namespace_id) is None:
            message = f"Namespace '{namespace_id}' does not exist"
            raise CatalogValidationError(message, errors=[("namespaceId", message)])

    def create_key(self, identity: AuthenticatedIdentity, payload: KeyCreate) -> L10nKey:
        service_id: str | None = None
        if payload.service_code is not None:
            service = self.find_service_by_code(payload.service_code)
            if service is None:
                raise ResourceNotFoundError(ResourceKind.SERVICE.value, payload.service_code)
            service_id = service.id
        self._access.require_create_in(identity, service_id)

        key_id = payload.id or new_id()
        if self._session.get(L10nKey, key_id) is not None:
            raise KeyConflictError(f"Key '{key_id}' already exists")
        self._check_namespace(payload.namespace_id)

        key = L10nKey(
            id=key_id,
            service_id=service_id,
            namespace_id=payload.namespace_id,
            key_name=payload.key_name,
            tags=list(payload.tags),
            status=ContentStatus(payload.status),
        )
        self._session.add(key)
        self._session.flush()
        self._audit.log_event(
            actor=identity.subject_id,
            action=AuditAction.CREATE,
            entity_type=AuditEntityType.KEY,
            entity_id=key.id,
            after=key_snapshot(key),
        )
        logger.info(
            "catalog.key.created",
            extra=log_context(
                subject_id=identity.subject_id,
                service_id=service_id,
                resource_kind=ResourceKind.KEY.value,
                resource_id=key.id,
            ),
        )
        return key

    def update_key(
        self,
        identity: AuthenticatedIdentity,
        key_id: str,
        payload: KeyUpdate,
    ) -> L10nKey:
        key = self.get_key(identity, key_id, permission=Permission.WRITE)
        before = key_snapshot(key)

        changes = payload.model_dump(exclude_unset=True, by_alias=False, exclude_none=False)
        if "namespace_id" in changes:
            self._check_namespace(changes["namespace_id"])
            key.namespace_id = changes["namespace_id"]
        if changes.get("key_name") is not None:
            key.key_name = changes["key_name"]
        if changes.get("tags") is not None:
            key.tags = list(changes["tags"])
        if changes.get("status") is not None:
            key.status = ContentStatus(changes["status"])

        after = key_snapshot(key)
        if after == before:
            return key
        self._session.flush()
        self._audit.log_event(
            actor=identity.subject_id,
            action=AuditAction.UPDATE,
            entity_type=AuditEntityType.KEY,
            entity_id=key.id,
            before=before,
            after=after,
        )
        return key

    def delete_key(self, identity: AuthenticatedIdentity, key_id: str) -> None:
        key = self.get_key(identity, key_id, permission=Permission.WRITE)
        before = key_snapshot(key)
        removed = [translation_snapshot(translation) for translation in key.translations]
        self._session.delete(key)
        self._session.flush()
        # Translations go with their key; each removal gets its own event.
        for snapshot in removed:
            self._audit.log_event(
                actor=identity.subject_id,
                action=AuditAction.DELETE,
                entity_type=AuditEntityType.TRANSLATION,
                entity_id=snapshot["id"],
                before=snapshot,
            )
        self._audit.log_event(
            actor=identity.subject_id,
            action=AuditAction.DELETE,
            entity_type=AuditEntityType.KEY,
            entity_id=key_id,
            before=before,
        )

    # ------------------------------------------------------------------
    # Translations
    # ------------------------------------------------------------------

    def get_translation(
        self,
        identity: AuthenticatedIdentity,
        translation_id: str,
        *,
        permission: Permission = Permission.READ,
    ) -> Translation:
        self._access.require_access(
            identity, ResourceRef(ResourceKind.TRANSLATION, translation_id), permission
        )
        translation = self._session.get(Translation, translation_id)
        if translation is None:
            raise ResourceNotFoundError(ResourceKind.TRANSLATION.value, translation_id)
        return translation

    def _locale_taken(self, key_id: str, locale: str, *, exclude_id: str | None = None) -> bool:
        stmt = select(Translation.id).where(
            Translation.key_id == key_id,
            Translation.locale == locale,
        )
        if exclude_id is not None:
            stmt = stmt.where(Translation.id != exclude_id)
        return self._session.execute(stmt).first() is not None

    def create_translation(
        self,
        identity: AuthenticatedIdentity,
        key_id: str,
        payload: TranslationCreate,
    ) -> Translation:
        self._access.require_access(
            identity, ResourceRef(ResourceKind.KEY, key_id), Permission.WRITE
        )
        if self._locale_taken(key_id, payload.locale):
            raise TranslationConflictError(
                f"Key '{key_id}' already has a '{payload.locale}' translation"
            )

        translation = Translation(
            id=new_id(),
            key_id=key_id,
            locale=payload.locale,
            status=ContentStatus(payload.status),
            version=1,
        )
        translation.set_value(payload.value)
        self._session.add(translation)
        self._session.flush()
        self._audit.log_event(
            actor=identity.subject_id,
            action=AuditAction.CREATE,
            entity_type=AuditEntityType.TRANSLATION,
            entity_id=translation.id,
            after=translation_snapshot(translation),
        )
        return translation

    def update_translation(
        self,
        identity: AuthenticatedIdentity,
        translation_id: str,
        payload: TranslationUpdate,
    ) -> Translation:
        """Apply a partial update and bump the version by exactly one."""

        translation = self.get_translation(identity, translation_id, permission=Permission.WRITE)
        before = translation_snapshot(translation)

        if payload.locale is not None and payload.locale != translation.locale:
            if self._locale_taken(translation.key_id, payload.locale, exclude_id=translation.id):
                raise TranslationConflictError(
                    f"Key '{translation.key_id}' already has a '{payload.locale}' translation"
                )
            translation.locale = payload.locale
        if payload.value is not None:
            translation.set_value(payload.value)
        elif translation.checksum is None:
            translation.checksum = compute_checksum(translation.value)
        if payload.status is not None:
            translation.status = ContentStatus(payload.status)
        translation.version = translation.version + 1

        self._session.flush()
        self._audit.log_event(
            actor=identity.subject_id,
            action=AuditAction.UPDATE,
            entity_type=AuditEntityType.TRANSLATION,
            entity_id=translation.id,
            before=before,
            after=translation_snapshot(translation),
        )
        return translation

    def delete_translation(self, identity: AuthenticatedIdentity, translation_id: str) -> None:
        translation = self.get_translation(identity, translation_id, permission=Permission.WRITE)
        before = translation_snapshot(translation)
        self._session.delete(translation)
        self._session.flush()
        self._audit.log_event(
            actor=identity.subject_id,
            action=AuditAction.DELETE,
            entity_type=AuditEntityType.TRANSLATION,
            entity_id=translation_id,
            before=before,
        )


__all__ = [
    "CatalogError",
    "CatalogService",
    "CatalogValidationError",
    "KeyConflictError",
    "TranslationConflictError",
    "key_snapshot",
    "release_bundle_snapshot",
    "translation_snapshot",
]
