"""Point access decisions for services, keys and translations."""

from __future__ import annotations

import logging

from sqlalchemy import ColumnElement, exists, select
from sqlalchemy.orm import Session

from l10n_api.common.logging import log_context
from l10n_api.core.auth.errors import (
    AuthenticationError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from l10n_api.core.auth.identity import AuthenticatedIdentity, Identity
from l10n_api.core.rbac.policy import Permission, has_capability, is_admin
from l10n_api.settings import EditorWriteScope
from l10n_db.models import L10nKey, Service, ServiceOwner, Translation

from .filters import build_access_filter, role_fallback_allows_any_service
from .types import OwnershipChain, ResourceKind, ResourceRef

logger = logging.getLogger("l10n_api.access")


def decide(
    identity: Identity,
    chain: OwnershipChain | None,
    permission: Permission,
    *,
    editor_write_scope: EditorWriteScope = "any_service",
) -> bool:
    """Pure access decision over an already-walked ownership chain."""

    if not isinstance(identity, AuthenticatedIdentity):
        return False
    if is_admin(identity):
        return True
    if chain is None:
        return False
    if chain.service_id is None:
        return has_capability(identity, permission)
    if chain.is_owner:
        return True
    return role_fallback_allows_any_service(identity, permission, editor_write_scope)


class AccessService:
    """Resolve whether an identity may read or write a resource."""

    def __init__(
        self,
        *,
        session: Session,
        editor_write_scope: EditorWriteScope = "any_service",
    ) -> None:
        self._session = session
        self._editor_write_scope = editor_write_scope

    # ------------------------------------------------------------------
    # Chain walk
    # ------------------------------------------------------------------

    def resolve_chain(self, ref: ResourceRef, identity: Identity) -> OwnershipChain | None:
        """Walk ``ref`` up to its service; ``None`` when the resource does not exist."""

        if ref.kind is ResourceKind.SERVICE:
            found = self._session.execute(
                select(Service.id).where(Service.id == ref.id)
            ).scalar_one_or_none()
            if found is None:
                return None
            service_id: str | None = found
        elif ref.kind is ResourceKind.KEY:
            row = self._session.execute(
                select(L10nKey.id, L10nKey.service_id).where(L10nKey.id == ref.id)
            ).one_or_none()
            if row is None:
                return None
            service_id = row.service_id
        else:
            row = self._session.execute(
                select(Translation.id, L10nKey.service_id)
                .join(L10nKey, Translation.key_id == L10nKey.id)
                .where(Translation.id == ref.id)
            ).one_or_none()
            if row is None:
                return None
            service_id = row.service_id

        return OwnershipChain(
            resource=ref,
            service_id=service_id,
            is_owner=self._is_owner(service_id, identity),
        )

    def _is_owner(self, service_id: str | None, identity: Identity) -> bool:
        if service_id is None or not isinstance(identity, AuthenticatedIdentity):
            return False
        stmt = select(
            exists().where(
                ServiceOwner.service_id == service_id,
                ServiceOwner.subject_id == identity.subject_id,
            )
        )
        return bool(self._session.execute(stmt).scalar())

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def can_access(self, identity: Identity, ref: ResourceRef, permission: Permission) -> bool:
        if not isinstance(identity, AuthenticatedIdentity):
            return False
        if is_admin(identity):
            return True
        chain = self.resolve_chain(ref, identity)
        return decide(identity, chain, permission, editor_write_scope=self._editor_write_scope)

    def can_create_in(
        self,
        identity: Identity,
        service_id: str | None,
    ) -> bool:
        """Write check for creating a child row under ``service_id`` (or no service)."""

        if service_id is None:
            if not isinstance(identity, AuthenticatedIdentity):
                return False
            return is_admin(identity) or has_capability(identity, Permission.WRITE)
        return self.can_access(
            identity, ResourceRef(ResourceKind.SERVICE, service_id), Permission.WRITE
        )

    def require_access(
        self,
        identity: Identity,
        ref: ResourceRef,
        permission: Permission,
    ) -> OwnershipChain:
        """Return the ownership chain or raise.

        Absent resources and resources the caller cannot even read raise
        :class:`ResourceNotFoundError`; readable-but-not-writable raises
        :class:`PermissionDeniedError`.
        """

        if not isinstance(identity, AuthenticatedIdentity):
            raise AuthenticationError("Authentication required")

        chain = self.resolve_chain(ref, identity)
        if chain is None:
            raise ResourceNotFoundError(ref.kind.value, ref.id)

        scope = self._editor_write_scope
        if decide(identity, chain, permission, editor_write_scope=scope):
            return chain

        readable = decide(identity, chain, Permission.READ, editor_write_scope=scope)
        logger.info(
            "access.denied",
            extra=log_context(
                subject_id=identity.subject_id,
                service_id=chain.service_id,
                resource_kind=ref.kind.value,
                resource_id=ref.id,
                permission=permission.value,
                visible=readable,
            ),
        )
        if permission is Permission.WRITE and readable:
            raise PermissionDeniedError(
                permission.value,
                resource_kind=ref.kind.value,
                resource_id=ref.id,
            )
        raise ResourceNotFoundError(ref.kind.value, ref.id)

    def require_create_in(self, identity: Identity, service_id: str | None) -> None:
        if not isinstance(identity, AuthenticatedIdentity):
            raise AuthenticationError("Authentication required")
        if service_id is not None:
            self.require_access(
                identity, ResourceRef(ResourceKind.SERVICE, service_id), Permission.WRITE
            )
            return
        if not self.can_create_in(identity, None):
            logger.info(
                "access.denied",
                extra=log_context(
                    subject_id=identity.subject_id,
                    resource_kind=ResourceKind.KEY.value,
                    permission=Permission.WRITE.value,
                ),
            )
            raise PermissionDeniedError(
                Permission.WRITE.value, resource_kind=ResourceKind.KEY.value
            )

    # ------------------------------------------------------------------
    # List filters
    # ------------------------------------------------------------------

    def filter_for(
        self,
        identity: Identity,
        permission: Permission,
        kind: ResourceKind,
    ) -> ColumnElement[bool]:
        return build_access_filter(
            identity,
            permission,
            kind,
            editor_write_scope=self._editor_write_scope,
        )

    def accessible_service_ids(self, identity: Identity, permission: Permission) -> list[str]:
        stmt = (
            select(Service.id)
            .where(self.filter_for(identity, permission, ResourceKind.SERVICE))
            .order_by(Service.code)
        )
        return list(self._session.execute(stmt).scalars())


def can_access(
    session: Session,
    identity: Identity,
    ref: ResourceRef,
    permission: Permission,
    *,
    editor_write_scope: EditorWriteScope = "any_service",
) -> bool:
    """Functional form of :meth:`AccessService.can_access`."""

    service = AccessService(session=session, editor_write_scope=editor_write_scope)
    return service.can_access(identity, ref, permission)


__all__ = ["AccessService", "can_access", "decide"]
