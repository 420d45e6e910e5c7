"""SQL predicates restricting list queries to rows an identity may access.

For every row ``r`` of a kind, ``r`` matches :func:`build_access_filter` exactly
when :meth:`AccessService.can_access` allows the same identity and permission
on ``r``. Ownership is expressed as one ``IN (subquery)`` over
``service_owner`` rather than a per-row lookup.
"""

from __future__ import annotations

from sqlalchemy import ColumnElement, Select, false, or_, select, true

from l10n_api.core.auth.identity import AuthenticatedIdentity, Identity
from l10n_api.core.rbac.policy import Permission, has_capability, is_admin
from l10n_api.settings import EditorWriteScope
from l10n_db.models import L10nKey, Service, ServiceOwner, Translation

from .types import ResourceKind


def role_fallback_allows_any_service(
    identity: Identity,
    permission: Permission,
    editor_write_scope: EditorWriteScope,
) -> bool:
    """True when the role alone grants ``permission`` on services the caller does not own."""

    if not has_capability(identity, permission):
        return False
    return permission is Permission.READ or editor_write_scope == "any_service"


def owned_service_ids(subject_id: str) -> Select[tuple[str]]:
    return select(ServiceOwner.service_id).where(ServiceOwner.subject_id == subject_id)


def _service_scoped_predicate(
    service_column: ColumnElement,
    identity: AuthenticatedIdentity,
    permission: Permission,
    editor_write_scope: EditorWriteScope,
    *,
    nullable: bool,
) -> ColumnElement[bool]:
    if role_fallback_allows_any_service(identity, permission, editor_write_scope):
        return true()

    owned = service_column.in_(owned_service_ids(identity.subject_id))
    if nullable and has_capability(identity, permission):
        # Role-only access still covers rows without a service.
        return or_(service_column.is_(None), owned)
    return owned


def build_access_filter(
    identity: Identity,
    permission: Permission,
    kind: ResourceKind,
    *,
    editor_write_scope: EditorWriteScope = "any_service",
) -> ColumnElement[bool]:
    """Return a boolean SQL expression selecting accessible rows of ``kind``."""

    if not isinstance(identity, AuthenticatedIdentity):
        return false()
    if is_admin(identity):
        return true()

    if kind is ResourceKind.SERVICE:
        return _service_scoped_predicate(
            Service.id, identity, permission, editor_write_scope, nullable=False
        )

    key_predicate = _service_scoped_predicate(
        L10nKey.service_id, identity, permission, editor_write_scope, nullable=True
    )
    if kind is ResourceKind.KEY:
        return key_predicate

    if role_fallback_allows_any_service(identity, permission, editor_write_scope):
        return true()
    return Translation.key_id.in_(select(L10nKey.id).where(key_predicate))


__all__ = [
    "build_access_filter",
    "owned_service_ids",
    "role_fallback_allows_any_service",
]
