"""Role policy: pure capability checks over an identity's role set.

Hierarchy::

    Admin    ⊇ everything
    Editor   ∈ {Admin, Owner, Editor}             -> write-capable
    Reviewer ∈ {Admin, Owner, Editor, Reviewer}   -> review-capable
    Viewer   ∈ any role                           -> view-capable

Anonymous identities and identities without roles have no capability.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum
from typing import Final

from l10n_api.core.auth.identity import AuthenticatedIdentity, Identity, Role


class Permission(StrEnum):
    READ = "read"
    WRITE = "write"


EDIT_ROLES: Final = frozenset({Role.ADMIN, Role.OWNER, Role.EDITOR})
REVIEW_ROLES: Final = frozenset({Role.ADMIN, Role.OWNER, Role.EDITOR, Role.REVIEWER})
VIEW_ROLES: Final = frozenset(Role)


def _roles(identity: Identity) -> frozenset[Role]:
    if isinstance(identity, AuthenticatedIdentity):
        return identity.roles
    return frozenset()


def has_role(identity: Identity, role: Role) -> bool:
    return role in _roles(identity)


def has_any_role(identity: Identity, roles: Iterable[Role]) -> bool:
    return not _roles(identity).isdisjoint(roles)


def has_all_roles(identity: Identity, roles: Iterable[Role]) -> bool:
    # An empty requirement is not satisfied by an anonymous caller.
    if not isinstance(identity, AuthenticatedIdentity):
        return False
    return _roles(identity).issuperset(roles)


def is_admin(identity: Identity) -> bool:
    return has_role(identity, Role.ADMIN)


def is_owner(identity: Identity) -> bool:
    return has_role(identity, Role.OWNER)


def can_edit(identity: Identity) -> bool:
    return has_any_role(identity, EDIT_ROLES)


def can_review(identity: Identity) -> bool:
    return has_any_role(identity, REVIEW_ROLES)


def can_view(identity: Identity) -> bool:
    return has_any_role(identity, VIEW_ROLES)


def has_capability(identity: Identity, permission: Permission) -> bool:
    """Role-only answer for ``permission``; ownership is not considered here."""

    if permission is Permission.WRITE:
        return can_edit(identity)
    return can_view(identity)


__all__ = [
    "EDIT_ROLES",
    "REVIEW_ROLES",
    "VIEW_ROLES",
    "Permission",
    "can_edit",
    "can_review",
    "can_view",
    "has_all_roles",
    "has_any_role",
    "has_capability",
    "has_role",
    "is_admin",
    "is_owner",
]
