"""Role policy primitives."""

from .policy import (
    Permission,
    can_edit,
    can_review,
    can_view,
    has_all_roles,
    has_any_role,
    has_capability,
    has_role,
    is_admin,
    is_owner,
)

__all__ = [
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
