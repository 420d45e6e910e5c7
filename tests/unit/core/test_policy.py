from __future__ import annotations

from itertools import combinations

import pytest

from l10n_api.core.auth.identity import ANONYMOUS, Role
from l10n_api.core.rbac.policy import (
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
from tests.utils import identity


@pytest.mark.parametrize(
    ("role", "edit", "review", "view"),
    [
        (Role.ADMIN, True, True, True),
        (Role.OWNER, True, True, True),
        (Role.EDITOR, True, True, True),
        (Role.REVIEWER, False, True, True),
        (Role.VIEWER, False, False, True),
    ],
)
def test_capabilities_follow_role_hierarchy(
    role: Role, edit: bool, review: bool, view: bool
) -> None:
    caller = identity("someone", role)

    assert can_edit(caller) is edit
    assert can_review(caller) is review
    assert can_view(caller) is view


def test_anonymous_and_roleless_callers_have_no_capability() -> None:
    roleless = identity("someone")

    for caller in (ANONYMOUS, roleless):
        assert not can_view(caller)
        assert not can_edit(caller)
        assert not has_capability(caller, Permission.READ)
        assert not is_admin(caller)


def test_role_membership_helpers() -> None:
    caller = identity("someone", Role.OWNER, Role.VIEWER)

    assert has_role(caller, Role.OWNER)
    assert is_owner(caller)
    assert has_any_role(caller, [Role.ADMIN, Role.VIEWER])
    assert not has_any_role(caller, [])
    assert has_all_roles(caller, [Role.OWNER, Role.VIEWER])
    assert not has_all_roles(caller, [Role.OWNER, Role.ADMIN])
    assert has_all_roles(caller, [])
    assert not has_all_roles(ANONYMOUS, [])


def test_adding_roles_never_removes_capabilities() -> None:
    roles = list(Role)
    checks = (can_edit, can_review, can_view, is_admin)
    subsets = [
        frozenset(combo) for size in range(len(roles) + 1) for combo in combinations(roles, size)
    ]

    for smaller in subsets:
        for larger in subsets:
            if not smaller <= larger:
                continue
            low = identity("x", *smaller)
            high = identity("x", *larger)
            for check in checks:
                assert not check(low) or check(high)
