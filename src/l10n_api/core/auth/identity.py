"""Identity types consumed by the access layer."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

logger = logging.getLogger(__name__)


class Role(StrEnum):
    """Closed role vocabulary recognised by the role policy."""

    ADMIN = "Admin"
    OWNER = "Owner"
    EDITOR = "Editor"
    REVIEWER = "Reviewer"
    VIEWER = "Viewer"


_ROLE_BY_NAME: Final[dict[str, Role]] = {role.value: role for role in Role}


def parse_roles(raw: Iterable[object] | None) -> frozenset[Role]:
    """Map raw role names onto :class:`Role`, dropping anything unknown."""

    if raw is None or isinstance(raw, (str, bytes)):
        return frozenset()
    roles: set[Role] = set()
    for item in raw:
        role = _ROLE_BY_NAME.get(str(item))
        if role is None:
            logger.debug("identity.role.ignored", extra={"role": str(item)})
            continue
        roles.add(role)
    return frozenset(roles)


@dataclass(frozen=True, slots=True)
class AuthenticatedIdentity:
    """Verified caller with a stable subject id and a (possibly empty) role set."""

    subject_id: str
    roles: frozenset[Role] = field(default_factory=frozenset)
    email: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Anonymous:
    """Caller without a verified identity."""

    @property
    def is_authenticated(self) -> bool:
        return False


ANONYMOUS: Final = Anonymous()

Identity = AuthenticatedIdentity | Anonymous


__all__ = [
    "ANONYMOUS",
    "Anonymous",
    "AuthenticatedIdentity",
    "Identity",
    "Role",
    "parse_roles",
]
