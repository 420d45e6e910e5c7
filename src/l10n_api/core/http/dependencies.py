"""FastAPI dependencies that bridge HTTP requests to identity and role policy."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Header, Request

from l10n_api.settings import Settings

from ..auth import (
    AuthenticatedIdentity,
    AuthenticationError,
    Identity,
    IdentityResolver,
    PermissionDeniedError,
)
from ..rbac.policy import Permission, has_capability


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was created with."""

    return request.app.state.settings


SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def get_identity(
    settings: SettingsDep,
    authorization: Annotated[str | None, Header()] = None,
) -> Identity:
    """Resolve the caller; never raises, returns ``ANONYMOUS`` when unverified."""

    return IdentityResolver(settings=settings).resolve(authorization)


def get_current_identity(
    identity: Annotated[Identity, Depends(get_identity)],
) -> AuthenticatedIdentity:
    """Require a verified identity."""

    if not isinstance(identity, AuthenticatedIdentity):
        raise AuthenticationError("Authentication required")
    return identity


IdentityDep = Annotated[AuthenticatedIdentity, Depends(get_current_identity)]


def require_capability(permission: Permission) -> Callable[..., AuthenticatedIdentity]:
    """Dependency factory enforcing a role-only capability."""

    def dependency(identity: IdentityDep) -> AuthenticatedIdentity:
        if not has_capability(identity, permission):
            raise PermissionDeniedError(permission.value)
        return identity

    return dependency


__all__ = [
    "IdentityDep",
    "SettingsDep",
    "get_app_settings",
    "get_current_identity",
    "get_identity",
    "require_capability",
]
