"""Resolve request credentials into an :data:`Identity`.

This is the only place that reads the ``Authorization`` header. Handlers and
services receive the resolved identity and never inspect raw tokens.
"""

from __future__ import annotations

import logging
from typing import Any

import jwt

from l10n_api.common.logging import log_context
from l10n_api.core.security.tokens import decode_token
from l10n_api.settings import Settings

from .identity import ANONYMOUS, AuthenticatedIdentity, Identity, parse_roles

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    value = authorization.strip()
    if value.lower().startswith(_BEARER_PREFIX):
        token = value[len(_BEARER_PREFIX) :].strip()
        return token or None
    return None


def roles_from_claims(claims: dict[str, Any]) -> Any:
    """Return the raw role list from ``app_metadata.roles`` or a top-level ``roles``."""

    app_metadata = claims.get("app_metadata")
    if isinstance(app_metadata, dict) and "roles" in app_metadata:
        return app_metadata.get("roles")
    return claims.get("roles")


class IdentityResolver:
    """Turn an ``Authorization`` header value into an identity."""

    def __init__(self, *, settings: Settings) -> None:
        self._settings = settings

    def resolve(self, authorization: str | None) -> Identity:
        if self._settings.auth_disabled:
            return AuthenticatedIdentity(
                subject_id=self._settings.auth_disabled_subject,
                roles=parse_roles(self._settings.auth_disabled_roles),
            )

        token = extract_bearer_token(authorization)
        if token is None:
            return ANONYMOUS

        secret = self._settings.jwt_secret_value
        if not secret:
            logger.warning("identity.verify.unconfigured")
            return ANONYMOUS

        try:
            claims = decode_token(
                token,
                secret=secret,
                algorithms=self._settings.jwt_algorithms,
                audience=self._settings.jwt_audience,
                issuer=self._settings.jwt_issuer,
                leeway_seconds=self._settings.jwt_leeway_seconds,
            )
        except jwt.PyJWTError as exc:
            logger.debug(
                "identity.verify.failed",
                extra=log_context(reason=type(exc).__name__),
            )
            return ANONYMOUS

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            return ANONYMOUS

        email = claims.get("email")
        return AuthenticatedIdentity(
            subject_id=subject,
            roles=parse_roles(roles_from_claims(claims)),
            email=email if isinstance(email, str) else None,
        )


__all__ = ["IdentityResolver", "extract_bearer_token", "roles_from_claims"]
