"""JWT helpers for verifying (and, in tests and tooling, minting) bearer tokens."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt


def decode_token(
    token: str,
    *,
    secret: str,
    algorithms: Sequence[str],
    audience: str | None = None,
    issuer: str | None = None,
    leeway_seconds: int = 0,
) -> dict[str, Any]:
    """Decode a JWT and return its payload."""

    options: dict[str, Any] = {"require": ["sub"]}
    if not audience:
        options["verify_aud"] = False
    return jwt.decode(
        token,
        secret,
        algorithms=list(algorithms),
        audience=audience,
        issuer=issuer,
        leeway=leeway_seconds,
        options=options,
    )


def encode_token(
    subject: str,
    *,
    secret: str,
    roles: Sequence[str] | None = None,
    algorithm: str = "HS256",
    audience: str | None = None,
    issuer: str | None = None,
    expires_in: timedelta = timedelta(hours=1),
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Mint a token carrying roles under ``app_metadata.roles``."""

    now = datetime.now(UTC)
    claims: dict[str, Any] = {"sub": subject, "iat": now, "exp": now + expires_in}
    if roles is not None:
        claims["app_metadata"] = {"roles": list(roles)}
    if audience:
        claims["aud"] = audience
    if issuer:
        claims["iss"] = issuer
    if extra_claims:
        claims.update(extra_claims)
    return jwt.encode(claims, secret, algorithm=algorithm)


__all__ = ["decode_token", "encode_token"]
