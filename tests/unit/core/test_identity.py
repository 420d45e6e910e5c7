from __future__ import annotations

from datetime import timedelta

import pytest

from l10n_api.core.auth.identity import ANONYMOUS, AuthenticatedIdentity, Role, parse_roles
from l10n_api.core.auth.resolver import (
    IdentityResolver,
    extract_bearer_token,
    roles_from_claims,
)
from l10n_api.core.security.tokens import encode_token
from l10n_api.settings import Settings
from tests.utils import TEST_JWT_SECRET


def _settings(**overrides) -> Settings:
    values = {"jwt_secret": TEST_JWT_SECRET}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_parse_roles_drops_unknown_names() -> None:
    assert parse_roles(["Editor", "Superuser", "viewer", "Viewer"]) == frozenset(
        {Role.EDITOR, Role.VIEWER}
    )
    assert parse_roles(None) == frozenset()
    assert parse_roles("Admin") == frozenset()


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, None),
        ("", None),
        ("Basic abc", None),
        ("Bearer ", None),
        ("Bearer abc.def", "abc.def"),
        ("bearer   abc.def  ", "abc.def"),
    ],
)
def test_extract_bearer_token(header: str | None, expected: str | None) -> None:
    assert extract_bearer_token(header) == expected


def test_roles_from_claims_prefers_app_metadata() -> None:
    assert roles_from_claims({"app_metadata": {"roles": ["Admin"]}, "roles": ["Viewer"]}) == [
        "Admin"
    ]
    assert roles_from_claims({"roles": ["Viewer"]}) == ["Viewer"]
    assert roles_from_claims({}) is None


def test_resolver_returns_identity_for_valid_token() -> None:
    token = encode_token(
        "alice",
        secret=TEST_JWT_SECRET,
        roles=["Editor", "Unknown"],
        extra_claims={"email": "alice@example.com"},
    )

    resolved = IdentityResolver(settings=_settings()).resolve(f"Bearer {token}")

    assert resolved == AuthenticatedIdentity(
        subject_id="alice",
        roles=frozenset({Role.EDITOR}),
        email="alice@example.com",
    )


def test_resolver_accepts_token_without_roles() -> None:
    token = encode_token("alice", secret=TEST_JWT_SECRET)

    resolved = IdentityResolver(settings=_settings()).resolve(f"Bearer {token}")

    assert isinstance(resolved, AuthenticatedIdentity)
    assert resolved.roles == frozenset()


@pytest.mark.parametrize(
    "token_factory",
    [
        lambda: encode_token("alice", secret="another-secret-entirely-different"),
        lambda: encode_token("alice", secret=TEST_JWT_SECRET, expires_in=timedelta(minutes=-5)),
        lambda: "not-a-jwt",
    ],
    ids=["wrong-secret", "expired", "garbage"],
)
def test_resolver_returns_anonymous_for_unverifiable_tokens(token_factory) -> None:
    resolved = IdentityResolver(settings=_settings()).resolve(f"Bearer {token_factory()}")

    assert resolved is ANONYMOUS


def test_resolver_checks_audience_when_configured() -> None:
    settings = _settings(jwt_audience="l10n")
    good = encode_token("alice", secret=TEST_JWT_SECRET, audience="l10n")
    bad = encode_token("alice", secret=TEST_JWT_SECRET, audience="other")

    resolver = IdentityResolver(settings=settings)

    assert isinstance(resolver.resolve(f"Bearer {good}"), AuthenticatedIdentity)
    assert resolver.resolve(f"Bearer {bad}") is ANONYMOUS


def test_resolver_without_secret_rejects_every_token() -> None:
    token = encode_token("alice", secret=TEST_JWT_SECRET)

    resolved = IdentityResolver(settings=Settings(_env_file=None)).resolve(f"Bearer {token}")

    assert resolved is ANONYMOUS


def test_resolver_missing_header_is_anonymous() -> None:
    assert IdentityResolver(settings=_settings()).resolve(None) is ANONYMOUS


def test_auth_disabled_yields_configured_developer_identity() -> None:
    settings = _settings(
        auth_disabled=True,
        auth_disabled_subject="dev-user",
        auth_disabled_roles=["Editor"],
    )

    resolved = IdentityResolver(settings=settings).resolve(None)

    assert resolved == AuthenticatedIdentity(subject_id="dev-user", roles=frozenset({Role.EDITOR}))
