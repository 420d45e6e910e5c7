"""Shared helpers for unit and integration tests."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from l10n_api.core.auth.identity import ANONYMOUS, AuthenticatedIdentity, Identity, Role
from l10n_api.core.security.tokens import encode_token
from l10n_db.models import L10nKey, Namespace, Service, Translation

TEST_JWT_SECRET = "test-secret-key-for-tests-please-change"


def identity(subject_id: str, *roles: Role) -> AuthenticatedIdentity:
    return AuthenticatedIdentity(subject_id=subject_id, roles=frozenset(roles))


ADMIN = identity("root", Role.ADMIN)
EDITOR = identity("ed", Role.EDITOR)
REVIEWER = identity("rev", Role.REVIEWER)
VIEWER = identity("vi", Role.VIEWER)
OWNER_ROLE_BOB = identity("bob", Role.OWNER)
ALICE_NO_ROLES = identity("alice")
NOBODY = identity("nobody")

ALL_IDENTITIES: tuple[Identity, ...] = (
    ANONYMOUS,
    ADMIN,
    EDITOR,
    REVIEWER,
    VIEWER,
    OWNER_ROLE_BOB,
    ALICE_NO_ROLES,
    NOBODY,
)


def bearer(subject_id: str, *roles: str, secret: str = TEST_JWT_SECRET) -> dict[str, str]:
    token = encode_token(subject_id, secret=secret, roles=list(roles))
    return {"Authorization": f"Bearer {token}"}


@dataclass(frozen=True, slots=True)
class SeededCatalog:
    web_service_id: str
    mobile_service_id: str
    web_key_id: str
    mobile_key_id: str
    legacy_key_id: str
    web_translation_id: str
    mobile_translation_id: str
    legacy_translation_id: str
    namespace_id: str


def seed_catalog(session: Session) -> SeededCatalog:
    """Two services (``web`` owned by alice, ``mobile`` by bob) plus one legacy key."""

    web = Service(id="svc-web", code="web", name="Web")
    web.set_owners({"alice"})
    mobile = Service(id="svc-mobile", code="mobile", name="Mobile")
    mobile.set_owners({"bob"})
    session.add_all([web, mobile])
    session.flush()

    namespace = Namespace(id="ns-common", service_id=web.id, name="common")
    session.add(namespace)
    session.flush()

    keys = [
        L10nKey(
            id="k-web",
            service_id=web.id,
            namespace_id=namespace.id,
            key_name="home.title",
            tags=["ui", "home"],
        ),
        L10nKey(id="k-mobile", service_id=mobile.id, key_name="app.title", tags=[]),
        L10nKey(id="k-legacy", service_id=None, key_name="legacy.title", tags=[]),
    ]
    session.add_all(keys)
    session.flush()

    translations = []
    for translation_id, key_id, value in (
        ("t-web-en", "k-web", "Welcome"),
        ("t-mobile-en", "k-mobile", "Mobile app"),
        ("t-legacy-en", "k-legacy", "Old title"),
    ):
        translation = Translation(id=translation_id, key_id=key_id, locale="en", version=1)
        translation.set_value(value)
        translations.append(translation)
    session.add_all(translations)
    session.flush()

    return SeededCatalog(
        web_service_id=web.id,
        mobile_service_id=mobile.id,
        web_key_id="k-web",
        mobile_key_id="k-mobile",
        legacy_key_id="k-legacy",
        web_translation_id="t-web-en",
        mobile_translation_id="t-mobile-en",
        legacy_translation_id="t-legacy-en",
        namespace_id=namespace.id,
    )
