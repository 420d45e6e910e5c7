from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from l10n_db.models import AuditAction, Event, L10nKey
from tests.utils import SeededCatalog, bearer

pytestmark = pytest.mark.asyncio

EDITOR = bearer("ed", "Editor")
VIEWER = bearer("vi", "Viewer")


def _import_body(*, dry_run: bool, keys: list[dict]) -> dict:
    return {"dryRun": dry_run, "service": "web", "data": {"keys": keys}}


NEW_KEY = {
    "id": "k-banner",
    "keyName": "home.banner",
    "tags": ["home"],
    "translations": [{"locale": "en", "value": "Sale!"}, {"locale": "fr", "value": "Soldes !"}],
}


def _event_count(factory: sessionmaker[Session]) -> int:
    with factory() as session:
        return session.execute(select(func.count()).select_from(Event)).scalar_one()


async def test_dry_run_reports_without_writing(
    async_client: AsyncClient,
    catalog: SeededCatalog,
    db_sessionmaker: sessionmaker[Session],
) -> None:
    response = await async_client.post(
        "/api/v1/import", headers=EDITOR, json=_import_body(dry_run=True, keys=[NEW_KEY])
    )

    assert response.status_code == 200
    report = response.json()
    assert report["summary"] == {
        "keysToCreate": 1,
        "keysToUpdate": 0,
        "translationsToCreate": 2,
        "translationsToUpdate": 0,
    }
    assert [change["type"] for change in report["changes"]] == [
        "create_key",
        "create_translation",
        "create_translation",
    ]
    assert _event_count(db_sessionmaker) == 0
    with db_sessionmaker() as session:
        assert session.get(L10nKey, "k-banner") is None


async def test_commit_applies_and_audits(
    async_client: AsyncClient,
    catalog: SeededCatalog,
    db_sessionmaker: sessionmaker[Session],
) -> None:
    response = await async_client.post(
        "/api/v1/import", headers=EDITOR, json=_import_body(dry_run=False, keys=[NEW_KEY])
    )

    assert response.status_code == 201
    assert response.json() == {"keysWritten": 1, "translationsWritten": 2}
    with db_sessionmaker() as session:
        assert session.get(L10nKey, "k-banner").service_id == catalog.web_service_id
        actions = list(session.execute(select(Event.action)).scalars())
    assert sorted(action.value for action in actions) == [
        "create",
        "create",
        "create",
        "import",
    ]

    again = await async_client.post(
        "/api/v1/import", headers=EDITOR, json=_import_body(dry_run=True, keys=[NEW_KEY])
    )
    assert again.json()["changes"] == []


async def test_conflicting_import_is_rolled_back(
    async_client: AsyncClient,
    catalog: SeededCatalog,
    db_sessionmaker: sessionmaker[Session],
) -> None:
    keys = [NEW_KEY, {"id": catalog.mobile_key_id, "keyName": "stolen"}]

    response = await async_client.post(
        "/api/v1/import", headers=EDITOR, json=_import_body(dry_run=False, keys=keys)
    )

    assert response.status_code == 409
    assert response.json()["type"] == "conflict"
    assert _event_count(db_sessionmaker) == 0
    with db_sessionmaker() as session:
        assert session.get(L10nKey, "k-banner") is None


async def test_import_requires_write_access(
    async_client: AsyncClient, catalog: SeededCatalog
) -> None:
    forbidden = await async_client.post(
        "/api/v1/import", headers=VIEWER, json=_import_body(dry_run=True, keys=[NEW_KEY])
    )
    missing = await async_client.post(
        "/api/v1/import",
        headers=EDITOR,
        json={"dryRun": True, "service": "nope", "data": {"keys": []}},
    )

    assert forbidden.status_code == 403
    assert missing.status_code == 404


async def test_export_round_trips_and_is_audited(
    async_client: AsyncClient,
    catalog: SeededCatalog,
    db_sessionmaker: sessionmaker[Session],
) -> None:
    exported = await async_client.get(
        "/api/v1/export", headers=VIEWER, params={"service": "web", "locales": "en"}
    )

    assert exported.status_code == 200
    payload = exported.json()
    assert payload["service"] == "web"
    assert payload["locales"] == ["en"]
    assert [key["id"] for key in payload["data"]["keys"]] == [catalog.web_key_id]

    with db_sessionmaker() as session:
        (event,) = session.execute(select(Event)).scalars()
    assert event.action == AuditAction.EXPORT
    assert event.actor == "vi"
    assert event.after == {"service": "web", "locales": ["en"], "keyCount": 1}

    reimport = await async_client.post(
        "/api/v1/import", headers=EDITOR, json={**payload, "dryRun": True}
    )
    assert reimport.status_code == 200
    assert reimport.json()["changes"] == []


async def test_export_rejects_unknown_locales(
    async_client: AsyncClient, catalog: SeededCatalog
) -> None:
    response = await async_client.get(
        "/api/v1/export", headers=VIEWER, params={"service": "web", "locales": "en,xx"}
    )

    assert response.status_code == 422
    payload = response.json()
    assert payload["type"] == "validation_error"
    assert "xx" in payload["detail"]
    assert [error["path"] for error in payload["errors"]] == ["locales"]


async def test_export_hides_services_the_caller_cannot_read(
    async_client: AsyncClient, catalog: SeededCatalog
) -> None:
    response = await async_client.get(
        "/api/v1/export", headers=bearer("alice"), params={"service": "mobile"}
    )

    assert response.status_code == 404


async def test_invalid_import_lists_each_bad_field(
    async_client: AsyncClient,
    catalog: SeededCatalog,
    db_sessionmaker: sessionmaker[Session],
) -> None:
    keys = [
        {**NEW_KEY, "namespaceId": "ns-missing"},
        {
            "id": "k-banner",
            "keyName": "home.banner.copy",
            "translations": [{"locale": "de", "value": "A"}, {"locale": "de", "value": "B"}],
        },
    ]

    response = await async_client.post(
        "/api/v1/import", headers=EDITOR, json=_import_body(dry_run=False, keys=keys)
    )

    assert response.status_code == 422
    payload = response.json()
    assert payload["type"] == "validation_error"
    assert [(error["path"], error["message"]) for error in payload["errors"]] == [
        ("data.keys[1].id", "Duplicate key id 'k-banner'"),
        ("data.keys[1].translations[1].locale", "Duplicate locale 'de' for key 'k-banner'"),
        ("data.keys[0].namespaceId", "Namespace 'ns-missing' does not exist"),
    ]
    assert _event_count(db_sessionmaker) == 0
    with db_sessionmaker() as session:
        assert session.get(L10nKey, "k-banner") is None
