from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from l10n_db.models import Event, L10nKey
from tests.utils import SeededCatalog, bearer

pytestmark = pytest.mark.asyncio

EDITOR = bearer("ed", "Editor", "Viewer")
VIEWER = bearer("vi", "Viewer")
ALICE = bearer("alice")
ADMIN = bearer("root", "Admin")


async def test_missing_token_is_unauthorized(
    async_client: AsyncClient, catalog: SeededCatalog
) -> None:
    response = await async_client.get("/api/v1/keys")

    assert response.status_code == 401
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.headers["WWW-Authenticate"] == "Bearer"
    payload = response.json()
    assert payload["type"] == "unauthorized"
    assert payload["requestId"] == response.headers["X-Request-ID"]


async def test_token_signed_with_another_secret_is_unauthorized(
    async_client: AsyncClient, catalog: SeededCatalog
) -> None:
    forged = bearer("ed", "Admin", secret="another-secret-entirely-for-tests")

    response = await async_client.get("/api/v1/keys", headers=forged)

    assert response.status_code == 401


async def test_key_list_is_filtered_by_ownership(
    async_client: AsyncClient, catalog: SeededCatalog
) -> None:
    as_alice = await async_client.get("/api/v1/keys", headers=ALICE)
    as_viewer = await async_client.get("/api/v1/keys", headers=VIEWER)

    assert [item["id"] for item in as_alice.json()["items"]] == [catalog.web_key_id]
    assert {item["id"] for item in as_viewer.json()["items"]} == {
        catalog.web_key_id,
        catalog.mobile_key_id,
        catalog.legacy_key_id,
    }


async def test_key_detail_hides_unreadable_keys(
    async_client: AsyncClient, catalog: SeededCatalog
) -> None:
    hidden = await async_client.get(f"/api/v1/keys/{catalog.mobile_key_id}", headers=ALICE)
    visible = await async_client.get(f"/api/v1/keys/{catalog.web_key_id}", headers=ALICE)

    assert hidden.status_code == 404
    assert hidden.json()["type"] == "not_found"
    assert visible.status_code == 200
    body = visible.json()
    assert body["keyName"] == "home.title"
    assert body["tags"] == ["home", "ui"]
    assert [item["locale"] for item in body["translations"]] == ["en"]


async def test_viewer_cannot_write(async_client: AsyncClient, catalog: SeededCatalog) -> None:
    response = await async_client.patch(
        f"/api/v1/keys/{catalog.web_key_id}", headers=VIEWER, json={"keyName": "x"}
    )

    assert response.status_code == 403
    assert response.json()["type"] == "forbidden"


async def test_create_and_update_key_are_audited(
    async_client: AsyncClient,
    catalog: SeededCatalog,
    db_sessionmaker: sessionmaker[Session],
) -> None:
    created = await async_client.post(
        "/api/v1/keys",
        headers=EDITOR,
        json={"id": "k-checkout", "keyName": "checkout.title", "serviceCode": "web"},
    )
    assert created.status_code == 201
    assert created.json()["serviceId"] == catalog.web_service_id

    updated = await async_client.patch(
        "/api/v1/keys/k-checkout", headers=EDITOR, json={"tags": ["checkout"]}
    )
    assert updated.status_code == 200
    assert updated.json()["tags"] == ["checkout"]

    conflict = await async_client.post(
        "/api/v1/keys", headers=EDITOR, json={"id": "k-checkout", "keyName": "again"}
    )
    assert conflict.status_code == 409

    with db_sessionmaker() as session:
        assert session.get(L10nKey, "k-checkout").tags == ["checkout"]
        actions = session.execute(
            select(Event.action).where(Event.entity_id == "k-checkout").order_by(Event.created_at)
        ).scalars()
        assert [action.value for action in actions] == ["create", "update"]


async def test_invalid_payload_is_a_validation_problem(
    async_client: AsyncClient, catalog: SeededCatalog
) -> None:
    response = await async_client.post(
        f"/api/v1/keys/{catalog.web_key_id}/translations",
        headers=EDITOR,
        json={"locale": "xx", "value": "?"},
    )

    assert response.status_code == 422
    payload = response.json()
    assert payload["type"] == "validation_error"
    assert payload["errors"]


async def test_translation_lifecycle(async_client: AsyncClient, catalog: SeededCatalog) -> None:
    created = await async_client.post(
        f"/api/v1/keys/{catalog.web_key_id}/translations",
        headers=ALICE,
        json={"locale": "fr", "value": "Bienvenue"},
    )
    assert created.status_code == 201
    translation = created.json()
    assert translation["version"] == 1

    duplicate = await async_client.post(
        f"/api/v1/keys/{catalog.web_key_id}/translations",
        headers=ALICE,
        json={"locale": "fr"},
    )
    assert duplicate.status_code == 409

    updated = await async_client.put(
        f"/api/v1/translations/{translation['id']}",
        headers=ALICE,
        json={"value": "Bienvenue !", "status": "active"},
    )
    assert updated.status_code == 200
    assert updated.json()["version"] == 2
    assert updated.json()["status"] == "active"

    deleted = await async_client.delete(f"/api/v1/translations/{translation['id']}", headers=ALICE)
    assert deleted.status_code == 204

    gone = await async_client.get(f"/api/v1/translations/{translation['id']}", headers=ADMIN)
    assert gone.status_code == 404


async def test_services_and_release_bundles(
    async_client: AsyncClient, catalog: SeededCatalog
) -> None:
    services = await async_client.get("/api/v1/services", headers=ALICE)
    assert [item["code"] for item in services.json()["items"]] == ["web"]
    assert services.json()["items"][0]["owners"] == ["alice"]

    bundle = await async_client.post(
        "/api/v1/services/web/release-bundles",
        headers=ALICE,
        json={"locales": ["en"], "snapshotRef": "s3://bundles/web/1"},
    )
    assert bundle.status_code == 201

    listed = await async_client.get("/api/v1/services/web/release-bundles", headers=VIEWER)
    assert [item["snapshotRef"] for item in listed.json()["items"]] == ["s3://bundles/web/1"]

    hidden = await async_client.get("/api/v1/services/mobile", headers=ALICE)
    assert hidden.status_code == 404


async def test_unknown_namespace_is_a_field_error(
    async_client: AsyncClient,
    catalog: SeededCatalog,
    db_sessionmaker: sessionmaker[Session],
) -> None:
    response = await async_client.post(
        "/api/v1/keys",
        headers=EDITOR,
        json={
            "id": "k-checkout",
            "keyName": "checkout.title",
            "serviceCode": "web",
            "namespaceId": "ns-missing",
        },
    )

    assert response.status_code == 422
    payload = response.json()
    assert payload["type"] == "validation_error"
    assert payload["errors"] == [
        {
            "path": "namespaceId",
            "message": "Namespace 'ns-missing' does not exist",
            "code": "invalid",
        }
    ]
    with db_sessionmaker() as session:
        assert session.get(L10nKey, "k-checkout") is None
