import pytest

from conftest import add_store, add_user, auth_headers, SHOP_DOMAIN, WIDGET_TOKEN
from app.core.exceptions import ExternalServiceServerError
from app.external.n8n import N8nService
from app.models.store import Store, StoreStatus


@pytest.mark.anyio
async def test_list_and_get_stores(client, session_factory, owner, store):
    await add_store(session_factory, shop_domain="second.example.com", widget_token="wt-2", user_id=owner.id)
    await add_store(session_factory, shop_domain="foreign.example.com", widget_token="wt-3")
    headers = auth_headers(owner)

    listing = await client.get("/api/stores", headers=headers)
    single = await client.get(f"/api/stores/{store.store_id}", headers=headers)
    foreign = await client.get("/api/stores/foreign", headers=headers)

    assert sorted(s["shop_domain"] for s in listing.json()["stores"]) == sorted([SHOP_DOMAIN, "second.example.com"])
    assert single.json()["store"]["widget_token"] == WIDGET_TOKEN
    assert foreign.status_code == 404


@pytest.mark.anyio
async def test_rotate_widget_token(client, session_factory, owner, store):
    response = await client.post(f"/api/stores/{store.store_id}/widget-token", headers=auth_headers(owner))

    new_token = response.json()["store"]["widget_token"]
    assert new_token != WIDGET_TOKEN
    assert (await client.get(f"/api/widget-bootstrap/{WIDGET_TOKEN}")).status_code == 403
    assert (await client.get(f"/api/widget-bootstrap/{new_token}")).status_code == 200


@pytest.mark.anyio
async def test_disconnect_is_soft_delete(client, session_factory, owner, store):
    response = await client.delete(f"/api/stores/{store.store_id}", headers=auth_headers(owner))

    assert response.status_code == 200
    async with session_factory() as db:
        row = await db.get(Store, store.id)
    assert row.status == StoreStatus.disconnected
    assert (await client.get(f"/api/widget-bootstrap/{WIDGET_TOKEN}")).status_code == 403
    blocked = await client.get("/health", headers={"Origin": f"https://{SHOP_DOMAIN}"})
    assert blocked.status_code == 403


@pytest.mark.anyio
async def test_manual_sync(client, session_factory, owner, store, monkeypatch):
    calls = []

    async def fake_sync(self, payload):
        calls.append(payload)

    monkeypatch.setattr(N8nService, "trigger_product_sync", fake_sync)

    response = await client.post(f"/api/stores/{store.store_id}/sync", headers=auth_headers(owner))

    assert response.status_code == 200
    assert response.json()["store"]["last_sync_at"] is not None
    assert calls[0]["syncType"] == "manual"
    assert calls[0]["shop"] == SHOP_DOMAIN


@pytest.mark.anyio
async def test_manual_sync_failure(client, owner, store, monkeypatch):
    async def failing_sync(self, payload):
        raise ExternalServiceServerError("Webhook returned 504", status_code=504)

    monkeypatch.setattr(N8nService, "trigger_product_sync", failing_sync)

    response = await client.post(f"/api/stores/{store.store_id}/sync", headers=auth_headers(owner))

    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to trigger sync"}


@pytest.mark.anyio
async def test_stores_of_other_users_are_hidden(client, session_factory, store):
    stranger = await add_user(session_factory, email="stranger@example.com")

    response = await client.delete(f"/api/stores/{store.store_id}", headers=auth_headers(stranger))

    assert response.status_code == 404
