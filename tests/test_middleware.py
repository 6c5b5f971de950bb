import httpx
import pytest

from conftest import add_store, broken_session_factory, DASHBOARD_ORIGIN, SHOP_DOMAIN, WIDGET_TOKEN
import app.api.middleware as middleware
from app.api.middleware import is_domain_lock_exempt
from app.core.origin import OriginPolicy
from app.external.n8n import N8nService
from app.main import create_app

SHOP_ORIGIN = f"https://{SHOP_DOMAIN}"


@pytest.fixture
def relayed(monkeypatch):
    calls = []

    async def fake_relay_chat(self, payload):
        calls.append(payload)
        return 200, {"reply": "Hello from n8n"}

    monkeypatch.setattr(N8nService, "relay_chat", fake_relay_chat)
    return calls


def chat_body(**overrides):
    body = {"type": "user_info", "store": SHOP_DOMAIN, "widgetToken": WIDGET_TOKEN}
    body.update(overrides)
    return body


@pytest.mark.anyio
async def test_unknown_origin_is_blocked(client, caplog):
    response = await client.get("/health", headers={"Origin": "https://evil.example.com"})

    assert response.status_code == 403
    assert response.json() == {"detail": "Not allowed by CORS"}
    assert any("Blocked CORS request" in r.message for r in caplog.records)


@pytest.mark.anyio
async def test_registered_origin_gets_cors_headers(client, store):
    response = await client.get("/health", headers={"Origin": SHOP_ORIGIN})

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == SHOP_ORIGIN
    assert response.headers["access-control-allow-credentials"] == "true"


@pytest.mark.anyio
async def test_preflight_answered_by_gate(client):
    response = await client.options(
        "/api/chat",
        headers={
            "Origin": DASHBOARD_ORIGIN,
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )

    assert response.status_code == 204
    assert response.headers["access-control-allow-origin"] == DASHBOARD_ORIGIN
    assert "POST" in response.headers["access-control-allow-methods"]


@pytest.mark.anyio
async def test_cors_lookup_failure_is_500():
    app = create_app(session_factory=broken_session_factory, policy=OriginPolicy([DASHBOARD_ORIGIN]))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/health", headers={"Origin": SHOP_ORIGIN})
        allow_listed = await client.get("/health", headers={"Origin": DASHBOARD_ORIGIN})

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal Server Error during CORS check"}
    assert allow_listed.status_code == 200


def test_exempt_paths():
    assert is_domain_lock_exempt("/")
    assert is_domain_lock_exempt("/health")
    assert is_domain_lock_exempt("/api/widget-bootstrap/abc")
    assert is_domain_lock_exempt("/api/shopify/callback")
    assert is_domain_lock_exempt("/docs")
    assert not is_domain_lock_exempt("/api/chat")
    assert not is_domain_lock_exempt("/api/customer-tickets")


@pytest.mark.anyio
async def test_domain_lock_authorizes_matching_request(client, store, relayed):
    response = await client.post("/api/chat", json=chat_body(), headers={"Origin": SHOP_ORIGIN})

    assert response.status_code == 200
    assert response.json() == {"reply": "Hello from n8n"}
    assert len(relayed) == 1


@pytest.mark.anyio
async def test_domain_lock_accepts_token_header(client, store, relayed):
    body = chat_body()
    body.pop("widgetToken")
    response = await client.post(
        "/api/chat",
        json=body,
        headers={"Origin": f"https://www.{SHOP_DOMAIN}", "X-Widget-Token": WIDGET_TOKEN},
    )

    assert response.status_code == 200


@pytest.mark.anyio
async def test_domain_lock_requires_store(client, store, relayed):
    response = await client.post(
        "/api/chat", json={"widgetToken": WIDGET_TOKEN}, headers={"Origin": SHOP_ORIGIN}
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "storeUrl required"}
    assert relayed == []


@pytest.mark.anyio
async def test_domain_lock_rejects_unregistered_store(client, store, relayed):
    response = await client.post(
        "/api/chat", json=chat_body(store="ghost.example.com"), headers={"Origin": SHOP_ORIGIN}
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "Store not registered"}


@pytest.mark.anyio
async def test_domain_lock_rejects_changed_domain(client, session_factory, store, relayed):
    # same token, another registered store's domain
    await add_store(session_factory, shop_domain="other.example.com", widget_token="wt-other")

    response = await client.post(
        "/api/chat", json=chat_body(store="other.example.com"), headers={"Origin": SHOP_ORIGIN}
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "Origin mismatch"}
    assert relayed == []


@pytest.mark.anyio
async def test_domain_lock_rejects_changed_token(client, store, relayed):
    response = await client.post(
        "/api/chat", json=chat_body(widgetToken="wt-forged"), headers={"Origin": SHOP_ORIGIN}
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "Invalid widget token"}
    assert relayed == []


@pytest.mark.anyio
async def test_domain_lock_reads_store_from_query(client, store, relayed):
    response = await client.post(
        f"/api/chat?storeUrl={SHOP_DOMAIN}&widgetToken={WIDGET_TOKEN}",
        json={"type": "user_info"},
        headers={"Origin": SHOP_ORIGIN},
    )

    assert response.status_code == 200


@pytest.mark.anyio
async def test_requests_without_origin_skip_domain_lock(client, relayed):
    response = await client.post("/api/chat", json={"type": "user_info"})

    assert response.status_code == 200


@pytest.mark.anyio
async def test_allow_listed_origin_skips_domain_lock(client, relayed):
    response = await client.post("/api/chat", json={"type": "user_info"}, headers={"Origin": DASHBOARD_ORIGIN})

    assert response.status_code == 200


@pytest.mark.anyio
async def test_domain_lock_lookup_failure(client, store, relayed, monkeypatch):
    async def failing_lookup(db, domain, active_only=True):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(middleware, "get_store_by_domain", failing_lookup)

    response = await client.post("/api/chat", json=chat_body(), headers={"Origin": SHOP_ORIGIN})

    assert response.status_code == 403
    assert response.json() == {"detail": "Domain verification failed"}
