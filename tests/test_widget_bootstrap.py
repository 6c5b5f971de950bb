import json

import pytest

from conftest import add_store, SHOP_DOMAIN, WIDGET_TOKEN
from app.models.appearance import ChatbotAppearance
from app.models.store import StoreStatus
from app.schemas.appearance import DEFAULT_STARTERS, DEFAULT_PRIMARY_COLOR
from app.services.appearance import parse_starters


async def add_appearance(session_factory, **fields):
    async with session_factory() as db:
        db.add(ChatbotAppearance(store_url=SHOP_DOMAIN, **fields))
        await db.commit()


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, DEFAULT_STARTERS),
        ("", DEFAULT_STARTERS),
        ("not json at all", DEFAULT_STARTERS),
        ("[]", DEFAULT_STARTERS),
        ('"a string"', DEFAULT_STARTERS),
        ('["Hi", "Sizes?"]', ["Hi", "Sizes?"]),
        ('{"a": "Returns", "b": "Shipping"}', ["Returns", "Shipping"]),
        (["Deals"], ["Deals"]),
    ],
)
def test_parse_starters(raw, expected):
    assert parse_starters(raw) == expected


@pytest.mark.anyio
async def test_bootstrap_without_origin_returns_defaults(client, store, caplog):
    response = await client.get(f"/api/widget-bootstrap/{WIDGET_TOKEN}")

    assert response.status_code == 200
    body = response.json()
    assert body["storeUrl"] == SHOP_DOMAIN
    assert body["widgetToken"] == WIDGET_TOKEN
    appearance = body["appearance"]
    assert appearance["primary_color"] == DEFAULT_PRIMARY_COLOR
    assert appearance["button_bg_color"] == DEFAULT_PRIMARY_COLOR
    assert appearance["conversation_starters"] == DEFAULT_STARTERS
    assert appearance["logo_url"] == ""
    assert appearance["show_logo"] is False
    assert any("no Origin header" in r.message for r in caplog.records)


@pytest.mark.anyio
async def test_bootstrap_with_matching_www_origin(client, session_factory, store):
    await add_appearance(
        session_factory,
        primary_color="#ff0000",
        header_title="Shop Bot",
        conversation_starters=json.dumps(["Track order"]),
        show_logo=True,
        logo_url="https://cdn.example.com/logo.png",
    )

    response = await client.get(
        f"/api/widget-bootstrap/{WIDGET_TOKEN}",
        headers={"Origin": f"https://www.{SHOP_DOMAIN}"},
    )

    assert response.status_code == 200
    appearance = response.json()["appearance"]
    assert appearance["primary_color"] == "#ff0000"
    assert appearance["button_bg_color"] == "#ff0000"
    assert appearance["header_title"] == "Shop Bot"
    assert appearance["conversation_starters"] == ["Track order"]
    assert appearance["show_logo"] is True


@pytest.mark.anyio
async def test_bootstrap_malformed_starters_fall_back(client, session_factory, store):
    await add_appearance(session_factory, conversation_starters="{broken")

    response = await client.get(f"/api/widget-bootstrap/{WIDGET_TOKEN}")

    assert response.status_code == 200
    assert response.json()["appearance"]["conversation_starters"] == DEFAULT_STARTERS


@pytest.mark.anyio
async def test_bootstrap_unknown_token(client, store):
    response = await client.get("/api/widget-bootstrap/not-a-token")

    assert response.status_code == 403
    assert response.json() == {"detail": "Invalid widget token"}


@pytest.mark.anyio
async def test_bootstrap_origin_mismatch(client, session_factory, store, caplog):
    # the other store's origin passes the CORS gate but not the bootstrap check
    await add_store(session_factory, shop_domain="other.example.com", widget_token="wt-other")

    response = await client.get(
        f"/api/widget-bootstrap/{WIDGET_TOKEN}",
        headers={"Origin": "https://other.example.com"},
    )

    assert response.status_code == 403
    assert response.json() == {"detail": "Origin not allowed"}
    assert any("origin mismatch" in r.message for r in caplog.records)


@pytest.mark.anyio
async def test_bootstrap_ignores_disconnected_store(client, session_factory):
    await add_store(session_factory, status=StoreStatus.disconnected)

    response = await client.get(f"/api/widget-bootstrap/{WIDGET_TOKEN}")

    assert response.status_code == 403
