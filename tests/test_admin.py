import pytest

from conftest import add_store, add_user, auth_headers
from app.models.message import Message
from app.models.store import StoreStatus
from app.models.ticket import Ticket, CustomerTicket


@pytest.fixture
async def admin(session_factory):
    return await add_user(session_factory, email="ops@quell.test", is_admin=True)


async def add_tickets(session_factory):
    async with session_factory() as db:
        for subject, priority, status in [
            ("low", "Low", "open"),
            ("urgent", "Urgent", "open"),
            ("medium", "Medium", "pending"),
            ("high", "High", "closed"),
        ]:
            db.add(Ticket(store_url="shop.example.com", subject=subject, description="d", priority=priority, status=status))
        db.add(CustomerTicket(store_url="shop.example.com", customer_id="c1", subject="s", description="d"))
        await db.commit()


@pytest.mark.anyio
async def test_admin_routes_require_admin(client, owner):
    for path in ("/admin/platform-overview", "/admin/stores", "/admin/tickets"):
        response = await client.get(path, headers=auth_headers(owner))
        assert response.status_code == 403


@pytest.mark.anyio
async def test_tickets_are_ordered_by_priority(client, session_factory, admin):
    await add_tickets(session_factory)

    response = await client.get("/admin/tickets", headers=auth_headers(admin))
    open_only = await client.get("/admin/tickets", params={"status": "open"}, headers=auth_headers(admin))

    assert [t["subject"] for t in response.json()["tickets"]] == ["urgent", "high", "medium", "low"]
    assert response.json()["total"] == 4
    assert [t["subject"] for t in open_only.json()["tickets"]] == ["urgent", "low"]
    assert open_only.json()["meta"]["status_filter"] == "open"


@pytest.mark.anyio
async def test_store_listing(client, session_factory, admin, store):
    await add_store(session_factory, shop_domain="gone.example.com", widget_token="wt-gone", status=StoreStatus.disconnected)

    everything = await client.get("/admin/stores", headers=auth_headers(admin))
    disconnected = await client.get("/admin/stores", params={"status": "disconnected"}, headers=auth_headers(admin))

    assert everything.json()["total"] == 2
    assert [s["shop_domain"] for s in disconnected.json()["stores"]] == ["gone.example.com"]


@pytest.mark.anyio
async def test_platform_overview(client, session_factory, admin, store):
    await add_tickets(session_factory)
    async with session_factory() as db:
        db.add_all([
            Message(store_url="shop.example.com", session_id="s1", user_message="a"),
            Message(store_url="shop.example.com", session_id="s1", user_message="b"),
            Message(store_url="shop.example.com", session_id="s2", user_message="c"),
        ])
        await db.commit()

    response = await client.get("/admin/platform-overview", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["stores"]["total_stores"] == 1
    assert body["stores"]["active_stores"] == 1
    assert body["users"] == 2
    assert body["conversations"] == {"total_conversations": 2, "total_messages": 3, "stores_with_activity": 1}
    assert body["tickets"]["total_tickets"] == 4
    assert body["tickets"]["open_tickets"] == 2
    assert body["tickets"]["urgent_tickets"] == 1
    assert body["tickets"]["open_customer_tickets"] == 1
