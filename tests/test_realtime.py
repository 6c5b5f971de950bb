import pytest
from socketio.exceptions import ConnectionRefusedError

from conftest import add_store, DASHBOARD_ORIGIN, SHOP_DOMAIN
from app.core.origin import OriginPolicy
from app.core.realtime import Broadcaster, NEW_MESSAGE, create_socket_server, store_room, _room_from_payload


class FakeSocketServer:
    def __init__(self, fail=False):
        self.fail = fail
        self.emitted = []

    async def emit(self, event, data, to=None):
        if self.fail:
            raise RuntimeError("transport closed")
        self.emitted.append((event, data, to))


def test_room_names_use_normalized_host():
    assert store_room("https://www.Shop.Example.com/") == f"store_{SHOP_DOMAIN}"
    assert store_room("") == ""
    assert _room_from_payload(SHOP_DOMAIN) == f"store_{SHOP_DOMAIN}"
    assert _room_from_payload({"storeUrl": SHOP_DOMAIN}) == f"store_{SHOP_DOMAIN}"
    assert _room_from_payload({"store_url": SHOP_DOMAIN}) == f"store_{SHOP_DOMAIN}"
    assert _room_from_payload({"other": 1}) == ""
    assert _room_from_payload(None) == ""


@pytest.mark.anyio
async def test_broadcaster_emits_to_store_room():
    sio = FakeSocketServer()

    await Broadcaster(sio).emit_to_store(f"https://{SHOP_DOMAIN}", NEW_MESSAGE, {"id": 1})

    assert sio.emitted == [(NEW_MESSAGE, {"id": 1}, f"store_{SHOP_DOMAIN}")]


@pytest.mark.anyio
async def test_broadcaster_swallows_emit_failures(caplog):
    await Broadcaster(FakeSocketServer(fail=True)).emit_to_store(SHOP_DOMAIN, NEW_MESSAGE, {"id": 1})

    assert any("Socket emit failed" in r.message for r in caplog.records)


@pytest.mark.anyio
async def test_broadcaster_without_server_is_noop():
    await Broadcaster().emit_to_store(SHOP_DOMAIN, NEW_MESSAGE, {"id": 1})


@pytest.mark.anyio
async def test_connect_applies_origin_policy(session_factory):
    await add_store(session_factory)
    sio = create_socket_server(OriginPolicy([DASHBOARD_ORIGIN]), session_factory)
    connect = sio.handlers["/"]["connect"]

    await connect("sid-1", {"HTTP_ORIGIN": DASHBOARD_ORIGIN})
    await connect("sid-2", {"HTTP_ORIGIN": f"https://{SHOP_DOMAIN}"})
    await connect("sid-3", {})
    with pytest.raises(ConnectionRefusedError):
        await connect("sid-4", {"HTTP_ORIGIN": "https://evil.example.com"})


@pytest.mark.anyio
async def test_join_and_leave_store_rooms(session_factory, monkeypatch):
    sio = create_socket_server(OriginPolicy(), session_factory)
    joined, left = [], []
    monkeypatch.setattr(sio, "enter_room", lambda sid, room, namespace=None: joined.append((sid, room)))
    monkeypatch.setattr(sio, "leave_room", lambda sid, room, namespace=None: left.append((sid, room)))

    await sio.handlers["/"]["join_store_room"]("sid-1", f"www.{SHOP_DOMAIN}")
    await sio.handlers["/"]["join_store"]("sid-2", {"storeUrl": SHOP_DOMAIN})
    await sio.handlers["/"]["join_store"]("sid-3", {})
    await sio.handlers["/"]["leave_store_room"]("sid-1", SHOP_DOMAIN)

    assert joined == [("sid-1", f"store_{SHOP_DOMAIN}"), ("sid-2", f"store_{SHOP_DOMAIN}")]
    assert left == [("sid-1", f"store_{SHOP_DOMAIN}")]
