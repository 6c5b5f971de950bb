"""Socket.IO fan-out to merchant dashboards.

Dashboards join ``store_<host>`` rooms; routes push events there after their
DB write succeeds. Delivery is best-effort and at-most-once; the dashboard
always re-fetches over REST for the source of truth.
"""
import inspect
import logging
from typing import Any, Optional
import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused
from fastapi.encoders import jsonable_encoder
from app.core.origin import OriginPolicy, OriginCheckError, SessionFactory, normalize_host

logger = logging.getLogger(__name__)

NEW_MESSAGE = "conversation:new_message"
CONVERSATION_READ = "conversation:read"
CUSTOMER_TICKET_CREATED = "customer_ticket_created"
CUSTOMER_TICKET_UPDATED = "customer_ticket_updated"


def store_room(store_url: Optional[str]) -> str:
    host = normalize_host(store_url)
    return f"store_{host}" if host else ""


def _room_from_payload(payload: Any) -> str:
    # dashboards send either "shop.com" or {"storeUrl": "shop.com"}
    if isinstance(payload, dict):
        payload = payload.get("storeUrl") or payload.get("store_url") or payload.get("store")
    if not isinstance(payload, str):
        return ""
    return store_room(payload)


async def _maybe_await(result):
    # enter_room / leave_room are coroutines on newer python-socketio releases
    if inspect.isawaitable(result):
        await result


def create_socket_server(policy: OriginPolicy, session_factory: SessionFactory) -> socketio.AsyncServer:
    # engine.io CORS handling is disabled; the connect handler applies the
    # same origin policy as the HTTP gate
    sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=[])

    @sio.event
    async def connect(sid, environ, auth=None):
        origin = environ.get("HTTP_ORIGIN")
        try:
            allowed = await policy.is_origin_allowed(origin, session_factory)
        except OriginCheckError:
            raise SocketConnectionRefused("Internal Server Error")
        if not allowed:
            logger.warning(f"Blocked socket connection from: {origin}")
            raise SocketConnectionRefused("Not allowed by Socket.IO CORS")
        logger.info(f"Socket connected: {sid}")

    async def join_store(sid, payload=None):
        room = _room_from_payload(payload)
        if room:
            await _maybe_await(sio.enter_room(sid, room))
            logger.debug(f"{sid} joined {room}")

    async def leave_store(sid, payload=None):
        room = _room_from_payload(payload)
        if room:
            await _maybe_await(sio.leave_room(sid, room))

    sio.on("join_store", join_store)
    sio.on("join_store_room", join_store)
    sio.on("leave_store", leave_store)
    sio.on("leave_store_room", leave_store)

    @sio.event
    async def disconnect(sid, *args):
        logger.info(f"Socket disconnected: {sid}")

    return sio


class Broadcaster:
    def __init__(self, sio: Optional[socketio.AsyncServer] = None):
        self.sio = sio

    async def emit_to_store(self, store_url: str, event: str, payload: Any) -> None:
        room = store_room(store_url)
        if self.sio is None or not room:
            return
        try:
            await self.sio.emit(event, jsonable_encoder(payload), to=room)
            logger.debug(f"Emitted {event} to {room}")
        except Exception as ex:
            logger.warning(f"Socket emit failed for {event} to {room}: {ex}")
