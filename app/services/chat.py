import logging
import time
from typing import Any, Dict, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.message import Message
from app.core.origin import normalize_host
from app.core.realtime import Broadcaster, NEW_MESSAGE
from app.external.n8n import N8nService

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Here's what I found for you:"
EMPTY_REPLY = "I received your message."
RESPONSE_TEXT_KEYS = ("reply", "message", "output", "text")


def extract_bot_response(body: Any) -> str:
    if isinstance(body, str):
        return body
    if isinstance(body, dict):
        for key in RESPONSE_TEXT_KEYS:
            value = body.get(key)
            if value and str(value).strip():
                return str(value)
        return FALLBACK_REPLY
    return EMPTY_REPLY


def _first_of(body: Dict[str, Any], *keys):
    for key in keys:
        if body.get(key):
            return body[key]
    return None


def build_message_json(body: Any) -> Optional[Dict[str, Any]]:
    """Product cards win over checkout links; anything else stores no JSON."""
    if not isinstance(body, dict):
        return None
    products = body.get("products")
    if isinstance(products, list) and products:
        return {"type": "product_card", "products": products, "reply": body.get("reply") or ""}
    checkout_url = _first_of(body, "checkoutUrl", "checkout_url", "checkout")
    if checkout_url:
        return {
            "type": "checkout",
            "checkoutUrl": checkout_url,
            "cartTotal": _first_of(body, "cartTotal", "cart_total"),
            "itemCount": _first_of(body, "itemCount", "item_count"),
            "cartQuantity": body.get("cartQuantity"),
            "reply": body.get("reply") or "",
        }
    return None


class ChatService:
    def __init__(self):
        pass

    async def relay(
        self,
        db: AsyncSession,
        payload: Dict[str, Any],
        n8n: N8nService,
        broadcaster: Broadcaster,
    ) -> Tuple[int, Any]:
        """
        Forward a widget message to n8n and return n8n's answer unchanged.
        Ordinary chat turns are persisted and pushed to the store's dashboards.
        """
        status_code, body = await n8n.relay_chat(payload)

        if payload.get("type") == "chat_message":
            message = await self.save_turn(db, payload, body)
            if message is not None:
                await broadcaster.emit_to_store(message.store_url, NEW_MESSAGE, {
                    "id": message.id,
                    "session_id": message.session_id,
                    "customer_id": message.customer_id,
                    "channel": message.channel,
                    "user_message": message.user_message,
                    "bot_response": message.bot_response,
                    "message_json": message.message_json,
                    "created_at": message.created_at,
                    "is_read": message.is_read,
                    "user_name": message.user_name,
                    "user_email": message.user_email,
                })
        return status_code, body

    async def save_turn(self, db: AsyncSession, payload: Dict[str, Any], body: Any) -> Optional[Message]:
        store_url = normalize_host(payload.get("store") or payload.get("storeUrl")) or "unknown_store"
        session_id = payload.get("sessionId") or f"sess-{int(time.time() * 1000)}"
        message = Message(
            store_url=store_url,
            session_id=str(session_id),
            customer_id=payload.get("customerId"),
            channel=payload.get("channel") or "website",
            user_email=payload.get("email"),
            user_name=payload.get("name"),
            user_message=payload.get("message"),
            bot_response=extract_bot_response(body),
            message_json=build_message_json(body),
            query_type=payload.get("queryType") or "general",
            is_read=False,
        )
        # a failed insert never changes what the shopper receives
        try:
            db.add(message)
            await db.commit()
            await db.refresh(message)
        except Exception as ex:
            await db.rollback()
            logger.error(f"Failed to save chat message for {store_url}/{session_id}: {ex}")
            return None
        logger.info(f"Saved chat turn {message.id} for {store_url}")
        return message
