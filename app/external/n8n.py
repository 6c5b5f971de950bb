import json
import logging
from typing import Any, Dict, Optional, Tuple
import httpx
from app.core.config import settings
from app.core.exceptions import ExternalServiceException, ExternalServiceServerError

logger = logging.getLogger(__name__)

CUSTOMER_CHECK_QUERY_TYPES = ("account",)


def _parse_body(response: httpx.Response) -> Any:
    """n8n sometimes answers with JSON encoded inside a JSON string."""
    try:
        body = response.json()
    except ValueError:
        body = response.text
    if isinstance(body, str):
        try:
            body = json.loads(body)
            logger.debug("Parsed stringified JSON from n8n")
        except ValueError:
            pass
    return body


class N8nService:
    """Relay to the n8n workflows that implement the AI logic."""

    def __init__(self):
        self.base_url = settings.n8n_webhook_url.rstrip("/")
        self.chat_webhook = settings.n8n_chat_webhook
        self.customer_check_webhook = settings.n8n_customercheck_webhook
        self.analysis_webhook = settings.n8n_analysis_webhook_url

    def select_chat_webhook(self, payload: Dict[str, Any]) -> str:
        if payload.get("type") == "user_info":
            return self.customer_check_webhook
        if str(payload.get("queryType") or "").lower() in CUSTOMER_CHECK_QUERY_TYPES:
            return self.customer_check_webhook
        return self.chat_webhook

    async def _post(self, url: str, data: Dict[str, Any], timeout: float) -> httpx.Response:
        if not url:
            raise ExternalServiceException("n8n webhook URL is not configured")
        try:
            async with httpx.AsyncClient(timeout=timeout) as client:
                response = await client.post(url, json=data)
        except httpx.RequestError as e:
            logger.error(f"n8n request error for {url}: {e!r}")
            raise ExternalServiceServerError(f"Request failed: {e!r}")

        logger.debug(f"n8n response from {url}: status={response.status_code}")
        if not 200 <= response.status_code < 300:
            logger.error(f"n8n returned {response.status_code} for {url}: {response.text[:200]}")
            raise ExternalServiceServerError(
                f"Webhook returned {response.status_code}",
                status_code=response.status_code,
            )
        return response

    async def relay_chat(self, payload: Dict[str, Any]) -> Tuple[int, Any]:
        url = self.select_chat_webhook(payload)
        response = await self._post(url, payload, settings.n8n_chat_timeout)
        return response.status_code, _parse_body(response)

    async def trigger_product_sync(self, payload: Dict[str, Any]) -> None:
        await self._post(f"{self.base_url}/initialsync", payload, settings.n8n_sync_timeout)
        logger.info(f"Product sync triggered for {payload.get('shop')}")

    async def analyze_session(self, session_id: str, store_url: str) -> Optional[Any]:
        response = await self._post(
            self.analysis_webhook,
            {"session_id": session_id, "store_url": store_url},
            settings.n8n_analysis_timeout,
        )
        return _parse_body(response)
