import hashlib
import hmac
import logging
import re
from typing import Mapping
from urllib.parse import urlencode
import httpx
from app.core.config import settings
from app.core.exceptions import ExternalServiceException, ExternalServiceServerError

logger = logging.getLogger(__name__)

SHOP_DOMAIN_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]*\.myshopify\.com$")


def is_valid_shop(shop: str) -> bool:
    return bool(shop) and SHOP_DOMAIN_RE.match(shop) is not None


def sign_hmac(secret: str, message: str) -> str:
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def verify_hmac(secret: str, query: Mapping[str, str]) -> bool:
    if not secret:
        return False
    q = {k: v for k, v in query.items() if k not in ("hmac", "signature")}
    msg = "&".join(f"{k}={v}" for k, v in sorted(q.items(), key=lambda kv: kv[0]))
    provided = query.get("hmac") or ""
    return hmac.compare_digest(sign_hmac(secret, msg), provided)


class ShopifyOAuthService:
    def __init__(self):
        self.api_key = settings.shopify_api_key
        self.api_secret = settings.shopify_api_secret
        self.scopes = settings.shopify_api_scopes
        self.redirect_uri = f"{settings.backend_url.rstrip('/')}/api/shopify/callback"

    def build_install_url(self, shop: str) -> str:
        query = urlencode({
            "client_id": self.api_key,
            "scope": self.scopes,
            "redirect_uri": self.redirect_uri,
        })
        return f"https://{shop}/admin/oauth/authorize?{query}"

    def verify_callback(self, query: Mapping[str, str]) -> bool:
        return verify_hmac(self.api_secret, query)

    async def exchange_code_for_token(self, shop: str, code: str) -> str:
        url = f"https://{shop}/admin/oauth/access_token"
        payload = {
            "client_id": self.api_key,
            "client_secret": self.api_secret,
            "code": code,
        }
        try:
            async with httpx.AsyncClient(timeout=15) as client:
                response = await client.post(url, json=payload)
        except httpx.RequestError as e:
            logger.error(f"Shopify token exchange request failed for {shop}: {e!r}")
            raise ExternalServiceServerError(f"Request failed: {e!r}")

        try:
            data = response.json()
        except ValueError:
            data = {}

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if response.status_code != 200 or not access_token:
            logger.error(f"Failed to get access token from Shopify for {shop}: status={response.status_code}")
            raise ExternalServiceException("Failed to get access token from Shopify")
        return access_token
