"""Origin handling shared by the HTTP CORS gate, the domain lock, the widget
bootstrap and the realtime server.

Every place that compares a browser Origin with a store domain goes through
:func:`normalize_host`, so ``https://www.Shop.com/``, ``shop.com`` and
``http://shop.com:8080/path`` all compare equal.
"""
from typing import Callable, Iterable, Optional, Tuple
from urllib.parse import urlsplit
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.store import Store, StoreStatus
import logging

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]


def normalize_host(value: Optional[str]) -> str:
    """
    Reduce an origin, URL or bare domain to a canonical host.

    Rules: trim whitespace, drop the scheme, drop any path / query / port,
    drop a trailing slash, lowercase, drop a leading ``www.``.

    Returns an empty string for empty or unparseable input.
    """
    if not value:
        return ""
    value = str(value).strip()
    if not value:
        return ""
    if "://" not in value:
        value = "//" + value
    try:
        host = urlsplit(value).hostname or ""
    except ValueError:
        return ""
    host = host.rstrip(".")
    if host.startswith("www."):
        host = host[len("www."):]
    return host


class OriginCheckError(Exception):
    """Raised when the store directory could not be consulted."""


class OriginPolicy:
    """
    Immutable allow-list plus the DB-backed store-domain check.

    Built once at startup from ``settings.allowed_origins`` and handed to the
    HTTP middlewares and the Socket.IO server.
    """

    def __init__(self, allowed_origins: Iterable[str] = ()):
        self._allowed: Tuple[str, ...] = tuple(
            origin.strip().rstrip("/") for origin in allowed_origins if origin and origin.strip()
        )

    @property
    def allowed_origins(self) -> Tuple[str, ...]:
        return self._allowed

    def is_allow_listed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False
        return origin.strip().rstrip("/") in self._allowed

    async def is_registered_domain(self, origin: str, session_factory: SessionFactory) -> bool:
        host = normalize_host(origin)
        if not host:
            return False
        try:
            async with session_factory() as db:
                result = await db.execute(
                    select(Store.id)
                    .where(Store.shop_domain == host, Store.status == StoreStatus.active)
                    .limit(1)
                )
                return result.first() is not None
        except Exception as ex:
            logger.exception(f"store lookup failed for origin {origin}")
            raise OriginCheckError(str(ex)) from ex

    async def is_origin_allowed(self, origin: Optional[str], session_factory: SessionFactory) -> bool:
        """
        No Origin (same-origin or non-browser client) and allow-listed origins
        pass; anything else must belong to a registered, active store.

        Raises:
            OriginCheckError: the store lookup failed; callers must fail closed.
        """
        if not origin:
            return True
        if self.is_allow_listed(origin):
            return True
        return await self.is_registered_domain(origin, session_factory)
