import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.crud.store import get_store_by_widget_token
from app.core.origin import normalize_host
from app.core.exceptions import AuthorizationException, DatabaseException
from app.schemas.widget import WidgetBootstrapResponse, WidgetAppearance
from app.services.appearance import AppearanceService, to_settings

logger = logging.getLogger(__name__)


class WidgetService:
    def __init__(self, appearance_service: Optional[AppearanceService] = None):
        self.appearance_service = appearance_service or AppearanceService()

    async def bootstrap(self, db: AsyncSession, widget_token: str, origin: Optional[str]) -> WidgetBootstrapResponse:
        """
        Resolve the public widget configuration from its token alone.

        The Origin cross-check only applies when the browser sent an Origin;
        a missing Origin is served.
        """
        try:
            store = await get_store_by_widget_token(db, widget_token)
        except Exception as ex:
            logger.exception(f"widget-bootstrap store lookup failed: {ex}")
            raise DatabaseException(500, "Internal server error")

        if store is None:
            logger.warning(f"widget-bootstrap: invalid token {widget_token[:6]}...")
            raise AuthorizationException("Invalid widget token")

        store_domain = normalize_host(store.shop_domain)
        if origin:
            origin_host = normalize_host(origin)
            if origin_host != store_domain:
                logger.warning(
                    f"widget-bootstrap: origin mismatch originHost={origin_host} storeDomain={store_domain}"
                )
                raise AuthorizationException("Origin not allowed")
        else:
            logger.info(f"widget-bootstrap: no Origin header present for {store_domain}")

        try:
            row = await self.appearance_service.get_row(db, store_domain)
        except Exception as ex:
            logger.exception(f"widget-bootstrap appearance lookup failed for {store_domain}: {ex}")
            raise DatabaseException(500, "Internal server error")

        settings = to_settings(store_domain, row)
        return WidgetBootstrapResponse(
            storeUrl=store.shop_domain,
            widgetToken=store.widget_token,
            appearance=WidgetAppearance(
                primary_color=settings.primary_color,
                button_bg_color=settings.button_bg_color or settings.primary_color,
                button_text_color=settings.button_text_color,
                button_shape=settings.button_shape,
                button_position=settings.button_position,
                header_title=settings.header_title,
                welcome_message=settings.welcome_message,
                conversation_starters=settings.conversation_starters,
                logo_url=settings.logo_url or "",
                show_logo=settings.show_logo,
            ),
        )
