import logging
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.store import Store, StoreStatus
from app.core.security import generate_widget_token
from app.core.exceptions import DatabaseException, ExternalServiceException, ExternalServiceServerError
from app.external.n8n import N8nService

logger = logging.getLogger(__name__)


class StoreService:
    def __init__(self):
        pass

    async def trigger_sync(self, db: AsyncSession, store: Store, n8n: N8nService) -> Store:
        try:
            await n8n.trigger_product_sync({
                "userId": store.user_id,
                "shop": store.shop_domain,
                "accessToken": store.access_token,
                "storeId": store.store_id,
                "syncType": "manual",
            })
        except ExternalServiceException as ex:
            logger.error(f"Manual sync failed for {store.shop_domain}: {ex.detail}")
            raise ExternalServiceServerError("Failed to trigger sync")

        store.last_sync_at = datetime.utcnow()
        try:
            await db.commit()
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Failed to record sync time for {store.shop_domain}: {ex}")
            raise DatabaseException(500, "Failed to update store")
        return store

    async def disconnect(self, db: AsyncSession, store: Store) -> Store:
        store.status = StoreStatus.disconnected
        try:
            await db.commit()
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Failed to disconnect {store.shop_domain}: {ex}")
            raise DatabaseException(500, "Failed to disconnect store")
        logger.info(f"Store {store.shop_domain} disconnected")
        return store

    async def rotate_widget_token(self, db: AsyncSession, store: Store) -> Store:
        """The previous token stops working as soon as this commits."""
        store.widget_token = generate_widget_token()
        try:
            await db.commit()
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Failed to rotate widget token for {store.shop_domain}: {ex}")
            raise DatabaseException(500, "Failed to rotate widget token")
        logger.info(f"Widget token rotated for {store.shop_domain}")
        return store
