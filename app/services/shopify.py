from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.store import Store, PendingStore, StoreStatus
from app.core.config import settings
from app.core.origin import normalize_host
from app.core.security import generate_registration_token
from app.core.exceptions import DatabaseException
import logging

logger = logging.getLogger(__name__)

@dataclass
class InstallResult:
    shop: str
    reinstalled: bool
    temp_token: Optional[str] = None


class ShopifyInstallService:
    """
    Second half of the OAuth handshake: either refresh a known store or park
    the shop in pending_stores until the merchant signs up.
    """

    def __init__(self):
        pass

    async def complete_install(self, db: AsyncSession, shop: str, access_token: str) -> InstallResult:
        shop_domain = normalize_host(shop)
        store_slug = shop_domain.split(".")[0]

        try:
            # lookup and write share one transaction so two callbacks for the
            # same shop cannot both take the new-install branch
            result = await db.execute(
                select(Store).where(Store.shop_domain == shop_domain).with_for_update()
            )
            store = result.scalar_one_or_none()

            if store is not None:
                logger.info(f"Reinstall for {shop_domain} (store {store.id}, user {store.user_id})")
                store.access_token = access_token
                store.installed_at = datetime.utcnow()
                store.status = StoreStatus.active
                await db.commit()
                return InstallResult(shop=shop_domain, reinstalled=True)

            temp_token = generate_registration_token()
            expires_at = datetime.utcnow() + timedelta(minutes=settings.pending_store_ttl_minutes)

            result = await db.execute(
                select(PendingStore).where(PendingStore.shop_domain == shop_domain).with_for_update()
            )
            pending = result.scalar_one_or_none()
            if pending is None:
                db.add(PendingStore(
                    shop_domain=shop_domain,
                    access_token=access_token,
                    store_id=store_slug,
                    temp_token=temp_token,
                    expires_at=expires_at,
                ))
            else:
                pending.access_token = access_token
                pending.temp_token = temp_token
                pending.expires_at = expires_at
            await db.commit()
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Failed to save installation for {shop_domain}: {ex}")
            raise DatabaseException(500, "Failed to save store installation")

        logger.info(f"New installation for {shop_domain}, pending signup")
        return InstallResult(shop=shop_domain, reinstalled=False, temp_token=temp_token)
