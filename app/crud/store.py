from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from datetime import datetime
from typing import Optional
from app.models.store import Store, PendingStore, StoreStatus
from app.core.origin import normalize_host

async def get_store_by_domain(db: AsyncSession, domain: str, active_only: bool = True) -> Optional[Store]:
    host = normalize_host(domain)
    if not host:
        return None
    stmt = select(Store).where(Store.shop_domain == host)
    if active_only:
        stmt = stmt.where(Store.status == StoreStatus.active)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none()

async def get_store_by_widget_token(db: AsyncSession, widget_token: str) -> Optional[Store]:
    if not widget_token:
        return None
    result = await db.execute(
        select(Store)
        .where(Store.widget_token == widget_token, Store.status == StoreStatus.active)
        .limit(1)
    )
    return result.scalar_one_or_none()

async def get_user_store(db: AsyncSession, user_id: int, store_id: str) -> Optional[Store]:
    result = await db.execute(
        select(Store).where(Store.store_id == store_id, Store.user_id == user_id)
    )
    return result.scalar_one_or_none()

async def list_user_stores(db: AsyncSession, user_id: int) -> list[Store]:
    result = await db.execute(
        select(Store).where(Store.user_id == user_id).order_by(Store.installed_at.desc())
    )
    return list(result.scalars().all())

async def get_valid_pending_store(db: AsyncSession, temp_token: str) -> Optional[PendingStore]:
    result = await db.execute(
        select(PendingStore).where(
            PendingStore.temp_token == temp_token,
            PendingStore.expires_at > datetime.utcnow(),
        )
    )
    return result.scalar_one_or_none()
