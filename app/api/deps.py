from fastapi import Depends, HTTPException, status, Request, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from app.db.session import get_db
from app.core.security import decode_access_token
from app.core.origin import normalize_host
from app.core.realtime import Broadcaster
from app.core.exceptions import StoreNotFoundException
from app.external.n8n import N8nService
from app.external.shopify import ShopifyOAuthService
from app.models.user import User
from app.models.store import Store

async def get_token_from_cookie_or_header(
    request: Request,
    authorization: str = Header(None),
) -> str:
    token = request.cookies.get("access_token")
    if not token and authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer "):]
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return token

async def get_current_user(token: str = Depends(get_token_from_cookie_or_header), db: AsyncSession = Depends(get_db)) -> User:
    payload = decode_access_token(token)
    if not payload or payload.get("user_id") is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = await db.get(User, int(payload["user_id"]))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return current_user

def get_broadcaster(request: Request) -> Broadcaster:
    return request.app.state.broadcaster

def get_n8n_service() -> N8nService:
    return N8nService()

def get_shopify_service() -> ShopifyOAuthService:
    return ShopifyOAuthService()


async def get_accessible_store(db: AsyncSession, user: User, store_url: str) -> Store:
    """Resolve a store the caller may manage; admins may manage any store."""
    host = normalize_host(store_url)
    stmt = select(Store).where(Store.shop_domain == host)
    if not user.is_admin:
        stmt = stmt.where(Store.user_id == user.id)
    result = await db.execute(stmt)
    store = result.scalar_one_or_none()
    if not host or store is None:
        raise StoreNotFoundException(store_url)
    return store

async def get_accessible_domains(db: AsyncSession, user: User) -> List[str] | None:
    """Store domains visible to the caller; None means every store (admin)."""
    if user.is_admin:
        return None
    result = await db.execute(select(Store.shop_domain).where(Store.user_id == user.id))
    return list(result.scalars().all())
