from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.api.deps import get_current_user, get_n8n_service
from app.crud.store import get_user_store, list_user_stores
from app.core.exceptions import StoreNotFoundException
from app.external.n8n import N8nService
from app.models.user import User
from app.models.store import Store
from app.schemas.store import StoreOut, StoreListResponse, StoreResponse
from app.services.store import StoreService
import logging
logger = logging.getLogger("stores")
router = APIRouter()

def get_store_service():
    return StoreService()

async def get_owned_store(
    store_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Store:
    store = await get_user_store(db, current_user.id, store_id)
    if store is None:
        logger.warning(f"User {current_user.id} requested unknown store {store_id}")
        raise StoreNotFoundException(store_id)
    return store

@router.get("", response_model=StoreListResponse)
async def list_stores(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stores = await list_user_stores(db, current_user.id)
    return StoreListResponse(stores=[StoreOut.model_validate(s) for s in stores])

@router.get("/{store_id}", response_model=StoreResponse)
async def get_store(store: Store = Depends(get_owned_store)):
    return StoreResponse(store=StoreOut.model_validate(store))

@router.post("/{store_id}/sync", response_model=StoreResponse)
async def sync_store(
    store: Store = Depends(get_owned_store),
    db: AsyncSession = Depends(get_db),
    n8n: N8nService = Depends(get_n8n_service),
    store_service: StoreService = Depends(get_store_service),
):
    logger.info(f"Manual sync requested for {store.shop_domain}")
    store = await store_service.trigger_sync(db, store, n8n)
    return StoreResponse(store=StoreOut.model_validate(store))

@router.delete("/{store_id}", response_model=StoreResponse)
async def disconnect_store(
    store: Store = Depends(get_owned_store),
    db: AsyncSession = Depends(get_db),
    store_service: StoreService = Depends(get_store_service),
):
    store = await store_service.disconnect(db, store)
    return StoreResponse(store=StoreOut.model_validate(store))

@router.post("/{store_id}/widget-token", response_model=StoreResponse)
async def rotate_widget_token(
    store: Store = Depends(get_owned_store),
    db: AsyncSession = Depends(get_db),
    store_service: StoreService = Depends(get_store_service),
):
    store = await store_service.rotate_widget_token(db, store)
    return StoreResponse(store=StoreOut.model_validate(store))
