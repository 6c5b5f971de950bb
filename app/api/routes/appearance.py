from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.api.deps import get_current_user, get_accessible_store
from app.models.user import User
from app.schemas.appearance import AppearanceSettings, AppearanceUpdate
from app.services.appearance import AppearanceService
import logging
logger = logging.getLogger("appearance")
router = APIRouter()

def get_appearance_service():
    return AppearanceService()

@router.get("/{store_url}", response_model=AppearanceSettings)
async def get_appearance(
    store_url: str,
    db: AsyncSession = Depends(get_db),
    appearance_service: AppearanceService = Depends(get_appearance_service),
):
    return await appearance_service.get_settings(db, store_url)

@router.put("/{store_url}")
async def save_appearance(
    store_url: str,
    data: AppearanceUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    appearance_service: AppearanceService = Depends(get_appearance_service),
):
    store = await get_accessible_store(db, current_user, store_url)
    await appearance_service.save_settings(db, store.shop_domain, data)
    return {"success": True, "message": "Appearance settings saved"}
