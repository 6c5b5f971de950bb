from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.api.deps import get_current_admin
from app.db.session import get_db
from app.models.user import User
from app.models.store import StoreStatus
from app.schemas.admin import PlatformOverview, AdminStoreListResponse, AdminTicketListResponse
from app.services.admin import AdminService
import logging

router = APIRouter()

logger = logging.getLogger("admin")


def get_admin_service():
    return AdminService()

@router.get("/platform-overview", response_model=PlatformOverview)
async def platform_overview(
    since: Optional[datetime] = None,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    admin_service: AdminService = Depends(get_admin_service)):
    return await admin_service.platform_overview(db, since)

@router.get("/stores", response_model=AdminStoreListResponse)
async def get_stores(
    status: Optional[StoreStatus] = None,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    admin_service: AdminService = Depends(get_admin_service)):
    return await admin_service.get_stores(db, status)

@router.get("/tickets", response_model=AdminTicketListResponse)
async def get_tickets(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    current_user: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
    admin_service: AdminService = Depends(get_admin_service)):
    logger.info(f"Admin {current_user.id} listing tickets status={status} priority={priority}")
    return await admin_service.get_tickets(db, status, priority)
