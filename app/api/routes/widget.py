from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.schemas.widget import WidgetBootstrapResponse
from app.services.widget import WidgetService
import logging
logger = logging.getLogger("widget")
router = APIRouter()

def get_widget_service():
    return WidgetService()

@router.get("/{token}", response_model=WidgetBootstrapResponse)
async def widget_bootstrap(
    token: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    widget_service: WidgetService = Depends(get_widget_service),
):
    return await widget_service.bootstrap(db, token, request.headers.get("origin"))
