from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.api.deps import get_current_user, get_accessible_store, get_n8n_service
from app.external.n8n import N8nService
from app.models.user import User
from app.schemas.analysis import AnalyzeRequest
from app.services.analysis import AnalysisService
import logging
logger = logging.getLogger("analytics")
router = APIRouter()

def get_analysis_service():
    return AnalysisService()

@router.post("/ai-analyze")
async def ai_analyze(
    data: AnalyzeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    n8n: N8nService = Depends(get_n8n_service),
    analysis_service: AnalysisService = Depends(get_analysis_service),
):
    store = await get_accessible_store(db, current_user, data.store_url)
    data.store_url = store.shop_domain
    return await analysis_service.analyze(db, data, n8n)
