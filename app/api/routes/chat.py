from typing import Any, Dict
from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.api.deps import get_broadcaster, get_n8n_service
from app.core.exceptions import ExternalServiceException, ExternalServiceServerError
from app.core.realtime import Broadcaster
from app.external.n8n import N8nService
from app.services.chat import ChatService
import logging
logger = logging.getLogger("chat")
router = APIRouter()

def get_chat_service():
    return ChatService()

@router.post("")
async def chat(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    n8n: N8nService = Depends(get_n8n_service),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    chat_service: ChatService = Depends(get_chat_service),
):
    logger.info(f"Chat request type={payload.get('type')} store={payload.get('store') or payload.get('storeUrl')}")
    try:
        status_code, body = await chat_service.relay(db, payload, n8n, broadcaster)
    except ExternalServiceException as ex:
        raise ExternalServiceServerError(f"Failed to call n8n webhook: {ex.detail}", status_code=ex.status_code)
    # 204 and empty upstream answers must not carry a body
    if status_code == 204 or body in ("", None):
        return Response(status_code=status_code)
    return JSONResponse(status_code=status_code, content=body)
