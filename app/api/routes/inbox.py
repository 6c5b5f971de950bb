from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.api.deps import get_current_user, get_accessible_store, get_broadcaster
from app.core.realtime import Broadcaster
from app.models.user import User
from app.schemas.inbox import InboxResponse, ThreadResponse, MarkReadRequest, ReplyRequest, ReplyResponse
from app.services.inbox import InboxService
import logging
logger = logging.getLogger("inbox")
router = APIRouter()

def get_inbox_service():
    return InboxService()

@router.get("", response_model=InboxResponse)
async def list_conversations(
    store_url: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    channel: Optional[str] = None,
    only_unread: bool = False,
    search: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    inbox_service: InboxService = Depends(get_inbox_service),
):
    store = await get_accessible_store(db, current_user, store_url)
    return await inbox_service.list_sessions(
        db, store.shop_domain, page, per_page, channel, only_unread, search
    )

@router.get("/{session_id}/messages", response_model=ThreadResponse)
async def get_conversation(
    session_id: str,
    store_url: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    inbox_service: InboxService = Depends(get_inbox_service),
):
    store = await get_accessible_store(db, current_user, store_url)
    return await inbox_service.get_thread(db, store.shop_domain, session_id)

@router.post("/{session_id}/mark-read")
async def mark_read(
    session_id: str,
    data: MarkReadRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    inbox_service: InboxService = Depends(get_inbox_service),
):
    store = await get_accessible_store(db, current_user, data.store_url)
    updated = await inbox_service.mark_read(db, store.shop_domain, session_id, broadcaster)
    return {"success": True, "updated": updated}

@router.post("/{session_id}/reply", response_model=ReplyResponse)
async def reply(
    session_id: str,
    data: ReplyRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    inbox_service: InboxService = Depends(get_inbox_service),
):
    await get_accessible_store(db, current_user, data.store_url)
    logger.info(f"User {current_user.id} replying to {session_id}")
    return await inbox_service.reply(db, session_id, data, broadcaster)
