import logging
from typing import Dict, List, Optional
from sqlalchemy import select, update, func, case, or_
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.message import Message
from app.core.origin import normalize_host
from app.core.realtime import Broadcaster, NEW_MESSAGE, CONVERSATION_READ
from app.core.exceptions import DatabaseException
from app.schemas.inbox import (
    InboxResponse,
    InboxMeta,
    SessionSummary,
    ThreadResponse,
    MessageOut,
    ReplyRequest,
    ReplyResponse,
)

logger = logging.getLogger(__name__)


class InboxService:
    def __init__(self):
        pass

    async def list_sessions(
        self,
        db: AsyncSession,
        store_url: str,
        page: int = 1,
        per_page: int = 20,
        channel: Optional[str] = None,
        only_unread: bool = False,
        search: Optional[str] = None,
    ) -> InboxResponse:
        """Sessions with unread messages first, then most recent activity."""
        host = normalize_host(store_url)
        conditions = [Message.store_url == host]
        if channel:
            conditions.append(Message.channel == channel)
        if only_unread:
            conditions.append(Message.is_read.is_(False))
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Message.user_message.like(pattern), Message.bot_response.like(pattern)))

        unread = func.sum(case((Message.is_read.is_(False), 1), else_=0))
        last_at = func.max(Message.created_at)

        try:
            total = await db.scalar(
                select(func.count(func.distinct(Message.session_id))).where(*conditions)
            )
            stmt = (
                select(
                    Message.session_id,
                    func.max(Message.channel).label("channel"),
                    last_at.label("last_message_at"),
                    unread.label("unread_count"),
                    func.max(Message.user_name).label("user_name"),
                    func.max(Message.user_email).label("user_email"),
                )
                .where(*conditions)
                .group_by(Message.session_id)
                .order_by(case((unread > 0, 1), else_=0).desc(), last_at.desc())
                .limit(per_page)
                .offset((page - 1) * per_page)
            )
            rows = (await db.execute(stmt)).all()
            latest = await self._latest_texts(db, conditions, [row.session_id for row in rows])
        except Exception as ex:
            logger.exception(f"Error fetching inbox for {host}: {ex}")
            raise DatabaseException(500, "Failed to fetch inbox")

        data = []
        for row in rows:
            last_user, last_bot = latest.get(row.session_id, (None, None))
            data.append(SessionSummary(
                session_id=row.session_id,
                channel=row.channel,
                last_message_at=row.last_message_at,
                last_user_message=last_user,
                last_bot_response=last_bot,
                unread_count=int(row.unread_count or 0),
                user_name=row.user_name,
                user_email=row.user_email,
            ))
        return InboxResponse(meta=InboxMeta(total=total or 0, page=page, perPage=per_page), data=data)

    async def _latest_texts(self, db: AsyncSession, conditions: list, session_ids: List[str]) -> Dict[str, tuple]:
        # newest non-empty user message and bot response per session
        if not session_ids:
            return {}
        result = await db.execute(
            select(Message.session_id, Message.user_message, Message.bot_response)
            .where(*conditions, Message.session_id.in_(session_ids))
            .order_by(Message.created_at.desc(), Message.id.desc())
        )
        latest: Dict[str, list] = {}
        for session_id, user_message, bot_response in result.all():
            entry = latest.setdefault(session_id, [None, None])
            if entry[0] is None and user_message:
                entry[0] = user_message
            if entry[1] is None and bot_response:
                entry[1] = bot_response
        return {key: tuple(value) for key, value in latest.items()}

    async def get_thread(self, db: AsyncSession, store_url: str, session_id: str) -> ThreadResponse:
        host = normalize_host(store_url)
        try:
            result = await db.execute(
                select(Message)
                .where(Message.store_url == host, Message.session_id == session_id)
                .order_by(Message.created_at.asc(), Message.id.asc())
            )
            messages = result.scalars().all()
        except Exception as ex:
            logger.exception(f"Error fetching thread {session_id} for {host}: {ex}")
            raise DatabaseException(500, "Failed to fetch conversation")
        return ThreadResponse(sessionId=session_id, data=[MessageOut.model_validate(m) for m in messages])

    async def mark_read(self, db: AsyncSession, store_url: str, session_id: str, broadcaster: Broadcaster) -> int:
        host = normalize_host(store_url)
        try:
            result = await db.execute(
                update(Message)
                .where(Message.store_url == host, Message.session_id == session_id)
                .values(is_read=True)
            )
            await db.commit()
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Error marking {session_id} read for {host}: {ex}")
            raise DatabaseException(500, "Failed to mark conversation as read")

        await broadcaster.emit_to_store(host, CONVERSATION_READ, {"session_id": session_id})
        return result.rowcount or 0

    async def reply(
        self,
        db: AsyncSession,
        session_id: str,
        data: ReplyRequest,
        broadcaster: Broadcaster,
    ) -> ReplyResponse:
        """Merchant reply; stored as a bot_response row that is already read."""
        host = normalize_host(data.store_url)
        message = Message(
            store_url=host,
            session_id=session_id,
            channel=data.channel or "website",
            user_email=data.user_email,
            bot_response=data.message,
            is_read=True,
        )
        try:
            db.add(message)
            await db.commit()
            await db.refresh(message)
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Error saving reply for {session_id} on {host}: {ex}")
            raise DatabaseException(500, "Failed to send reply")

        logger.info(f"Merchant reply {message.id} stored for {host}/{session_id}")
        await broadcaster.emit_to_store(host, NEW_MESSAGE, {
            "id": message.id,
            "session_id": session_id,
            "bot_response": message.bot_response,
            "created_at": message.created_at,
            "is_read": True,
        })
        return ReplyResponse(messageId=message.id)
