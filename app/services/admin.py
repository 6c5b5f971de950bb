from app.models.user import User
from app.models.store import Store, StoreStatus
from app.models.message import Message
from app.models.ticket import Ticket, CustomerTicket, TicketPriority, TicketStatus
from app.schemas.store import AdminStoreOut
from app.schemas.ticket import TicketOut
from app.schemas.admin import (
    PlatformOverview,
    StoreCounts,
    ConversationCounts,
    TicketCounts,
    OverviewMeta,
    AdminListMeta,
    AdminStoreListResponse,
    AdminTicketListResponse,
)
from app.core.exceptions import DatabaseException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, case
from datetime import datetime, timedelta
from typing import Optional
import logging

logger = logging.getLogger(__name__)

PRIORITY_ORDER = case(
    (Ticket.priority == TicketPriority.urgent.value, 0),
    (Ticket.priority == TicketPriority.high.value, 1),
    (Ticket.priority == TicketPriority.medium.value, 2),
    (Ticket.priority == TicketPriority.low.value, 3),
    else_=4,
)


def _count_where(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


class AdminService:
    def __init__(self):
        pass

    async def platform_overview(self, db: AsyncSession, since: Optional[datetime] = None) -> PlatformOverview:
        message_filter = [Message.created_at >= since] if since else []
        ticket_filter = [Ticket.created_at >= since] if since else []
        try:
            stores = (await db.execute(select(
                func.count(Store.id),
                _count_where(Store.status == StoreStatus.active),
                _count_where(Store.status == StoreStatus.suspended),
                _count_where(Store.status == StoreStatus.disconnected),
            ))).one()
            new_signups = await db.scalar(
                select(func.count(Store.id)).where(Store.installed_at >= datetime.utcnow() - timedelta(days=30))
            )
            users = await db.scalar(select(func.count(User.id)))
            conversations = (await db.execute(select(
                func.count(func.distinct(Message.session_id)),
                func.count(Message.id),
                func.count(func.distinct(Message.store_url)),
            ).where(*message_filter))).one()
            tickets = (await db.execute(select(
                func.count(Ticket.id),
                _count_where(Ticket.status == TicketStatus.open.value),
                _count_where(Ticket.status == TicketStatus.pending.value),
                _count_where(Ticket.priority == TicketPriority.urgent.value),
            ).where(*ticket_filter))).one()
            open_customer_tickets = await db.scalar(
                select(func.count(CustomerTicket.id)).where(CustomerTicket.status == TicketStatus.open.value)
            )
        except Exception as ex:
            logger.exception(f"Error building platform overview: {ex}")
            raise DatabaseException(500, "Internal server error")

        return PlatformOverview(
            stores=StoreCounts(
                total_stores=stores[0] or 0,
                active_stores=stores[1] or 0,
                suspended_stores=stores[2] or 0,
                disconnected_stores=stores[3] or 0,
            ),
            users=users or 0,
            new_signups=new_signups or 0,
            conversations=ConversationCounts(
                total_conversations=conversations[0] or 0,
                total_messages=conversations[1] or 0,
                stores_with_activity=conversations[2] or 0,
            ),
            tickets=TicketCounts(
                total_tickets=tickets[0] or 0,
                open_tickets=tickets[1] or 0,
                pending_tickets=tickets[2] or 0,
                urgent_tickets=tickets[3] or 0,
                open_customer_tickets=open_customer_tickets or 0,
            ),
            meta=OverviewMeta(since=since, timestamp=datetime.utcnow()),
        )

    async def get_stores(self, db: AsyncSession, status: Optional[StoreStatus] = None) -> AdminStoreListResponse:
        stmt = select(Store)
        if status:
            stmt = stmt.where(Store.status == status)
        try:
            result = await db.execute(stmt.order_by(Store.installed_at.desc()))
        except Exception as ex:
            logger.exception(f"Error listing stores: {ex}")
            raise DatabaseException(500, "Internal server error")
        stores = [AdminStoreOut.model_validate(s) for s in result.scalars().all()]
        return AdminStoreListResponse(
            stores=stores,
            total=len(stores),
            meta=AdminListMeta(
                status_filter=status.value if status else None,
                timestamp=datetime.utcnow(),
            ),
        )

    async def get_tickets(
        self,
        db: AsyncSession,
        status: Optional[str] = None,
        priority: Optional[str] = None,
    ) -> AdminTicketListResponse:
        stmt = select(Ticket)
        if status:
            stmt = stmt.where(Ticket.status == status)
        if priority:
            stmt = stmt.where(Ticket.priority == priority)
        try:
            result = await db.execute(stmt.order_by(PRIORITY_ORDER, Ticket.created_at.desc()))
        except Exception as ex:
            logger.exception(f"Error listing tickets: {ex}")
            raise DatabaseException(500, "Internal server error")
        tickets = [TicketOut.model_validate(t) for t in result.scalars().all()]
        return AdminTicketListResponse(
            tickets=tickets,
            total=len(tickets),
            meta=AdminListMeta(status_filter=status, priority_filter=priority, timestamp=datetime.utcnow()),
        )
