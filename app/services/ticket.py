import logging
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.ticket import Ticket, CustomerTicket, TicketPriority, TicketStatus
from app.core.origin import normalize_host
from app.core.realtime import Broadcaster, CUSTOMER_TICKET_CREATED, CUSTOMER_TICKET_UPDATED
from app.core.exceptions import DatabaseException, NothingToUpdateException, TicketNotFoundException
from app.schemas.ticket import (
    TicketCreate,
    TicketUpdate,
    TicketOut,
    CustomerTicketCreate,
    CustomerTicketUpdate,
    CustomerTicketOut,
)

logger = logging.getLogger(__name__)


def _changes(data) -> dict:
    # empty strings count as "not provided"
    return {field: value for field, value in data.model_dump().items() if value}


def _scope(stmt, column, domains: Optional[List[str]]):
    if domains is not None:
        stmt = stmt.where(column.in_(domains))
    return stmt


class TicketService:
    """Merchant -> platform support tickets."""

    def __init__(self):
        pass

    async def list_tickets(
        self,
        db: AsyncSession,
        domains: Optional[List[str]],
        store_url: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Ticket]:
        stmt = _scope(select(Ticket), Ticket.store_url, domains)
        if store_url:
            stmt = stmt.where(Ticket.store_url == normalize_host(store_url))
        if status:
            stmt = stmt.where(Ticket.status == status)
        try:
            result = await db.execute(stmt.order_by(Ticket.created_at.desc(), Ticket.id.desc()))
        except Exception as ex:
            logger.exception(f"Error fetching tickets: {ex}")
            raise DatabaseException(500, "Failed to fetch tickets")
        return list(result.scalars().all())

    async def get_ticket(self, db: AsyncSession, ticket_id: int, domains: Optional[List[str]]) -> Ticket:
        stmt = _scope(select(Ticket).where(Ticket.id == ticket_id), Ticket.store_url, domains)
        ticket = (await db.execute(stmt)).scalar_one_or_none()
        if ticket is None:
            raise TicketNotFoundException()
        return ticket

    async def create_ticket(self, db: AsyncSession, data: TicketCreate) -> Ticket:
        ticket = Ticket(
            store_url=normalize_host(data.store_url),
            subject=data.subject,
            description=data.description,
            issue_type=data.issue_type or "Other",
            priority=data.priority or TicketPriority.medium.value,
            status=TicketStatus.open.value,
            channel=data.channel or "Website widget",
            related_session_id=data.related_session_id,
            include_logs=bool(data.include_logs),
        )
        try:
            db.add(ticket)
            await db.commit()
            await db.refresh(ticket)
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Error creating ticket for {ticket.store_url}: {ex}")
            raise DatabaseException(500, "Failed to create ticket")
        logger.info(f"Support ticket {ticket.id} created for {ticket.store_url}")
        return ticket

    async def update_ticket(
        self,
        db: AsyncSession,
        ticket_id: int,
        data: TicketUpdate,
        domains: Optional[List[str]],
    ) -> Ticket:
        changes = _changes(data)
        if not changes:
            raise NothingToUpdateException()
        ticket = await self.get_ticket(db, ticket_id, domains)
        for field, value in changes.items():
            setattr(ticket, field, value)
        try:
            await db.commit()
            await db.refresh(ticket)
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Error updating ticket {ticket_id}: {ex}")
            raise DatabaseException(500, "Failed to update ticket")
        return ticket


class CustomerTicketService:
    """Shopper -> merchant tickets raised from the widget."""

    def __init__(self):
        pass

    async def create_ticket(
        self,
        db: AsyncSession,
        data: CustomerTicketCreate,
        broadcaster: Broadcaster,
    ) -> CustomerTicket:
        ticket = CustomerTicket(
            store_url=normalize_host(data.store),
            customer_id=data.customerId,
            customer_name=data.name or None,
            customer_email=data.email or None,
            subject=data.subject,
            description=data.description,
            order_id=data.orderId or None,
            status=TicketStatus.open.value,
            channel="chatbot",
            session_id=data.sessionId or None,
            cart_id=data.cartID or None,
        )
        try:
            db.add(ticket)
            await db.commit()
            await db.refresh(ticket)
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Error creating customer ticket for {ticket.store_url}: {ex}")
            raise DatabaseException(500, "Failed to create customer ticket")

        logger.info(f"Customer ticket {ticket.id} created for {ticket.store_url}")
        await broadcaster.emit_to_store(
            ticket.store_url, CUSTOMER_TICKET_CREATED, CustomerTicketOut.model_validate(ticket)
        )
        return ticket

    async def list_tickets(
        self,
        db: AsyncSession,
        domains: Optional[List[str]],
        store_url: Optional[str] = None,
        status: Optional[str] = None,
        customer_id: Optional[str] = None,
    ) -> List[CustomerTicket]:
        stmt = _scope(select(CustomerTicket), CustomerTicket.store_url, domains)
        if store_url:
            stmt = stmt.where(CustomerTicket.store_url == normalize_host(store_url))
        if status:
            stmt = stmt.where(CustomerTicket.status == status)
        if customer_id:
            stmt = stmt.where(CustomerTicket.customer_id == customer_id)
        try:
            result = await db.execute(stmt.order_by(CustomerTicket.created_at.desc(), CustomerTicket.id.desc()))
        except Exception as ex:
            logger.exception(f"Error fetching customer tickets: {ex}")
            raise DatabaseException(500, "Failed to fetch customer tickets")
        return list(result.scalars().all())

    async def get_ticket(self, db: AsyncSession, ticket_id: int, domains: Optional[List[str]]) -> CustomerTicket:
        stmt = _scope(
            select(CustomerTicket).where(CustomerTicket.id == ticket_id), CustomerTicket.store_url, domains
        )
        ticket = (await db.execute(stmt)).scalar_one_or_none()
        if ticket is None:
            raise TicketNotFoundException("Customer ticket not found")
        return ticket

    async def update_ticket(
        self,
        db: AsyncSession,
        ticket_id: int,
        data: CustomerTicketUpdate,
        domains: Optional[List[str]],
        broadcaster: Broadcaster,
    ) -> CustomerTicket:
        changes = _changes(data)
        if not changes:
            raise NothingToUpdateException()
        ticket = await self.get_ticket(db, ticket_id, domains)
        for field, value in changes.items():
            setattr(ticket, field, value)
        try:
            await db.commit()
            await db.refresh(ticket)
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Error updating customer ticket {ticket_id}: {ex}")
            raise DatabaseException(500, "Failed to update customer ticket")

        await broadcaster.emit_to_store(
            ticket.store_url, CUSTOMER_TICKET_UPDATED, CustomerTicketOut.model_validate(ticket)
        )
        return ticket
