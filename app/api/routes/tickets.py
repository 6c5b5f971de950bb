from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.api.deps import get_current_user, get_accessible_store, get_accessible_domains
from app.models.user import User
from app.schemas.ticket import TicketCreate, TicketUpdate, TicketOut, TicketResponse, TicketListResponse
from app.services.ticket import TicketService
import logging
logger = logging.getLogger("tickets")
router = APIRouter()

def get_ticket_service():
    return TicketService()

@router.get("/tickets", response_model=TicketListResponse)
async def list_tickets(
    store_url: Optional[str] = None,
    status: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ticket_service: TicketService = Depends(get_ticket_service),
):
    domains = await get_accessible_domains(db, current_user)
    tickets = await ticket_service.list_tickets(db, domains, store_url, status)
    return TicketListResponse(data=[TicketOut.model_validate(t) for t in tickets])

@router.get("/tickets/{ticket_id}", response_model=TicketResponse)
async def get_ticket(
    ticket_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ticket_service: TicketService = Depends(get_ticket_service),
):
    domains = await get_accessible_domains(db, current_user)
    ticket = await ticket_service.get_ticket(db, ticket_id, domains)
    return TicketResponse(data=TicketOut.model_validate(ticket))

@router.post("/tickets", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def create_ticket(
    data: TicketCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ticket_service: TicketService = Depends(get_ticket_service),
):
    await get_accessible_store(db, current_user, data.store_url)
    ticket = await ticket_service.create_ticket(db, data)
    return TicketResponse(data=TicketOut.model_validate(ticket))

@router.patch("/tickets/{ticket_id}", response_model=TicketResponse)
async def update_ticket(
    ticket_id: int,
    data: TicketUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ticket_service: TicketService = Depends(get_ticket_service),
):
    domains = await get_accessible_domains(db, current_user)
    ticket = await ticket_service.update_ticket(db, ticket_id, data, domains)
    logger.info(f"Ticket {ticket_id} updated by user {current_user.id}")
    return TicketResponse(data=TicketOut.model_validate(ticket))
