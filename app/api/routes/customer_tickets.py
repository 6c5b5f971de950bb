from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.session import get_db
from app.api.deps import get_current_user, get_accessible_domains, get_broadcaster
from app.core.realtime import Broadcaster
from app.models.user import User
from app.schemas.ticket import (
    CustomerTicketCreate,
    CustomerTicketUpdate,
    CustomerTicketOut,
    CustomerTicketResponse,
    CustomerTicketListResponse,
)
from app.services.ticket import CustomerTicketService
import logging
logger = logging.getLogger("customer_tickets")
router = APIRouter()

def get_customer_ticket_service():
    return CustomerTicketService()

@router.post("/customer-tickets", response_model=CustomerTicketResponse, status_code=status.HTTP_201_CREATED)
async def create_customer_ticket(
    data: CustomerTicketCreate,
    db: AsyncSession = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    ticket_service: CustomerTicketService = Depends(get_customer_ticket_service),
):
    ticket = await ticket_service.create_ticket(db, data, broadcaster)
    return CustomerTicketResponse(data=CustomerTicketOut.model_validate(ticket))

@router.get("/customer-tickets", response_model=CustomerTicketListResponse)
async def list_customer_tickets(
    store_url: Optional[str] = None,
    status: Optional[str] = None,
    customer_id: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ticket_service: CustomerTicketService = Depends(get_customer_ticket_service),
):
    domains = await get_accessible_domains(db, current_user)
    tickets = await ticket_service.list_tickets(db, domains, store_url, status, customer_id)
    return CustomerTicketListResponse(data=[CustomerTicketOut.model_validate(t) for t in tickets])

@router.get("/customer-tickets/{ticket_id}", response_model=CustomerTicketResponse)
async def get_customer_ticket(
    ticket_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    ticket_service: CustomerTicketService = Depends(get_customer_ticket_service),
):
    domains = await get_accessible_domains(db, current_user)
    ticket = await ticket_service.get_ticket(db, ticket_id, domains)
    return CustomerTicketResponse(data=CustomerTicketOut.model_validate(ticket))

@router.patch("/customer-tickets/{ticket_id}", response_model=CustomerTicketResponse)
async def update_customer_ticket(
    ticket_id: int,
    data: CustomerTicketUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
    ticket_service: CustomerTicketService = Depends(get_customer_ticket_service),
):
    domains = await get_accessible_domains(db, current_user)
    ticket = await ticket_service.update_ticket(db, ticket_id, data, domains, broadcaster)
    return CustomerTicketResponse(data=CustomerTicketOut.model_validate(ticket))
