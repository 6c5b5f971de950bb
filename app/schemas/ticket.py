from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional

class TicketOut(BaseModel):
    id: int
    store_url: str
    subject: str
    issue_type: Optional[str] = None
    priority: Optional[str] = None
    status: str
    channel: Optional[str] = None
    related_session_id: Optional[str] = None
    description: str
    include_logs: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class TicketCreate(BaseModel):
    store_url: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    issue_type: Optional[str] = None
    priority: Optional[str] = None
    channel: Optional[str] = None
    related_session_id: Optional[str] = None
    include_logs: bool = False

class TicketUpdate(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    issue_type: Optional[str] = None
    channel: Optional[str] = None
    subject: Optional[str] = None
    description: Optional[str] = None

class CustomerTicketOut(BaseModel):
    id: int
    store_url: str
    customer_id: str
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    subject: str
    description: str
    order_id: Optional[str] = None
    status: str
    priority: Optional[str] = None
    channel: Optional[str] = None
    session_id: Optional[str] = None
    cart_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class CustomerTicketCreate(BaseModel):
    """Payload posted by the chat widget."""
    store: str = Field(..., min_length=1)
    customerId: str = Field(..., min_length=1)
    subject: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    name: Optional[str] = None
    email: Optional[str] = None
    orderId: Optional[str] = None
    sessionId: Optional[str] = None
    cartID: Optional[str] = None
    widgetToken: Optional[str] = None

class CustomerTicketUpdate(BaseModel):
    status: Optional[str] = None
    priority: Optional[str] = None
    subject: Optional[str] = None
    description: Optional[str] = None

class TicketResponse(BaseModel):
    data: TicketOut

class TicketListResponse(BaseModel):
    data: List[TicketOut]

class CustomerTicketResponse(BaseModel):
    data: CustomerTicketOut

class CustomerTicketListResponse(BaseModel):
    data: List[CustomerTicketOut]
