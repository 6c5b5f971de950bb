from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional
from app.schemas.store import AdminStoreOut
from app.schemas.ticket import TicketOut

class StoreCounts(BaseModel):
    total_stores: int = 0
    active_stores: int = 0
    suspended_stores: int = 0
    disconnected_stores: int = 0

class ConversationCounts(BaseModel):
    total_conversations: int = 0
    total_messages: int = 0
    stores_with_activity: int = 0

class TicketCounts(BaseModel):
    total_tickets: int = 0
    open_tickets: int = 0
    pending_tickets: int = 0
    urgent_tickets: int = 0
    open_customer_tickets: int = 0

class OverviewMeta(BaseModel):
    since: Optional[datetime] = None
    timestamp: datetime

class PlatformOverview(BaseModel):
    stores: StoreCounts
    users: int
    new_signups: int
    conversations: ConversationCounts
    tickets: TicketCounts
    meta: OverviewMeta

class AdminListMeta(BaseModel):
    status_filter: Optional[str] = None
    priority_filter: Optional[str] = None
    timestamp: datetime

class AdminStoreListResponse(BaseModel):
    stores: List[AdminStoreOut]
    total: int
    meta: AdminListMeta

class AdminTicketListResponse(BaseModel):
    tickets: List[TicketOut]
    total: int
    meta: AdminListMeta
