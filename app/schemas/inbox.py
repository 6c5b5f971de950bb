from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, List, Optional

class MessageOut(BaseModel):
    id: int
    session_id: str
    channel: Optional[str] = None
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    user_message: Optional[str] = None
    bot_response: Optional[str] = None
    message_json: Optional[Any] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class SessionSummary(BaseModel):
    session_id: str
    channel: Optional[str] = None
    last_message_at: Optional[datetime] = None
    last_user_message: Optional[str] = None
    last_bot_response: Optional[str] = None
    unread_count: int = 0
    user_name: Optional[str] = None
    user_email: Optional[str] = None

class InboxMeta(BaseModel):
    total: int
    page: int
    perPage: int

class InboxResponse(BaseModel):
    meta: InboxMeta
    data: List[SessionSummary]

class ThreadResponse(BaseModel):
    sessionId: str
    data: List[MessageOut]

class MarkReadRequest(BaseModel):
    store_url: str = Field(..., min_length=1)

class ReplyRequest(BaseModel):
    store_url: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    channel: Optional[str] = None
    user_email: Optional[str] = None

class ReplyResponse(BaseModel):
    success: bool = True
    messageId: int
