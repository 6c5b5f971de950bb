from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text
from datetime import datetime
from app.models.base import Base
import enum

class TicketPriority(str, enum.Enum):
    low = "Low"
    medium = "Medium"
    high = "High"
    urgent = "Urgent"

class TicketStatus(str, enum.Enum):
    open = "open"
    pending = "pending"
    resolved = "resolved"
    closed = "closed"


class Ticket(Base):
    """Merchant -> platform support ticket."""
    __tablename__ = 'tickets'
    id = Column(Integer, primary_key=True, autoincrement=True)
    store_url = Column(String(255), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    issue_type = Column(String(100), default="Other")
    priority = Column(String(20), default=TicketPriority.medium.value)
    status = Column(String(20), default=TicketStatus.open.value, index=True)
    channel = Column(String(100), default="Website widget")
    related_session_id = Column(String(255), nullable=True)
    description = Column(Text, nullable=False)
    include_logs = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CustomerTicket(Base):
    """Shopper -> merchant ticket raised from the chat widget."""
    __tablename__ = 'customer_tickets'
    id = Column(Integer, primary_key=True, autoincrement=True)
    store_url = Column(String(255), nullable=False, index=True)
    customer_id = Column(String(255), nullable=False, index=True)
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)
    subject = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    order_id = Column(String(255), nullable=True)
    status = Column(String(20), default=TicketStatus.open.value, index=True)
    priority = Column(String(20), nullable=True)
    channel = Column(String(50), default="chatbot")
    session_id = Column(String(255), nullable=True)
    cart_id = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
