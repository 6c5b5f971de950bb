from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, JSON
from datetime import datetime
from app.models.base import Base

class Message(Base):
    """One chat turn: the shopper's message and the bot (or merchant) response."""
    __tablename__ = 'messages'
    id = Column(Integer, primary_key=True, autoincrement=True)
    store_url = Column(String(255), nullable=False, index=True)
    session_id = Column(String(255), nullable=False, index=True)
    customer_id = Column(String(255), nullable=True)
    channel = Column(String(50), default="website", nullable=False)
    user_email = Column(String(255), nullable=True)
    user_name = Column(String(255), nullable=True)
    user_message = Column(Text, nullable=True)
    bot_response = Column(Text, nullable=True)
    message_json = Column(JSON, nullable=True)
    query_type = Column(String(50), default="general")
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
