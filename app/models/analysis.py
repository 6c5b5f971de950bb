from sqlalchemy import Column, String, DateTime, Integer, Text
from datetime import datetime
from app.models.base import Base

class ConversationAnalysis(Base):
    """Rows are written by the n8n analysis workflow; read here to find unanalyzed sessions."""
    __tablename__ = 'conversation_analysis'
    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(255), nullable=False, index=True)
    store_url = Column(String(255), nullable=False, index=True)
    sentiment = Column(String(50), nullable=True)
    intent = Column(String(100), nullable=True)
    summary = Column(Text, nullable=True)
    analyzed_at = Column(DateTime, default=datetime.utcnow)
