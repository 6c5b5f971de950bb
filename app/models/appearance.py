from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text
from datetime import datetime
from app.models.base import Base

class ChatbotAppearance(Base):
    __tablename__ = 'chatbot_appearance'
    id = Column(Integer, primary_key=True, autoincrement=True)
    store_url = Column(String(255), unique=True, nullable=False)
    primary_color = Column(String(20), nullable=True)
    header_title = Column(String(255), nullable=True)
    welcome_message = Column(Text, nullable=True)
    conversation_starters = Column(Text, nullable=True)   # JSON text
    button_bg_color = Column(String(20), nullable=True)
    button_text_color = Column(String(20), nullable=True)
    button_shape = Column(String(20), nullable=True)
    button_position = Column(String(20), nullable=True)
    logo_url = Column(String(1024), nullable=True)
    show_logo = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
