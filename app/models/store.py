from sqlalchemy import Column, String, ForeignKey, DateTime, Enum, Integer
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.base import Base
import enum

class StoreStatus(str, enum.Enum):
    active = "active"
    suspended = "suspended"
    disconnected = "disconnected"   # soft delete

class Store(Base):
    __tablename__ = 'stores'
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)
    shop_domain = Column(String(255), unique=True, nullable=False)   # normalized host
    store_id = Column(String(255), nullable=False, index=True)       # shopify shop slug
    access_token = Column(String(255), nullable=False)
    widget_token = Column(String(128), unique=True, nullable=False)
    status = Column(Enum(StoreStatus), default=StoreStatus.active, nullable=False)
    product_count = Column(Integer, default=0, nullable=False)
    installed_at = Column(DateTime, default=datetime.utcnow)
    last_sync_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="stores")


class PendingStore(Base):
    """Bridges a completed Shopify OAuth handshake to the signup form."""
    __tablename__ = 'pending_stores'
    id = Column(Integer, primary_key=True, autoincrement=True)
    shop_domain = Column(String(255), unique=True, nullable=False)
    access_token = Column(String(255), nullable=False)
    store_id = Column(String(255), nullable=False)
    temp_token = Column(String(128), unique=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
