from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional
from app.models.store import StoreStatus

class StoreSummary(BaseModel):
    shop_domain: str
    store_id: str
    product_count: int = 0
    status: StoreStatus
    last_sync_at: Optional[datetime] = None
    installed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class StoreOut(StoreSummary):
    id: int
    widget_token: str

class StoreListResponse(BaseModel):
    success: bool = True
    stores: List[StoreOut]

class StoreResponse(BaseModel):
    success: bool = True
    store: StoreOut

class AdminStoreOut(StoreSummary):
    id: int
