from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import List, Optional
from app.schemas.store import StoreSummary

class LoginRequest(BaseModel):
    email: str
    password: str

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: str = Field(..., min_length=1)
    shop_token: str = Field(..., alias="shopToken", min_length=1)

    model_config = ConfigDict(populate_by_name=True)

class UserOut(BaseModel):
    id: int
    email: str
    name: str

    model_config = ConfigDict(from_attributes=True)

class SignupStore(BaseModel):
    shop: str
    storeId: str

class SignupResponse(BaseModel):
    success: bool = True
    token: str
    user: UserOut
    store: SignupStore

class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: UserOut
    stores: List[StoreSummary]

class MeResponse(BaseModel):
    user: UserOut
    stores: List[StoreSummary]
