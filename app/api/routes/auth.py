from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas.auth import LoginRequest, SignupRequest, SignupResponse, LoginResponse, MeResponse
from app.core.config import settings
from app.db.session import get_db
from app.api.deps import get_current_user, get_n8n_service
from app.external.n8n import N8nService
from app.models.user import User
from app.services.auth import AuthService
import logging
logger = logging.getLogger("auth")
router = APIRouter()

def get_auth_service():
    return AuthService()

def _with_cookie(body, token: str, status_code: int = 200) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=jsonable_encoder(body))
    response.set_cookie(
        key="access_token",
        value=token,
        httponly=True,
        secure=settings.backend_url.startswith("https"),
        samesite="lax",
        max_age=60 * 60 * 24 * settings.jwt_expire_days,
    )
    return response

@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    db: AsyncSession = Depends(get_db),
    n8n: N8nService = Depends(get_n8n_service),
    auth_service: AuthService = Depends(get_auth_service),
):
    result = await auth_service.signup(db, data, n8n)
    return _with_cookie(result, result.token, status.HTTP_201_CREATED)

@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    result = await auth_service.login(db, request.email, request.password)
    return _with_cookie(result, result.token)

@router.get("/me", response_model=MeResponse)
async def me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
):
    return await auth_service.me(db, current_user)

@router.post("/logout")
async def logout():
    response = JSONResponse(content={"message": "Logged out"})
    response.delete_cookie("access_token")
    return response
