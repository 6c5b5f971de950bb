import time
from datetime import datetime, timezone
from fastapi import APIRouter
from app.core.config import settings

router = APIRouter()

STARTED_AT = time.monotonic()

@router.get("/")
async def root():
    return {"name": settings.app_name, "version": settings.app_version, "status": "running"}

@router.get("/health")
async def health():
    return {
        "status": "ok",
        "service": settings.app_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
    }
