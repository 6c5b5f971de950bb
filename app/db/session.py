from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from app.core.config import settings
import app.models

engine = create_async_engine(settings.database_url, echo=settings.debug)
AsyncSessionLocal = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

async def get_db(request: Request):
    # the app carries its own factory so middlewares and routes share one pool
    session_factory = getattr(request.app.state, "session_factory", AsyncSessionLocal)
    async with session_factory() as session:
        yield session

async def init_db(bind=None):
    from app.models.base import Base
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
