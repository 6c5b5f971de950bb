import sys
from pathlib import Path
import os

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("CORS_ORIGINS", "https://dashboard.quell.test")
os.environ.setdefault("SHOPIFY_API_KEY", "test-api-key")
os.environ.setdefault("SHOPIFY_API_SECRET", "test-api-secret")
os.environ.setdefault("N8N_WEBHOOK_URL", "https://n8n.quell.test/webhook")
os.environ.setdefault("N8N_CHAT_WEBHOOK", "https://n8n.quell.test/webhook/chat")
os.environ.setdefault("N8N_CUSTOMERCHECK_WEBHOOK", "https://n8n.quell.test/webhook/customer-check")
os.environ.setdefault("N8N_ANALYSIS_WEBHOOK_URL", "https://n8n.quell.test/webhook/analyze")
os.environ.setdefault("ANALYSIS_BATCH_DELAY", "0")
os.environ.setdefault("FRONTEND_URL", "https://app.quell.test")
os.environ.setdefault("BACKEND_URL", "https://api.quell.test")
os.environ.setdefault("LOG_FILE", "")

import httpx
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.origin import OriginPolicy
from app.core.realtime import Broadcaster, store_room
from app.core.security import create_access_token, hash_password
from app.db.session import init_db
from app.main import create_app
from app.models.store import Store, StoreStatus
from app.models.user import User

DASHBOARD_ORIGIN = "https://dashboard.quell.test"
SHOP_DOMAIN = "shop.example.com"
WIDGET_TOKEN = "wt-shop-example-0001"


class RecordingBroadcaster(Broadcaster):
    """Captures emitted events instead of talking to Socket.IO."""

    def __init__(self):
        super().__init__(None)
        self.events = []

    async def emit_to_store(self, store_url, event, payload):
        self.events.append((store_room(store_url), event, jsonable_encoder(payload)))


class BrokenSession:
    async def __aenter__(self):
        raise RuntimeError("database unavailable")

    async def __aexit__(self, *exc):
        return False


def broken_session_factory():
    return BrokenSession()


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def app(session_factory, broadcaster):
    return create_app(
        session_factory=session_factory,
        policy=OriginPolicy([DASHBOARD_ORIGIN]),
        broadcaster=broadcaster,
    )


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


async def add_user(session_factory, email="owner@example.com", password="password123", name="Owner", is_admin=False) -> User:
    async with session_factory() as db:
        user = User(email=email, password_hash=hash_password(password), name=name, is_admin=is_admin)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user


async def add_store(
    session_factory,
    shop_domain=SHOP_DOMAIN,
    widget_token=WIDGET_TOKEN,
    user_id=None,
    status=StoreStatus.active,
    store_id=None,
) -> Store:
    async with session_factory() as db:
        store = Store(
            user_id=user_id,
            shop_domain=shop_domain,
            store_id=store_id or shop_domain.split(".")[0],
            access_token="shpat_test",
            widget_token=widget_token,
            status=status,
        )
        db.add(store)
        await db.commit()
        await db.refresh(store)
        return store


def auth_headers(user: User) -> dict:
    token = create_access_token({"user_id": user.id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def owner(session_factory) -> User:
    return await add_user(session_factory)


@pytest.fixture
async def store(session_factory, owner) -> Store:
    return await add_store(session_factory, user_id=owner.id)
