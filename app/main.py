from fastapi import FastAPI
import socketio
from app.api.routes import (
    auth,
    shopify,
    stores,
    appearance,
    widget,
    chat,
    inbox,
    tickets,
    customer_tickets,
    analytics,
    admin,
    health,
)
from app.api.middleware import RequestLogMiddleware, OriginGateMiddleware, DomainLockMiddleware
from app.core.config import settings
from app.core.origin import OriginPolicy, SessionFactory
from app.core.realtime import Broadcaster, create_socket_server
from app.db.session import AsyncSessionLocal, engine, init_db
from app.handlers.exception_handlers import init_exception_handlers
import logging
from app.core.logging_config import setup_logging
setup_logging(settings.log_file)

logger = logging.getLogger(__name__)


def create_app(
    session_factory: SessionFactory = None,
    policy: OriginPolicy = None,
    broadcaster: Broadcaster = None,
) -> FastAPI:
    session_factory = session_factory or AsyncSessionLocal
    policy = policy or OriginPolicy(settings.allowed_origins)

    app = FastAPI(title="Quell AI API Service", version=settings.app_version)

    sio = create_socket_server(policy, session_factory)
    app.state.sio = sio
    app.state.session_factory = session_factory
    app.state.policy = policy
    app.state.broadcaster = broadcaster or Broadcaster(sio)

    #init exception handlers
    init_exception_handlers(app)

    # added innermost first: request log -> origin gate -> domain lock -> routes
    app.add_middleware(DomainLockMiddleware, policy=policy, session_factory=session_factory)
    app.add_middleware(OriginGateMiddleware, policy=policy, session_factory=session_factory)
    app.add_middleware(RequestLogMiddleware)

    app.include_router(health.router, tags=["Health"])
    app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
    app.include_router(shopify.router, prefix="/api/shopify", tags=["Shopify"])
    app.include_router(stores.router, prefix="/api/stores", tags=["Stores"])
    app.include_router(appearance.router, prefix="/api/appearance", tags=["Appearance"])
    app.include_router(widget.router, prefix="/api/widget-bootstrap", tags=["Widget"])
    app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
    app.include_router(inbox.router, prefix="/api/inbox", tags=["Inbox"])
    app.include_router(customer_tickets.router, prefix="/api", tags=["Customer Tickets"])
    app.include_router(tickets.router, prefix="/support", tags=["Support"])
    app.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
    app.include_router(admin.router, prefix="/admin", tags=["Admin"])

    @app.on_event("startup")
    async def startup():
        await init_db(getattr(session_factory, "kw", {}).get("bind") or engine)
        logger.info(f"{settings.app_name} started, {len(policy.allowed_origins)} allow-listed origins")

    return app


app = create_app()

# uvicorn app.main:asgi_app
asgi_app = socketio.ASGIApp(app.state.sio, other_asgi_app=app)
