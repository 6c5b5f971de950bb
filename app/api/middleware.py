import json
import logging
from urllib.parse import parse_qs
from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware
from app.core.origin import OriginPolicy, OriginCheckError, SessionFactory, normalize_host
from app.core.security import tokens_match
from app.crud.store import get_store_by_domain

logger = logging.getLogger(__name__)

ALLOW_METHODS = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
DEFAULT_ALLOW_HEADERS = "Authorization, Content-Type, X-Widget-Token"

# paths the widget / developers reach before a store is known
DOMAIN_LOCK_EXEMPT_PREFIXES = ("/api/widget-bootstrap", "/api/shopify", "/docs", "/redoc")
DOMAIN_LOCK_EXEMPT_PATHS = ("/", "/health", "/openapi.json")


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        logger.info(f"{request.method} {request.url.path}")
        return await call_next(request)


def _cors_headers(origin: str) -> dict:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
        "Vary": "Origin",
    }


class OriginGateMiddleware(BaseHTTPMiddleware):
    """
    Dynamic CORS: an Origin is accepted when it is allow-listed or when its
    host is a registered store domain. Runs before any route logic.
    """

    def __init__(self, app, policy: OriginPolicy, session_factory: SessionFactory):
        super().__init__(app)
        self.policy = policy
        self.session_factory = session_factory

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        if not origin:
            return await call_next(request)

        try:
            allowed = await self.policy.is_origin_allowed(origin, self.session_factory)
        except OriginCheckError:
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal Server Error during CORS check"},
            )

        if not allowed:
            logger.warning(f"Blocked CORS request from: {origin}")
            return JSONResponse(status_code=403, content={"detail": "Not allowed by CORS"})

        headers = _cors_headers(origin)
        if request.method == "OPTIONS" and "access-control-request-method" in request.headers:
            headers.update({
                "Access-Control-Allow-Methods": ALLOW_METHODS,
                "Access-Control-Allow-Headers": request.headers.get(
                    "access-control-request-headers", DEFAULT_ALLOW_HEADERS
                ),
                "Access-Control-Max-Age": "600",
            })
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response


async def _read_body_fields(request: Request) -> dict:
    content_type = request.headers.get("content-type", "")
    if request.method in ("GET", "HEAD", "DELETE"):
        return {}
    raw = await request.body()
    if not raw:
        return {}
    if "application/json" in content_type:
        try:
            data = json.loads(raw)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
    if "application/x-www-form-urlencoded" in content_type:
        return {k: v[0] for k, v in parse_qs(raw.decode("utf-8", "replace")).items()}
    return {}


def _first(*values) -> str:
    for value in values:
        if value:
            return str(value)
    return ""


def is_domain_lock_exempt(path: str) -> bool:
    if path in DOMAIN_LOCK_EXEMPT_PATHS:
        return True
    return any(path.startswith(prefix) for prefix in DOMAIN_LOCK_EXEMPT_PREFIXES)


class DomainLockMiddleware(BaseHTTPMiddleware):
    """
    Binds widget traffic to its store: the claimed store must exist, the
    request Origin must be that store's domain, and the widget token must be
    the store's current token. Every failure is a terminal 403.

    Requests without an Origin, and allow-listed (dashboard) origins, pass
    through unchecked; those routes are guarded by JWT instead.
    """

    def __init__(self, app, policy: OriginPolicy, session_factory: SessionFactory):
        super().__init__(app)
        self.policy = policy
        self.session_factory = session_factory

    def _reject(self, reason: str, request: Request) -> JSONResponse:
        logger.warning(
            f"Domain lock rejected {request.method} {request.url.path} "
            f"from {request.headers.get('origin')}: {reason}"
        )
        return JSONResponse(status_code=403, content={"detail": reason})

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or is_domain_lock_exempt(request.url.path):
            return await call_next(request)

        origin = request.headers.get("origin")
        if not origin or self.policy.is_allow_listed(origin):
            return await call_next(request)

        try:
            body = await _read_body_fields(request)
            query = request.query_params

            store_url = _first(
                body.get("store"),
                body.get("storeUrl"),
                query.get("storeUrl"),
                query.get("shopUrl"),
            )
            if not store_url:
                return self._reject("storeUrl required", request)

            store_host = normalize_host(store_url)
            async with self.session_factory() as db:
                store = await get_store_by_domain(db, store_host)
            if store is None:
                return self._reject("Store not registered", request)

            if normalize_host(origin) != store_host:
                return self._reject("Origin mismatch", request)

            token = _first(
                body.get("widgetToken"),
                query.get("widgetToken"),
                request.headers.get("x-widget-token"),
            )
            if not tokens_match(token, store.widget_token):
                return self._reject("Invalid widget token", request)
        except Exception:
            logger.exception("Domain lock error")
            return JSONResponse(status_code=403, content={"detail": "Domain verification failed"})

        request.state.store = store
        return await call_next(request)
