from typing import Optional
from urllib.parse import urlencode
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import settings
from app.core.exceptions import (
    AuthorizationException,
    DatabaseException,
    ExternalServiceException,
    InvalidShopDomainException,
)
from app.db.session import get_db
from app.api.deps import get_shopify_service
from app.external.shopify import ShopifyOAuthService, is_valid_shop
from app.services.shopify import ShopifyInstallService
import logging
logger = logging.getLogger("shopify")
router = APIRouter()

def get_install_service():
    return ShopifyInstallService()

def _frontend(path: str, **params) -> str:
    return f"{settings.frontend_url.rstrip('/')}{path}?{urlencode(params)}"

@router.get("/install")
async def install(
    shop: Optional[str] = Query(None),
    shopify: ShopifyOAuthService = Depends(get_shopify_service),
):
    if not shop:
        raise HTTPException(status_code=400, detail="Missing shop parameter")
    if not is_valid_shop(shop):
        raise InvalidShopDomainException(shop)
    logger.info(f"Starting OAuth install for {shop}")
    return RedirectResponse(shopify.build_install_url(shop))

@router.get("/callback")
async def callback(
    request: Request,
    db: AsyncSession = Depends(get_db),
    shopify: ShopifyOAuthService = Depends(get_shopify_service),
    install_service: ShopifyInstallService = Depends(get_install_service),
):
    query = dict(request.query_params)
    shop = query.get("shop")
    code = query.get("code")
    if not shop or not code:
        raise HTTPException(status_code=400, detail="Missing required parameters")
    if not is_valid_shop(shop):
        raise InvalidShopDomainException(shop)
    if not shopify.verify_callback(query):
        logger.warning(f"HMAC validation failed for {shop}")
        raise AuthorizationException("HMAC validation failed")

    try:
        access_token = await shopify.exchange_code_for_token(shop, code)
        result = await install_service.complete_install(db, shop, access_token)
    except (ExternalServiceException, DatabaseException) as ex:
        logger.error(f"Installation failed for {shop}: {ex.detail}")
        return RedirectResponse(
            _frontend("/error", message="installation_failed", details=ex.detail),
            status_code=302,
        )

    if result.reinstalled:
        return RedirectResponse(_frontend("/login", shop=result.shop, message="reinstalled"), status_code=302)
    return RedirectResponse(_frontend("/signup", shop=result.shop, token=result.temp_token), status_code=302)
