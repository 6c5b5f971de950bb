from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from app.models.user import User
from app.models.store import Store, StoreStatus
from app.schemas.auth import SignupRequest, SignupResponse, SignupStore, LoginResponse, MeResponse, UserOut
from app.schemas.store import StoreSummary
from app.crud.user import get_user_by_email, authenticate_user, add_user
from app.crud.store import get_valid_pending_store, list_user_stores
from app.core.security import create_access_token, generate_widget_token
from app.core.origin import normalize_host
from app.core.exceptions import (
    RegistrationLinkException,
    EmailAlreadyRegisteredException,
    DatabaseConstraintException,
    DatabaseException,
    ExternalServiceException,
)
from app.external.n8n import N8nService
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

def _issue_token(user: User) -> str:
    return create_access_token({"user_id": user.id, "email": user.email})

class AuthService:
    def __init__(self):
        pass

    async def signup(self, db: AsyncSession, data: SignupRequest, n8n: N8nService) -> SignupResponse:
        logger.info(f"Signup attempt for: {data.email}")
        pending = await get_valid_pending_store(db, data.shop_token)
        if pending is None:
            logger.warning(f"Signup rejected for {data.email}: invalid or expired registration link")
            raise RegistrationLinkException()

        if await get_user_by_email(db, data.email):
            logger.warning(f"Signup rejected, email already registered: {data.email}")
            raise EmailAlreadyRegisteredException()

        shop_domain = normalize_host(pending.shop_domain)
        store_slug = pending.store_id
        access_token = pending.access_token

        try:
            user = await add_user(db, data.email, data.password, data.name)

            store = Store(
                user_id=user.id,
                shop_domain=shop_domain,
                store_id=store_slug,
                access_token=access_token,
                widget_token=generate_widget_token(),
                status=StoreStatus.active,
                installed_at=datetime.utcnow(),
            )
            db.add(store)
            await db.delete(pending)
            await db.commit()
        except IntegrityError as ex:
            await db.rollback()
            logger.warning(f"Signup constraint violation for {data.email} / {shop_domain}: {ex}")
            raise DatabaseConstraintException("Account or store is already registered")
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Signup failed for {data.email}: {ex}")
            raise DatabaseException(500, "Signup failed")

        logger.info(f"User {data.email} created and store {shop_domain} linked")

        # the merchant can re-trigger the sync from the dashboard
        try:
            await n8n.trigger_product_sync({
                "userId": user.id,
                "shop": shop_domain,
                "accessToken": access_token,
                "storeId": store_slug,
            })
        except ExternalServiceException as ex:
            logger.error(f"Product sync failed for {shop_domain}: {ex.detail}")

        return SignupResponse(
            token=_issue_token(user),
            user=UserOut.model_validate(user),
            store=SignupStore(shop=shop_domain, storeId=store_slug),
        )

    async def login(self, db: AsyncSession, email: str, password: str) -> LoginResponse:
        logger.info(f"Login attempt for: {email}")
        user = await authenticate_user(db, email, password)
        if not user:
            logger.warning(f"Invalid credentials for {email}")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        stores = await list_user_stores(db, user.id)
        logger.info(f"User {email} logged in successfully")
        return LoginResponse(
            token=_issue_token(user),
            user=UserOut.model_validate(user),
            stores=[StoreSummary.model_validate(s) for s in stores],
        )

    async def me(self, db: AsyncSession, user: User) -> MeResponse:
        stores = await list_user_stores(db, user.id)
        return MeResponse(
            user=UserOut.model_validate(user),
            stores=[StoreSummary.model_validate(s) for s in stores],
        )
