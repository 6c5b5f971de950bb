import json
import logging
from typing import Any, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.appearance import ChatbotAppearance
from app.core.origin import normalize_host
from app.core.exceptions import DatabaseException
from app.schemas.appearance import (
    AppearanceSettings,
    AppearanceUpdate,
    DEFAULT_STARTERS,
    DEFAULT_PRIMARY_COLOR,
    DEFAULT_HEADER_TITLE,
    DEFAULT_WELCOME_MESSAGE,
    DEFAULT_BUTTON_TEXT_COLOR,
    DEFAULT_BUTTON_SHAPE,
    DEFAULT_BUTTON_POSITION,
)

logger = logging.getLogger(__name__)


def parse_starters(raw: Any) -> List[str]:
    """
    Conversation starters are stored as JSON text; older rows hold an object
    or garbage. Anything unusable falls back to the default list.
    """
    if not raw:
        return list(DEFAULT_STARTERS)
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("invalid conversation_starters JSON, using default")
            return list(DEFAULT_STARTERS)
    if isinstance(raw, dict):
        raw = list(raw.values())
    if isinstance(raw, list) and raw:
        return [str(item) for item in raw]
    return list(DEFAULT_STARTERS)


def to_settings(store_url: str, row: Optional[ChatbotAppearance]) -> AppearanceSettings:
    if row is None:
        return AppearanceSettings(store_url=store_url)
    return AppearanceSettings(
        store_url=row.store_url,
        primary_color=row.primary_color or DEFAULT_PRIMARY_COLOR,
        header_title=row.header_title or DEFAULT_HEADER_TITLE,
        welcome_message=row.welcome_message or DEFAULT_WELCOME_MESSAGE,
        conversation_starters=parse_starters(row.conversation_starters),
        button_bg_color=row.button_bg_color or None,
        button_text_color=row.button_text_color or DEFAULT_BUTTON_TEXT_COLOR,
        button_shape=row.button_shape or DEFAULT_BUTTON_SHAPE,
        button_position=row.button_position or DEFAULT_BUTTON_POSITION,
        logo_url=row.logo_url or None,
        show_logo=bool(row.show_logo),
    )


class AppearanceService:
    def __init__(self):
        pass

    async def get_row(self, db: AsyncSession, store_url: str) -> Optional[ChatbotAppearance]:
        result = await db.execute(
            select(ChatbotAppearance).where(ChatbotAppearance.store_url == normalize_host(store_url))
        )
        return result.scalar_one_or_none()

    async def get_settings(self, db: AsyncSession, store_url: str) -> AppearanceSettings:
        try:
            row = await self.get_row(db, store_url)
        except Exception as ex:
            logger.exception(f"Error fetching appearance for {store_url}: {ex}")
            raise DatabaseException(500, "Failed to fetch appearance settings")
        return to_settings(normalize_host(store_url), row)

    async def save_settings(self, db: AsyncSession, store_url: str, data: AppearanceUpdate) -> None:
        host = normalize_host(store_url)
        starters = data.conversation_starters
        if not isinstance(starters, list) or not starters:
            starters = DEFAULT_STARTERS

        values = dict(
            primary_color=data.primary_color or DEFAULT_PRIMARY_COLOR,
            header_title=data.header_title or DEFAULT_HEADER_TITLE,
            welcome_message=data.welcome_message or DEFAULT_WELCOME_MESSAGE,
            conversation_starters=json.dumps([str(s) for s in starters]),
            button_bg_color=data.button_bg_color or None,
            button_text_color=data.button_text_color or DEFAULT_BUTTON_TEXT_COLOR,
            button_shape=data.button_shape or DEFAULT_BUTTON_SHAPE,
            button_position=data.button_position or DEFAULT_BUTTON_POSITION,
            logo_url=data.logo_url or None,
            show_logo=bool(data.show_logo),
        )
        try:
            row = await self.get_row(db, host)
            if row is None:
                db.add(ChatbotAppearance(store_url=host, **values))
            else:
                for field, value in values.items():
                    setattr(row, field, value)
            await db.commit()
        except Exception as ex:
            await db.rollback()
            logger.exception(f"Error saving appearance for {host}: {ex}")
            raise DatabaseException(500, "Failed to save appearance settings")
        logger.info(f"Appearance saved for {host}")
