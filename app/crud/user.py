from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import Optional
from app.models.user import User
from app.core.security import verify_password, hash_password

def normalize_email(email: str) -> str:
    return (email or "").strip().lower()

async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()

async def authenticate_user(db: AsyncSession, email: str, password: str) -> Optional[User]:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user

async def add_user(db: AsyncSession, email: str, password: str, name: str) -> User:
    """Stages a new merchant account; the caller owns the commit."""
    user = User(email=normalize_email(email), password_hash=hash_password(password), name=name.strip())
    db.add(user)
    await db.flush()
    return user
