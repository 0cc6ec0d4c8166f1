import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from hisaab.models.user import User
from hisaab.schemas.user import UserCreate
from hisaab.core.security import hash_password, verify_password

logger = logging.getLogger(__name__)

async def get_user_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()

async def get_user_by_id(db: AsyncSession, id: int):
    result = await db.execute(select(User).where(User.id == id))
    return result.scalar_one_or_none()

async def create_user(db: AsyncSession, data: UserCreate, bcrypt_rounds: int = 12):
    existing = await get_user_by_email(db, data.email)
    if existing:
        raise ValueError("User with this email already exists")

    user = User(
        email=data.email.lower(),
        name=data.name.strip(),
        password_hash=hash_password(data.password, rounds=bcrypt_rounds)
    )

    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Registered user %s", user.id)
    return user

async def authenticate_user(db: AsyncSession, email: str, password: str):
    user = await get_user_by_email(db, email)
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user
