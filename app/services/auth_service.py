from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import create_access_token, hash_password, verify_password
from app.models.user import User, UserCreate, UserPublic


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, data: UserCreate) -> User:
    user = User(
        email=data.email.lower(),
        full_name=data.full_name,
        hashed_password=hash_password(data.password),
    )
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


def user_to_public(user: User) -> UserPublic:
    return UserPublic(id=user.id, email=user.email, full_name=user.full_name)


def make_access_token(user_id: int) -> tuple[str, int]:
    return create_access_token(user_id), settings.access_token_expire_minutes * 60


async def login_user(
    session: AsyncSession, email: str, password: str
) -> tuple[User, str, int] | None:
    user = await get_user_by_email(session, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    access, expires_in = make_access_token(user.id)
    return user, access, expires_in


async def signup_user(
    session: AsyncSession, email: str, password: str, full_name: str | None = None
) -> tuple[User, str, int] | None:
    if await get_user_by_email(session, email):
        return None
    user = await create_user(
        session, UserCreate(email=email, password=password, full_name=full_name)
    )
    access, expires_in = make_access_token(user.id)
    return user, access, expires_in
