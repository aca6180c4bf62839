"""
Test configuration and fixtures.

Provides:
- Fresh in-memory SQLite database per test (aiosqlite, single shared connection)
- A pinned clock injected through the get_now dependency
- Users plus bearer headers for authenticated requests
- HTTPX AsyncClient over the ASGI app
"""
import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ENV"] = "test"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.api.deps import get_now
from app.core.db import get_session
from app.core.security import create_access_token
from app.main import app
from app.models.appointment import Appointment
from app.models.user import User

# Tuesday; the default week anchor from here is Monday 2025-06-16
NOW = datetime(2025, 6, 10, 12, 0, tzinfo=UTC)


# =============================================================================
# Clock
# =============================================================================

@pytest.fixture
def now() -> datetime:
    return NOW


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def add_booking(session_maker):
    """Insert an appointment directly, bypassing validation (e.g. for past slots)."""
    async def _add(owner: User, starts_at: datetime, name: str = "Seeded") -> Appointment:
        async with session_maker() as s:
            appointment = Appointment(
                owner_id=owner.id,
                starts_at=starts_at.astimezone(UTC).replace(tzinfo=None),
                name=name,
                email="seeded@example.com",
            )
            s.add(appointment)
            await s.commit()
            await s.refresh(appointment)
            return appointment
    return _add


# =============================================================================
# User / Auth Fixtures
# =============================================================================

async def _create_user(session_maker, email: str, full_name: str) -> User:
    async with session_maker() as s:
        # Password hashing is covered by the auth tests; skip bcrypt cost here
        user = User(email=email, full_name=full_name, hashed_password="unused")
        s.add(user)
        await s.commit()
        await s.refresh(user)
        return user


@pytest.fixture
async def owner(session_maker) -> User:
    return await _create_user(session_maker, "ada@example.com", "Ada Lovelace")


@pytest.fixture
async def other_owner(session_maker) -> User:
    return await _create_user(session_maker, "grace@example.com", "Grace Hopper")


@pytest.fixture
def auth_headers(owner: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(owner.id)}"}


@pytest.fixture
def other_auth_headers(other_owner: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(other_owner.id)}"}


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture
async def client(session_maker, now: datetime) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_now] = lambda: now

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
