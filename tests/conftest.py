"""
Pytest configuration and shared fixtures for the bakery API tests.

Every test gets a fresh in-memory SQLite database (aiosqlite) and a mock
notification service that captures outgoing e-mails.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Must be set before bakery_api reads its settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENV_MODE"] = "development"
os.environ["JWT_SECRET"] = "test-secret"

import httpx
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from bakery_api.core.security import hash_password
from bakery_api.database import Base, get_db
from bakery_api.models import User, UserRole
from bakery_api.services.notifications import get_notification_service
from bakery_api.services.notifications.mock import MockNotificationService


class FakeClock:
    """Controllable replacement for ``utcnow``."""

    def __init__(self, start: datetime = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    # SQLite only honours ON DELETE rules with this pragma
    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return MockNotificationService(failure_rate=0.0, max_latency=0)


@pytest.fixture
def create_user(session_maker):
    """Factory inserting a credential record directly (skips the OTP flow)."""

    async def _create(
        email: str = "admin@bakery.in",
        password: str = "secret1",
        role: UserRole = UserRole.ADMIN,
        verified: bool = True,
        name: str = "Store Owner",
        phone: str = "9876543210",
    ) -> User:
        async with session_maker() as session:
            user = User(
                name=name,
                email=email,
                phone=phone,
                password_hash=hash_password(password),
                role=role,
                is_verified=verified,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _create


@pytest.fixture
async def client(session_maker, notifier):
    """HTTP client bound to the app with the test database and mock e-mail."""
    from bakery_api.main import app

    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_service] = lambda: notifier

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def login(client):
    """Sign in and return the ``x-auth-token`` header."""

    async def _login(email: str, password: str = "secret1") -> dict[str, str]:
        resp = await client.post("/api/v1/user/signin", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"x-auth-token": resp.json()["token"]}

    return _login
