"""
Centralized Test Configuration.
"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from courier_backend.app.main import app
from courier_backend.app.core.config import Settings
from courier_backend.app.core.jwt import create_access_token
from courier_backend.app.core.redis_client import get_redis
from courier_backend.app.db.session import get_db, Base
from courier_backend.app.domain.delivery.status_machine import activate_earning
from courier_backend.app.models.enums import UserRole
from courier_backend.app.models.parcel import Parcel
from courier_backend.app.models.parcel_enums import DeliveryStatus
from courier_backend.app.models.user import User
import courier_backend.app.core.redis_client as redis_client_module

# In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def exists(self, key):
        if self._closed:
            raise ConnectionError("Redis is closed")
        return 1 if key in self.store else 0

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Shared session for fixture data creation and service tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_redis(monkeypatch):
    redis = MockRedis()
    # Token revocation reads the module attribute through get_redis()
    monkeypatch.setattr(redis_client_module, "redis_client", redis)
    return redis


@pytest.fixture
async def client(session_factory, mock_redis):
    """Async client for testing, wired to the per-test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}


@pytest.fixture
def cashout_settings():
    """Policy with a low minimum so small commissions can be cashed out."""
    return Settings(
        cashout_minimum_amount=Decimal("10"),
        cashout_max_attempts=3,
        cashout_named_parcel_policy="reject",
    )


async def _create_user(db: AsyncSession, username: str, role: UserRole = UserRole.RIDER, is_active: bool = True) -> User:
    user = User(email=f"{username}@test.com", username=username, role=role, is_active=is_active)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _auth_headers(user: User) -> dict:
    token = create_access_token({"sub": user.username, "user_id": user.id, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def rider(db_session):
    return await _create_user(db_session, "rider01")


@pytest.fixture
async def other_rider(db_session):
    return await _create_user(db_session, "rider02")


@pytest.fixture
async def inactive_rider(db_session):
    return await _create_user(db_session, "rider03", is_active=False)


@pytest.fixture
async def admin(db_session):
    return await _create_user(db_session, "admin", role=UserRole.ADMIN)


@pytest.fixture
def make_parcel(db_session):
    """
    Factory for parcels.

    delivered=True creates a parcel already in a terminal status with its
    earning activated; days_ago sets the completion time for ordering.
    """
    counter = {"n": 0}

    async def _make(
        rider_id=None,
        cost="1000",
        sender_region="Dhaka",
        receiver_region="Dhaka",
        delivered=True,
        status=None,
        days_ago=1,
        paid_amount="0",
    ):
        counter["n"] += 1
        if status is None:
            status = DeliveryStatus.DELIVERED if delivered else DeliveryStatus.PENDING
        parcel = Parcel(
            reference_code=f"PKG{counter['n']:04d}",
            cost=Decimal(cost),
            sender_region=sender_region,
            receiver_region=receiver_region,
            delivery_status=status,
            assigned_rider_id=rider_id,
            earning=Decimal("0"),
            paid_amount=Decimal(paid_amount),
            earning_paid=False,
        )
        if status.is_terminal:
            parcel.delivered_at = datetime.utcnow() - timedelta(days=days_ago)
            activate_earning(parcel)
        db_session.add(parcel)
        await db_session.commit()
        await db_session.refresh(parcel)
        return parcel

    return _make


async def _reload_parcel(db: AsyncSession, parcel_id: int) -> Parcel:
    return await db.get(Parcel, parcel_id, populate_existing=True)


@pytest.fixture
def auth_headers():
    return _auth_headers


@pytest.fixture
def reload_parcel(db_session):
    """Re-read a parcel after the service committed or rolled back."""
    async def _reload(parcel_id: int) -> Parcel:
        return await _reload_parcel(db_session, parcel_id)
    return _reload
