"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from hostel_ledger.app.main import app
from hostel_ledger.app.db.session import get_db, Base
from hostel_ledger.app.core.redis_client import get_redis
import hostel_ledger.app.core.redis_client as redis_client_module
from hostel_ledger.app.domain.dues.registry import DuePeriodService
from hostel_ledger.app.models.billing_enums import DueCategory
from hostel_ledger.app.schemas.billing import DueItemCreate
from hostel_ledger.app.schemas.resident import ResidentCreate
from hostel_ledger.app.services.residents import ResidentService

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        if self._closed:
            return False
        return True

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
def mock_redis(monkeypatch):
    """Replace the global Redis client used by the cache service."""
    client = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", client)
    return client


@pytest.fixture(autouse=True)
async def setup_database(mock_redis):
    """Create tables before each test function and drop after."""
    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return mock_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
async def resident_id(db_session):
    """The reference resident; returns the id only."""
    resident = await ResidentService.create(db_session, ResidentCreate(
        name="Amit Kumar",
        roll_number="2024CS10001",
        hall="Hall 5",
        room_number="G-102",
        department="Computer Science",
        email="amit.kumar@example.edu",
    ))
    return resident.id


@pytest.fixture
async def period_id(db_session, resident_id):
    """October 2024 dues: mess 1800, rent 750, amenities 300, all pending."""
    period = await DuePeriodService.create(db_session, resident_id, "October 2024", [
        DueItemCreate(category=DueCategory.MESS, amount=1800),
        DueItemCreate(category=DueCategory.RENT, amount=750),
        DueItemCreate(category=DueCategory.AMENITIES, amount=300),
    ])
    return period.id


@pytest.fixture
def session_factory():
    """Session factory for tests that need several independent sessions."""
    return TestingSessionLocal
