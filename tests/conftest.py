"""
Test configuration and fixtures for the Sales Forecast API
"""

import random
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from forecast.app.api.forecast import get_clock, get_rng
from forecast.app.core.clock import FixedClock
from forecast.app.core.database import Base, get_db
from forecast.app.main import app
from forecast.app.models.opportunities import Opportunity

# Mid-quarter anchor: quarter covers May-June, year covers May-December
NOW = datetime(2026, 5, 17, 9, 30, tzinfo=timezone.utc)

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock(now) -> FixedClock:
    return FixedClock(now)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def make_opportunity():
    """Factory for transient opportunities with every column set"""
    def _make(
        amount: float = 10000,
        probability: int = 50,
        stage: str = "qualification",
        expected_close_date: Optional[date] = None,
        actual_close_date: Optional[date] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
        user_id: Optional[uuid.UUID] = None,
        name: str = "Opportunity",
    ) -> Opportunity:
        return Opportunity(
            id=uuid.uuid4(),
            name=name,
            amount=Decimal(str(amount)),
            currency="EUR",
            probability=probability,
            stage=stage,
            expected_close_date=expected_close_date,
            actual_close_date=actual_close_date,
            user_id=user_id,
            created_at=created_at or NOW,
            updated_at=updated_at or NOW,
        )
    return _make


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def test_db(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(engine, clock):
    """HTTPX async test client with database and clock overrides."""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_rng] = lambda: random.Random(42)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
