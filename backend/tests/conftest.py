"""Pytest configuration and fixtures for testing."""

import os

# In-memory database and no background sweep for the test run
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["EXPIRY_SWEEP_INTERVAL_SECONDS"] = "0"
os.environ["CRON_SECRET"] = "test-cron-secret"

import pytest
from decimal import Decimal
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from tradepost.main import app
from tradepost.database import Base, get_db
from tradepost.models import Item, Profile


# One shared connection so every session sees the same in-memory database
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    echo=False,
    poolclass=StaticPool,
)
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(scope="function")
async def db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test.
    """
    # Create all tables
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Create session
    async with TestSessionLocal() as session:
        yield session

    # Drop all tables after test
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    # Each test runs on its own event loop; don't carry the connection over
    await test_engine.dispose()


@pytest.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create test client with database dependency override.
    """
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_profile(db: AsyncSession, full_name: str, **kwargs) -> Profile:
    profile = Profile(full_name=full_name, **kwargs)
    db.add(profile)
    await db.commit()
    return profile


async def _create_item(db: AsyncSession, seller: Profile, title: str, price: str, **kwargs) -> Item:
    item = Item(seller_id=seller.id, title=title, price=Decimal(price), **kwargs)
    db.add(item)
    await db.commit()
    return item


@pytest.fixture
async def proposer(db: AsyncSession) -> Profile:
    """User making trade offers (and the buyer in negotiations)."""
    return await _create_profile(db, "Pat Proposer")


@pytest.fixture
async def owner(db: AsyncSession) -> Profile:
    """User who owns the item being traded for."""
    return await _create_profile(db, "Olive Owner")


@pytest.fixture
async def outsider(db: AsyncSession) -> Profile:
    """User with no part in the trade."""
    return await _create_profile(db, "Oscar Outsider")


@pytest.fixture
async def target_item(db: AsyncSession, owner: Profile) -> Item:
    """The owner's $120 bike."""
    return await _create_item(
        db, owner, "Road Bike", "120.00",
        condition="good", minimum_price=Decimal("90.00")
    )


@pytest.fixture
async def offered_items(db: AsyncSession, proposer: Profile) -> list[Item]:
    """The proposer's $50 helmet and $30 lamp."""
    return [
        await _create_item(db, proposer, "Helmet", "50.00"),
        await _create_item(db, proposer, "Desk Lamp", "30.00"),
    ]


@pytest.fixture
def make_profile(db: AsyncSession):
    """Factory for extra profiles."""
    async def factory(full_name: str = "Someone", **kwargs) -> Profile:
        return await _create_profile(db, full_name, **kwargs)
    return factory


@pytest.fixture
def make_item(db: AsyncSession):
    """Factory for extra items."""
    async def factory(seller: Profile, title: str = "Thing", price: str = "10.00", **kwargs) -> Item:
        return await _create_item(db, seller, title, price, **kwargs)
    return factory
