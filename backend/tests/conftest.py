"""
Test Configuration — Fixtures for async DB, test client, and marketplace data.

Each test gets its own in-memory SQLite database, so app code is free to
commit and nothing leaks between tests.
"""

from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from api.deps import get_config_store, get_current_user, get_db
from api.main import app
from db.session import Base
from smartmatch.config_store import ConfigStore

# Use in-memory SQLite for tests. StaticPool keeps one connection so every
# session in a test sees the same database.
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

BUSINESS_ID = "biz-lagos-001"
OTHER_BUSINESS_ID = "biz-abuja-002"

NOW_MS = 1_750_000_000_000


@pytest.fixture
async def test_engine():
    """Create a test database engine and build all tables."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    session = AsyncSession(bind=test_engine, expire_on_commit=False)
    yield session
    await session.close()


@pytest.fixture
def session_factory(test_db):
    """Session factory that hands out the test session without closing it."""

    @asynccontextmanager
    async def _factory():
        yield test_db

    return _factory


@pytest.fixture
def config_store(session_factory):
    return ConfigStore(session_factory)


@pytest.fixture
def admin_user():
    return {"sub": "admin-user-id", "email": "admin@market.test", "role": "admin"}


@pytest.fixture
def vendor_user():
    return {"sub": "owner-user-id", "email": "owner@market.test", "role": "owner", "business_id": BUSINESS_ID}


@pytest.fixture
def mock_user(admin_user):
    """Authenticated user for API tests; override per test for other roles."""
    return admin_user


@pytest.fixture
async def client(test_db, mock_user, config_store):
    """Create an async test client with dependency overrides."""

    async def override_get_db():
        yield test_db

    def override_get_current_user():
        return mock_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_config_store] = lambda: config_store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def seeded_db(test_db):
    """Seed two vendors with a realistic mix of orders, disputes and products."""
    from datetime import datetime, timedelta

    from db.models import Business, Dispute, Order, Product

    now = datetime.utcnow()

    lagos = Business(
        business_id=BUSINESS_ID,
        slug="mama-t-kitchen",
        name="Mama T Kitchen",
        state="Lagos",
        city="Ikeja",
        verification_tier=3,
        apex_badge_active=False,
        continue_in_chat_enabled=True,
        subscription={"planKey": "apex", "expiresAtMs": NOW_MS * 2},
        review_summary={"averageRating": 4.7, "totalReviews": 12, "ratingScore": 92, "recentTrend": "improving"},
        smart_match={},
    )
    abuja = Business(
        business_id=OTHER_BUSINESS_ID,
        slug="abuja-gadgets",
        name="Abuja Gadgets",
        state="FCT",
        city="Abuja",
        verification_tier=0,
        smart_match={},
    )
    test_db.add_all([lagos, abuja])
    await test_db.flush()

    orders = []
    for i in range(10):
        created = now - timedelta(days=5 + i)
        orders.append(
            Order(
                order_id=f"ord-lagos-{i:02d}",
                business_id=BUSINESS_ID,
                buyer_id=f"buyer-{i}",
                order_status="completed" if i < 9 else "cancelled",
                payment_type="paystack_escrow" if i % 2 == 0 else "direct_transfer",
                created_at=created,
                delivery_duration_hours=12.0 if i < 9 else None,
            )
        )
    orders.append(
        Order(
            order_id="ord-lagos-draft",
            business_id=BUSINESS_ID,
            buyer_id="buyer-x",
            order_status="draft",
            created_at=now - timedelta(days=1),
        )
    )
    test_db.add_all(orders)

    test_db.add(Dispute(dispute_id="dsp-001", order_id="ord-lagos-09", business_id=BUSINESS_ID))

    test_db.add_all(
        [
            Product(product_id="prod-jollof", business_id=BUSINESS_ID, name="Jollof Tray", stock=5, price=8000),
            Product(product_id="prod-suya", business_id=BUSINESS_ID, name="Suya Pack", stock=0, price=3000),
            Product(product_id="prod-chops", business_id=BUSINESS_ID, name="Small Chops", stock=20, price=5000),
            Product(product_id="prod-phone", business_id=OTHER_BUSINESS_ID, name="Phone", stock=1, price=150000),
        ]
    )
    await test_db.commit()

    return {"lagos": lagos, "abuja": abuja}
