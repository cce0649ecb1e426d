import asyncio
from datetime import datetime, timedelta
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from core.config import Settings
from db.session import Base
from workers.smartmatch import recompute_vendor_profiles


def _seed_database(db_url: str) -> None:
    from db.models import Business, Order

    engine = create_async_engine(db_url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _seed() -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with session_factory() as db:
            db.add_all(
                [
                    Business(business_id="biz-kano-001", name="Kano Fabrics", state="Kano", city="Kano"),
                    Business(business_id="biz-ibadan-002", name="Ibadan Bakes", state="Oyo", city="Ibadan"),
                ]
            )
            await db.flush()
            db.add_all(
                [
                    Order(
                        order_id=f"ord-kano-{i}",
                        business_id="biz-kano-001",
                        order_status="completed" if i < 3 else "cancelled",
                        payment_type="flutterwave",
                        created_at=datetime.utcnow() - timedelta(days=i + 1),
                    )
                    for i in range(4)
                ]
            )
            await db.commit()
        await engine.dispose()

    asyncio.run(_seed())


def _read_smart_match(db_url: str, business_id: str) -> dict:
    from db.models import Business

    engine = create_async_engine(db_url, echo=False)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _read() -> dict:
        try:
            async with session_factory() as db:
                business = await db.get(Business, business_id)
                return business.smart_match or {}
        finally:
            await engine.dispose()

    return asyncio.run(_read())


@pytest.fixture
def worker_db(tmp_path, monkeypatch):
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'smartmatch.db'}"
    _seed_database(db_url)
    monkeypatch.setattr("core.config.get_settings", lambda: Settings(database_url=db_url))
    return db_url


def test_recompute_all_vendors(worker_db):
    result = recompute_vendor_profiles.run()

    assert result["status"] == "success"
    assert result["computed"] == 2
    assert result["failed"] == 0
    assert "completed_at" in result

    profile = _read_smart_match(worker_db, "biz-kano-001")["profile"]
    assert profile["fulfillmentRate"] == 75
    assert profile["supportsCard"] is True
    assert profile["totalAttemptedOrders"] == 4


def test_recompute_single_vendor(worker_db):
    result = recompute_vendor_profiles.run(business_id="biz-ibadan-002")

    assert result["status"] == "success"
    assert result["business_id"] == "biz-ibadan-002"
    assert result["computed"] == 1
    assert "profile" in _read_smart_match(worker_db, "biz-ibadan-002")
    assert "profile" not in _read_smart_match(worker_db, "biz-kano-001")


def test_batch_page_size_comes_from_settings(worker_db, monkeypatch):
    monkeypatch.setattr(
        "core.config.get_settings",
        lambda: Settings(database_url=worker_db, smartmatch_batch_page_size=1),
    )

    result = recompute_vendor_profiles.run()

    assert result["status"] == "success"
    assert result["computed"] == 1


def test_unknown_vendor_is_reported_not_retried(worker_db):
    result = recompute_vendor_profiles.run(business_id="biz-missing")

    assert result["status"] == "not_found"
    assert result["failed"] == 1
    assert result["errors"] == ["Business biz-missing not found"]


def test_infrastructure_failure_retries(monkeypatch):
    async def _broken(database_url, business_id=None):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr("core.config.get_settings", lambda: Settings(database_url="sqlite+aiosqlite://"))
    monkeypatch.setattr("workers.smartmatch.run_profile_recompute", _broken)

    # Called directly (outside a worker), Task.retry re-raises the original error
    with pytest.raises(RuntimeError, match="database unavailable"):
        recompute_vendor_profiles.run()
