"""
Tests for the Profile Cache — compute/store, TTL staleness, batch reads.
"""

from datetime import datetime, timedelta

import pytest

from smartmatch.errors import VendorNotFoundError
from smartmatch.profile_cache import ProfileCache, chunked
from smartmatch.repository import SmartMatchRepository
from smartmatch.types import VendorReliabilityProfile

BUSINESS_ID = "biz-lagos-001"
OTHER_BUSINESS_ID = "biz-abuja-002"
NOW_MS = 1_750_000_000_000


class FakeClock:
    def __init__(self, now: int = NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(test_db, config_store, clock):
    return ProfileCache(SmartMatchRepository(test_db), config_store, clock=clock)


def test_chunked():
    assert list(chunked([1, 2, 3, 4, 5], 2)) == [[1, 2], [3, 4], [5]]
    assert list(chunked([], 3)) == []


@pytest.mark.asyncio
class TestComputeAndStore:
    async def test_builds_profile_from_history(self, cache, seeded_db):
        profile = await cache.compute_and_store(BUSINESS_ID)

        assert profile.business_id == BUSINESS_ID
        assert profile.total_attempted_orders == 10
        assert profile.total_completed_orders == 9
        assert profile.fulfillment_rate == 90
        assert profile.avg_delivery_hours == 12
        assert profile.total_disputes == 1
        assert profile.dispute_rate == 10.0
        assert profile.supports_card and profile.supports_bank_transfer and profile.supports_chat
        assert profile.stock_accuracy_rate == 67
        assert profile.verification_tier == 3
        assert profile.computed_at_ms == NOW_MS

    async def test_writes_profile_without_touching_siblings(self, cache, seeded_db, test_db):
        business = seeded_db["lagos"]
        business.smart_match = {"flagged": True, "flagReason": "fake reviews"}
        await test_db.commit()

        await cache.compute_and_store(BUSINESS_ID)

        stored = (await SmartMatchRepository(test_db).get_business(BUSINESS_ID)).smart_match
        assert stored["flagged"] is True
        assert stored["flagReason"] == "fake reviews"
        assert stored["lastComputedAtMs"] == NOW_MS
        assert stored["profile"]["fulfillmentRate"] == 90
        assert stored["profile"]["flagged"] is True

    async def test_unknown_vendor_raises(self, cache, seeded_db):
        with pytest.raises(VendorNotFoundError):
            await cache.compute_and_store("missing-vendor")

    async def test_put_unknown_vendor_raises(self, cache, seeded_db):
        with pytest.raises(VendorNotFoundError):
            await cache.put("missing-vendor", VendorReliabilityProfile(business_id="missing-vendor"))

    async def test_dispute_fallback_by_order_id(self, cache, seeded_db, test_db):
        from db.models import Dispute, Order

        test_db.add(
            Order(
                order_id="ord-abuja-01",
                business_id=OTHER_BUSINESS_ID,
                order_status="completed",
                created_at=datetime.utcnow() - timedelta(days=2),
            )
        )
        test_db.add(Dispute(dispute_id="dsp-legacy", order_id="ord-abuja-01", business_id=None))
        await test_db.commit()

        profile = await cache.compute_and_store(OTHER_BUSINESS_ID)
        assert profile.total_disputes == 1
        assert profile.dispute_rate == 100.0

    async def test_old_orders_outside_lookback_ignored(self, test_db, config_store, clock, seeded_db):
        cache = ProfileCache(SmartMatchRepository(test_db), config_store, clock=clock, order_lookback_days=7)
        profile = await cache.compute_and_store(BUSINESS_ID)
        # Only the 5- and 6-day-old orders (plus yesterday's draft) fall inside 7 days
        assert profile.total_attempted_orders == 2


@pytest.mark.asyncio
class TestCachedReads:
    async def test_get_one_fresh(self, cache, seeded_db):
        stored = await cache.compute_and_store(BUSINESS_ID)
        assert await cache.get_one(BUSINESS_ID) == stored

    async def test_get_one_stale(self, cache, seeded_db, clock):
        await cache.compute_and_store(BUSINESS_ID)
        clock.now += 31 * 60 * 1000
        assert await cache.get_one(BUSINESS_ID) is None

    async def test_get_one_without_profile(self, cache, seeded_db):
        assert await cache.get_one(OTHER_BUSINESS_ID) is None
        assert await cache.get_one("missing-vendor") is None

    async def test_get_one_malformed_profile(self, cache, seeded_db, test_db):
        seeded_db["lagos"].smart_match = {"profile": "not-a-document"}
        await test_db.commit()
        assert await cache.get_one(BUSINESS_ID) is None

    async def test_get_many_returns_only_valid(self, cache, seeded_db):
        await cache.compute_and_store(BUSINESS_ID)
        profiles = await cache.get_many([BUSINESS_ID, "", BUSINESS_ID, OTHER_BUSINESS_ID, "missing"])
        assert list(profiles) == [BUSINESS_ID]

    async def test_get_many_empty(self, cache):
        assert await cache.get_many([]) == {}

    async def test_get_many_skips_failed_chunk(self, test_db, config_store, clock, seeded_db):
        class BrokenRepository(SmartMatchRepository):
            async def get_businesses(self, business_ids):
                raise RuntimeError("read timeout")

        cache = ProfileCache(BrokenRepository(test_db), config_store, clock=clock)
        assert await cache.get_many([BUSINESS_ID]) == {}
