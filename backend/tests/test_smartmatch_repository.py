"""
Tests for the SmartMatch document store boundary.
"""

import pytest

from smartmatch.repository import SmartMatchRepository, deep_merge


class TestDeepMerge:
    def test_nested_mappings_merge(self):
        base = {"weights": {"location": 25, "delivery": 15}, "enabled": True}
        merged = deep_merge(base, {"weights": {"location": 30}})
        assert merged == {"weights": {"location": 30, "delivery": 15}, "enabled": True}

    def test_scalars_replace_and_base_untouched(self):
        base = {"weights": {"location": 25}}
        merged = deep_merge(base, {"weights": None})
        assert merged == {"weights": None}
        assert base == {"weights": {"location": 25}}

    def test_none_base(self):
        assert deep_merge(None, {"a": 1}) == {"a": 1}


@pytest.mark.asyncio
class TestRepository:
    async def test_list_business_ids_is_bounded(self, test_db, seeded_db):
        repository = SmartMatchRepository(test_db)
        assert len(await repository.list_business_ids()) == 2
        assert len(await repository.list_business_ids(limit=1)) == 1

    async def test_get_businesses(self, test_db, seeded_db):
        repository = SmartMatchRepository(test_db)
        found = await repository.get_businesses(["biz-lagos-001", "missing"])
        assert [b.business_id for b in found] == ["biz-lagos-001"]
        assert await repository.get_businesses([]) == []

    async def test_merge_smart_match_is_shallow(self, test_db, seeded_db):
        repository = SmartMatchRepository(test_db)
        await repository.merge_smart_match("biz-lagos-001", {"flagged": True})
        await repository.merge_smart_match("biz-lagos-001", {"profile": {"fulfillmentRate": 90}})

        business = await repository.get_business("biz-lagos-001")
        assert business.smart_match == {"flagged": True, "profile": {"fulfillmentRate": 90}}
        assert await repository.merge_smart_match("missing", {"flagged": True}) is False

    async def test_disputes_by_vendor_and_order(self, test_db, seeded_db):
        repository = SmartMatchRepository(test_db)
        assert len(await repository.list_disputes("biz-lagos-001")) == 1
        assert len(await repository.list_disputes_for_orders(["ord-lagos-09", "ord-unknown"])) == 1
        assert await repository.list_disputes_for_orders([]) == []

    async def test_config_document_round_trip(self, test_db):
        repository = SmartMatchRepository(test_db)
        assert await repository.get_config_document("config/smartmatch") is None

        await repository.merge_config_document("config/smartmatch", {"weights": {"location": 20}})
        await repository.merge_config_document("config/smartmatch", {"weights": {"delivery": 10}})

        doc = await repository.get_config_document("config/smartmatch")
        assert doc == {"weights": {"location": 20, "delivery": 10}}
