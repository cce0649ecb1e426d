"""
Profile Cache — vendor reliability profiles stored on the vendor record.

The profile lives at `smart_match.profile` on the business record and is
valid while `now - computedAtMs <= profile_cache_ttl_ms` (from the current
config). Stale, missing and malformed profiles all read as None.

Writes are full-snapshot overwrites with last-write-wins semantics, so two
concurrent recomputes for the same vendor are safe, only wasteful.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TypeVar

import structlog

from smartmatch.config import now_ms
from smartmatch.config_store import ConfigStore
from smartmatch.errors import VendorNotFoundError
from smartmatch.repository import SmartMatchRepository
from smartmatch.types import VendorReliabilityProfile
from smartmatch.vendor_profile import compute_vendor_profile

logger = structlog.get_logger()

T = TypeVar("T")

BATCH_READ_CHUNK_SIZE = 400
ORDER_LOOKBACK_DAYS = 180
ORDER_LIMIT = 500
DISPUTE_LIMIT = 200
PRODUCT_LIMIT = 200
# Order-id dispute fallback: only the most recent orders, in small IN() chunks
DISPUTE_FALLBACK_ORDER_LIMIT = 30
DISPUTE_FALLBACK_CHUNK_SIZE = 10


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class ProfileCache:
    """Read, write and (re)compute cached vendor profiles."""

    def __init__(
        self,
        repository: SmartMatchRepository,
        config_store: ConfigStore,
        *,
        clock: Callable[[], int] = now_ms,
        order_lookback_days: int = ORDER_LOOKBACK_DAYS,
        order_limit: int = ORDER_LIMIT,
        dispute_limit: int = DISPUTE_LIMIT,
        product_limit: int = PRODUCT_LIMIT,
    ):
        self.repository = repository
        self.config_store = config_store
        self._clock = clock
        self.order_lookback_days = order_lookback_days
        self.order_limit = order_limit
        self.dispute_limit = dispute_limit
        self.product_limit = product_limit

    def _valid_profile(self, business, ttl_ms: int, now: int) -> VendorReliabilityProfile | None:
        smart_match = business.smart_match if isinstance(business.smart_match, dict) else {}
        profile = VendorReliabilityProfile.from_document(smart_match.get("profile"), business.business_id)
        if profile is None:
            return None
        if now - profile.computed_at_ms > ttl_ms:
            return None
        return profile

    async def get_one(self, business_id: str) -> VendorReliabilityProfile | None:
        """Cached profile for one vendor, or None when absent/stale/unknown."""
        try:
            business = await self.repository.get_business(business_id)
        except Exception as exc:  # noqa: BLE001
            logger.error("smartmatch.profile_read_failed", business_id=business_id, error=str(exc))
            return None
        if business is None:
            return None

        config = await self.config_store.get()
        return self._valid_profile(business, config.profile_cache_ttl_ms, self._clock())

    async def get_many(self, business_ids: Iterable[str]) -> dict[str, VendorReliabilityProfile]:
        """
        Batch lookup. Only valid profiles are returned; a failed storage chunk
        is logged and skipped rather than failing the whole lookup.
        """
        unique_ids = list(dict.fromkeys(bid for bid in business_ids if bid))
        profiles: dict[str, VendorReliabilityProfile] = {}
        if not unique_ids:
            return profiles

        config = await self.config_store.get()
        now = self._clock()

        for chunk in chunked(unique_ids, BATCH_READ_CHUNK_SIZE):
            try:
                businesses = await self.repository.get_businesses(chunk)
            except Exception as exc:  # noqa: BLE001
                logger.error("smartmatch.profile_batch_read_failed", chunk_size=len(chunk), error=str(exc))
                continue

            for business in businesses:
                profile = self._valid_profile(business, config.profile_cache_ttl_ms, now)
                if profile is not None:
                    profiles[business.business_id] = profile

        return profiles

    async def put(self, business_id: str, profile: VendorReliabilityProfile) -> VendorReliabilityProfile:
        """Overwrite the cached profile, stamping computed_at_ms with the write time."""
        written_at = self._clock()
        stored = replace(profile, business_id=business_id, computed_at_ms=written_at)
        found = await self.repository.merge_smart_match(
            business_id,
            {"profile": stored.to_document(), "lastComputedAtMs": written_at},
        )
        if not found:
            raise VendorNotFoundError(business_id)
        return stored

    async def compute_and_store(self, business_id: str) -> VendorReliabilityProfile:
        """Build a fresh profile from the vendor's history and cache it."""
        business = await self.repository.get_business(business_id)
        if business is None:
            raise VendorNotFoundError(business_id)

        since = datetime.utcnow() - timedelta(days=self.order_lookback_days)
        orders = await self.repository.list_orders(business_id, since, limit=self.order_limit)
        disputes = await self._load_disputes(business_id, orders)
        products = await self.repository.list_products(business_id, limit=self.product_limit)

        profile = compute_vendor_profile(business, orders, disputes, products, now_ms=self._clock())
        stored = await self.put(business_id, profile)

        logger.info(
            "smartmatch.profile_computed",
            business_id=business_id,
            orders=len(orders),
            disputes=len(disputes),
            products=len(products),
            fulfillment_rate=stored.fulfillment_rate,
        )
        return stored

    async def _load_disputes(self, business_id: str, orders: Sequence) -> list:
        disputes = await self.repository.list_disputes(business_id, limit=self.dispute_limit)
        if disputes or not orders:
            return disputes

        # Disputes filed without a vendor id are only reachable through their order.
        order_ids = [o.order_id for o in orders][:DISPUTE_FALLBACK_ORDER_LIMIT]
        fallback = []
        for chunk in chunked(order_ids, DISPUTE_FALLBACK_CHUNK_SIZE):
            try:
                fallback.extend(await self.repository.list_disputes_for_orders(chunk))
            except Exception as exc:  # noqa: BLE001
                logger.warning("smartmatch.dispute_fallback_failed", business_id=business_id, error=str(exc))
        return fallback
