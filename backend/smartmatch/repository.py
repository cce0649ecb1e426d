"""
SmartMatch document store — the persistence boundary of the scoring core.

Everything SmartMatch reads or writes goes through SmartMatchRepository:
vendor records, their orders/disputes/products, the `smart_match`
sub-document on the vendor record, and the singleton config document.
Writes are single-record merges; there are no multi-record transactions.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Business, Dispute, Order, PlatformConfig, Product


def deep_merge(base: Mapping | None, patch: Mapping) -> dict[str, Any]:
    """Merge `patch` into `base`; nested mappings merge, everything else replaces."""
    merged = dict(base or {})
    for key, value in patch.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class SmartMatchRepository:
    """Read/write marketplace documents by key."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Vendors ────────────────────────────────────────────────────────

    async def get_business(self, business_id: str) -> Business | None:
        return await self.db.get(Business, business_id)

    async def get_businesses(self, business_ids: Sequence[str]) -> list[Business]:
        if not business_ids:
            return []
        result = await self.db.execute(select(Business).where(Business.business_id.in_(list(business_ids))))
        return list(result.scalars().all())

    async def list_business_ids(self, limit: int = 1000) -> list[str]:
        result = await self.db.execute(
            select(Business.business_id).order_by(Business.created_at, Business.business_id).limit(limit)
        )
        return [row.business_id for row in result.all()]

    async def merge_smart_match(self, business_id: str, patch: Mapping[str, Any]) -> bool:
        """Shallow-merge `patch` into the vendor's smart_match sub-document. False if vendor missing."""
        business = await self.get_business(business_id)
        if business is None:
            return False
        # Reassign so the JSON column is marked dirty.
        business.smart_match = {**(business.smart_match or {}), **patch}
        business.updated_at = datetime.utcnow()
        await self.db.commit()
        return True

    # ── Vendor activity ────────────────────────────────────────────────

    async def list_orders(self, business_id: str, since: datetime, limit: int = 500) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .where(
                Order.business_id == business_id,
                Order.created_at >= since,
            )
            .order_by(Order.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_disputes(self, business_id: str, limit: int = 200) -> list[Dispute]:
        result = await self.db.execute(select(Dispute).where(Dispute.business_id == business_id).limit(limit))
        return list(result.scalars().all())

    async def list_disputes_for_orders(self, order_ids: Sequence[str]) -> list[Dispute]:
        if not order_ids:
            return []
        result = await self.db.execute(select(Dispute).where(Dispute.order_id.in_(list(order_ids))))
        return list(result.scalars().all())

    async def list_products(self, business_id: str, limit: int = 200) -> list[Product]:
        result = await self.db.execute(select(Product).where(Product.business_id == business_id).limit(limit))
        return list(result.scalars().all())

    # ── Platform config ────────────────────────────────────────────────

    async def get_config_document(self, key: str) -> dict[str, Any] | None:
        row = await self.db.get(PlatformConfig, key)
        if row is None:
            return None
        return dict(row.document or {})

    async def merge_config_document(self, key: str, patch: Mapping[str, Any]) -> dict[str, Any]:
        row = await self.db.get(PlatformConfig, key)
        if row is None:
            row = PlatformConfig(config_key=key, document=deep_merge({}, patch))
            self.db.add(row)
        else:
            row.document = deep_merge(row.document, patch)
            row.updated_at = datetime.utcnow()
        await self.db.commit()
        return dict(row.document)

    async def rollback(self) -> None:
        await self.db.rollback()
