"""
SmartMatch Router — score marketplace listings for the current buyer.

Lightweight by design: vendor profiles are read from the cache on the
vendor record, and product data never leaves the storefront beyond
id + vendor + categories. Any failure degrades to "no scores" so the
marketplace keeps rendering.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from api.deps import get_config_store, get_profile_cache
from core.config import get_settings
from smartmatch.buyer_intent import build_buyer_intent
from smartmatch.config_store import ConfigStore
from smartmatch.profile_cache import ProfileCache
from smartmatch.score import build_product_match_result
from smartmatch.types import BuyerOrder, MarketFilters

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/smartmatch", tags=["smartmatch"])


# ─── Schemas ────────────────────────────────────────────────────────────────


# Storefront ids may arrive as numbers
IdStr = Annotated[str, BeforeValidator(lambda v: "" if v is None else str(v))]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductStub(CamelModel):
    id: IdStr = ""
    business_id: IdStr = ""
    category_keys: list[str] = Field(default_factory=list)


class FiltersIn(CamelModel):
    state: str | None = None
    city: str | None = None
    category: str | None = None
    price_min: float | None = None
    price_max: float | None = None


class OrderHistoryEntry(CamelModel):
    business_id: IdStr = ""
    payment_type: str | None = None
    category_keys: list[str] = Field(default_factory=list)


class RankRequest(CamelModel):
    products: list[ProductStub] = Field(default_factory=list)
    filters: FiltersIn | None = None
    order_history: list[OrderHistoryEntry] = Field(default_factory=list)


# ─── Endpoints ──────────────────────────────────────────────────────────────


def _disabled() -> dict:
    return {"ok": True, "enabled": False, "scores": {}}


@router.post("/rank")
async def rank_products(
    body: RankRequest,
    cache: ProfileCache = Depends(get_profile_cache),
    config_store: ConfigStore = Depends(get_config_store),
):
    """
    Score each product stub against the buyer's intent.

    Products whose vendor has no valid cached profile are left out; the
    storefront shows them without a badge.
    """
    settings = get_settings()
    try:
        if not settings.smartmatch_enabled:
            return _disabled()

        config = await config_store.get()
        if not config.enabled:
            return _disabled()

        stubs = body.products[: settings.smartmatch_rank_max_products]
        if not stubs:
            return {"ok": True, "enabled": True, "scores": {}}

        history = body.order_history[: settings.smartmatch_rank_max_history]
        filters = body.filters or FiltersIn()
        buyer = build_buyer_intent(
            MarketFilters(**filters.model_dump()),
            [BuyerOrder(**entry.model_dump()) for entry in history],
        )

        profiles = await cache.get_many(stub.business_id for stub in stubs)

        scores = {}
        for stub in stubs:
            if not stub.id or not stub.business_id:
                continue
            vendor = profiles.get(stub.business_id)
            if vendor is None:
                continue

            # Premium approximation: any observed payment method
            is_premium = vendor.supports_card or vendor.supports_bank_transfer or vendor.supports_chat

            result = build_product_match_result(
                product_id=stub.id,
                business_id=stub.business_id,
                buyer=buyer,
                vendor=vendor,
                weights=config.weights,
                product_categories=stub.category_keys,
                is_premium=is_premium,
                premium_bonus=config.premium_bonus,
                premium_min_score=config.premium_min_score,
            )
            scores[stub.id] = result.to_dict()

        return {"ok": True, "enabled": True, "scores": scores}
    except Exception as exc:  # noqa: BLE001
        logger.error("smartmatch.rank_failed", error=str(exc), exc_info=True)
        return _disabled()
