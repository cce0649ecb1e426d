"""
Admin SmartMatch Router — profile recompute, scoring config, vendor flags.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from api.deps import get_config_store, get_profile_cache, get_repository, require_admin
from core.config import get_settings
from smartmatch.batch import recompute_all_vendor_profiles
from smartmatch.config import MAX_WEIGHT_TOTAL, now_ms
from smartmatch.config_store import ConfigStore
from smartmatch.errors import VendorNotFoundError
from smartmatch.profile_cache import ProfileCache
from smartmatch.repository import SmartMatchRepository

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/admin/smartmatch", tags=["admin-smartmatch"])

MAX_FLAG_REASON_LENGTH = 500


# ─── Schemas ────────────────────────────────────────────────────────────────


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ComputeRequest(CamelModel):
    business_id: str | None = None


class WeightsUpdate(CamelModel):
    location: float | None = None
    delivery: float | None = None
    reliability: float | None = None
    payment_fit: float | None = None
    vendor_quality: float | None = None
    buyer_history: float | None = None

    @property
    def total(self) -> float:
        return sum(value or 0 for value in self.model_dump().values())


class ConfigUpdate(CamelModel):
    enabled: bool | None = None
    weights: WeightsUpdate | None = None
    hide_threshold: float | None = None
    premium_bonus: float | None = None
    premium_min_score: float | None = None
    profile_cache_ttl_ms: float | None = None
    score_cache_ttl_ms: float | None = None


class FlagRequest(CamelModel):
    business_id: str = Field("", max_length=256)
    flagged: bool = False
    reason: str | None = None


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.post("/compute")
async def compute_profiles(
    body: ComputeRequest,
    _admin: dict = Depends(require_admin),
    cache: ProfileCache = Depends(get_profile_cache),
    repository: SmartMatchRepository = Depends(get_repository),
):
    """Recompute one vendor's profile, or every vendor's when no id is given."""
    settings = get_settings()
    if not settings.smartmatch_enabled:
        raise HTTPException(status_code=400, detail="SmartMatch is disabled. Set SMARTMATCH_ENABLED=true to enable.")

    business_id = (body.business_id or "").strip()
    if business_id:
        try:
            profile = await cache.compute_and_store(business_id)
        except VendorNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        return {"ok": True, "mode": "single", "businessId": business_id, "profile": profile.to_document()}

    result = await recompute_all_vendor_profiles(cache, repository, page_size=settings.smartmatch_batch_page_size)
    return {"ok": True, "mode": "bulk", **result.to_dict()}


@router.get("/config")
async def get_config(
    _admin: dict = Depends(require_admin),
    config_store: ConfigStore = Depends(get_config_store),
):
    config = await config_store.get()
    return {"ok": True, "config": config.to_dict()}


@router.post("/config")
async def update_config(
    body: ConfigUpdate,
    _admin: dict = Depends(require_admin),
    config_store: ConfigStore = Depends(get_config_store),
):
    """Merge recognised fields into the stored config. Values are clamped on the next load."""
    if body.weights is not None and body.weights.total > MAX_WEIGHT_TOTAL:
        raise HTTPException(
            status_code=400,
            detail=f"Total weight ({body.weights.total:g}) is too high. Keep it around 100 for balanced scoring.",
        )

    update: dict[str, Any] = body.model_dump(by_alias=True, exclude_none=True)
    if "weights" in update and not update["weights"]:
        del update["weights"]
    if not update:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    await config_store.save(update)
    config = await config_store.get()
    return {"ok": True, "config": config.to_dict()}


@router.post("/flag")
async def flag_vendor(
    body: FlagRequest,
    admin: dict = Depends(require_admin),
    repository: SmartMatchRepository = Depends(get_repository),
):
    """Flag or unflag a vendor. Flagged vendors are capped at a low score."""
    business_id = body.business_id.strip()
    if not business_id:
        raise HTTPException(status_code=400, detail="businessId is required")

    business = await repository.get_business(business_id)
    if business is None:
        raise HTTPException(status_code=404, detail="Business not found")

    reason = (body.reason or "").strip()[:MAX_FLAG_REASON_LENGTH]
    flagged = body.flagged
    patch: dict[str, Any] = {
        "flagged": flagged,
        "flagReason": (reason or "Flagged by admin") if flagged else None,
        "flaggedAtMs": now_ms() if flagged else None,
        "flaggedBy": admin.get("sub", "admin") if flagged else None,
    }

    # Keep a cached profile in step so ranking reflects the flag before the next recompute
    cached_profile = (business.smart_match or {}).get("profile")
    if isinstance(cached_profile, dict):
        patch["profile"] = {**cached_profile, "flagged": flagged}

    await repository.merge_smart_match(business_id, patch)
    logger.info(
        "smartmatch.vendor_flagged" if flagged else "smartmatch.vendor_unflagged",
        business_id=business_id,
        reason=reason or None,
        admin=admin.get("sub"),
    )
    return {"ok": True, "businessId": business_id, "flagged": flagged, "reason": reason or None}
