"""
Vendor Insights Router — SmartMatch visibility dashboard for vendors.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_config_store, get_profile_cache, require_vendor
from core.config import get_settings
from smartmatch.config_store import ConfigStore
from smartmatch.errors import SmartMatchError
from smartmatch.insights import build_vendor_insights, simulate_match_scores, summarize_insights
from smartmatch.profile_cache import ProfileCache

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/vendor/smartmatch", tags=["vendor-insights"])


@router.get("/insights")
async def get_vendor_insights(
    user: dict = Depends(require_vendor),
    cache: ProfileCache = Depends(get_profile_cache),
    config_store: ConfigStore = Depends(get_config_store),
):
    """Profile summary, factor insights and simulated scores for the caller's vendor."""
    business_id = user["business_id"]

    if not get_settings().smartmatch_enabled:
        return {"ok": True, "enabled": False, "message": "SmartMatch is not enabled on this platform."}

    config = await config_store.get()
    if not config.enabled:
        return {"ok": True, "enabled": False, "message": "SmartMatch is currently disabled by admin."}

    profile = await cache.get_one(business_id)
    if profile is None:
        try:
            profile = await cache.compute_and_store(business_id)
        except SmartMatchError as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except Exception as exc:
            logger.error("smartmatch.insights_compute_failed", business_id=business_id, error=str(exc))
            raise HTTPException(status_code=500, detail=f"Could not compute your profile: {exc}")

    insights = build_vendor_insights(profile)
    simulated = simulate_match_scores(profile, config.weights)

    return {
        "ok": True,
        "enabled": True,
        "profile": {
            "fulfillmentRate": profile.fulfillment_rate,
            "avgDeliveryHours": profile.avg_delivery_hours,
            "disputeRate": profile.dispute_rate,
            "totalCompletedOrders": profile.total_completed_orders,
            "verificationTier": profile.verification_tier,
            "apexBadgeActive": profile.apex_badge_active,
            "stockAccuracyRate": profile.stock_accuracy_rate,
            "computedAtMs": profile.computed_at_ms,
        },
        "insights": [insight.to_dict() for insight in insights],
        "simulatedScores": {
            key: {"total": score.total, "breakdown": score.to_dict()} for key, score in simulated.items()
        },
        "summary": summarize_insights(insights),
    }
