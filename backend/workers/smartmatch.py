"""
SmartMatch Worker — periodic vendor reliability profile recompute.

Recomputes the cached `smart_match.profile` on every vendor record so
marketplace ranking reads fresh signals:
  - fulfillment rate and dispute rate from the last 180 days of orders
  - average delivery hours
  - observed payment methods
  - stock accuracy from current listings

Schedule: crontab(minute="*/15") — every 15 minutes, inside the profile TTL
Queue: smartmatch
"""

import asyncio
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from workers.celery_app import celery_app

logger = structlog.get_logger()


async def run_profile_recompute(database_url: str, business_id: str | None = None) -> dict:
    """Recompute one vendor's profile, or every vendor's when no id is given."""
    from core.config import get_settings
    from smartmatch.batch import recompute_all_vendor_profiles
    from smartmatch.config_store import ConfigStore
    from smartmatch.errors import VendorNotFoundError
    from smartmatch.profile_cache import ProfileCache
    from smartmatch.repository import SmartMatchRepository

    settings = get_settings()
    engine = create_async_engine(database_url)
    try:
        async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        config_store = ConfigStore(async_session)

        async with async_session() as db:
            repository = SmartMatchRepository(db)
            cache = ProfileCache(
                repository,
                config_store,
                order_lookback_days=settings.smartmatch_order_lookback_days,
                order_limit=settings.smartmatch_order_limit,
                dispute_limit=settings.smartmatch_dispute_limit,
                product_limit=settings.smartmatch_product_limit,
            )

            if business_id:
                try:
                    await cache.compute_and_store(business_id)
                except VendorNotFoundError as exc:
                    # Unknown vendor: report, don't retry
                    summary = {"status": "not_found", "computed": 0, "failed": 1, "errors": [str(exc)]}
                else:
                    summary = {"status": "success", "computed": 1, "failed": 0, "errors": []}
                summary["business_id"] = business_id
            else:
                result = await recompute_all_vendor_profiles(
                    cache,
                    repository,
                    page_size=settings.smartmatch_batch_page_size,
                )
                summary = {"status": "success", **result.to_dict()}
    finally:
        await engine.dispose()

    summary["completed_at"] = datetime.now(timezone.utc).isoformat()
    return summary


@celery_app.task(
    name="workers.smartmatch.recompute_vendor_profiles",
    bind=True,
    max_retries=2,
    default_retry_delay=120,
    acks_late=True,
)
def recompute_vendor_profiles(self, business_id: str | None = None):
    """
    Periodic job: rebuild cached vendor reliability profiles.

    Per-vendor failures are reported in the summary; only infrastructure
    failures (database unreachable, listing failed) trigger a retry.
    """
    from core.config import get_settings

    run_id = self.request.id or "manual"
    logger.info("smartmatch.recompute_started", business_id=business_id, run_id=run_id)

    try:
        summary = asyncio.run(run_profile_recompute(get_settings().database_url, business_id))
    except Exception as exc:
        logger.error("smartmatch.recompute_failed", business_id=business_id, error=str(exc), exc_info=True)
        raise self.retry(exc=exc)

    logger.info("smartmatch.recompute_completed", run_id=run_id, **summary)
    return summary
