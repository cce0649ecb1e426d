"""
Batch Recompute — refresh every vendor's cached reliability profile.

Runs sequentially over one bounded page of vendor ids. A failure on one
vendor is recorded and the loop moves on, even when rolling the session
back fails too; the job itself only fails if the vendor listing does.
"""

from __future__ import annotations

import structlog

from smartmatch.profile_cache import ProfileCache
from smartmatch.repository import SmartMatchRepository
from smartmatch.types import BatchRecomputeResult

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 1000
MAX_LOGGED_FAILURES = 10
MAX_RETURNED_ERRORS = 20


async def recompute_all_vendor_profiles(
    cache: ProfileCache,
    repository: SmartMatchRepository,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> BatchRecomputeResult:
    business_ids = await repository.list_business_ids(limit=page_size)
    logger.info("smartmatch.batch_started", vendors=len(business_ids))

    result = BatchRecomputeResult()
    errors: list[str] = []

    for business_id in business_ids:
        try:
            await cache.compute_and_store(business_id)
            result.computed += 1
        except Exception as exc:  # noqa: BLE001
            result.failed += 1
            errors.append(f"{business_id}: {exc}")
            # Leave the session usable for the next vendor.
            try:
                await repository.rollback()
            except Exception as rollback_exc:  # noqa: BLE001
                logger.error(
                    "smartmatch.batch_rollback_failed",
                    business_id=business_id,
                    error=str(rollback_exc),
                )
            if result.failed <= MAX_LOGGED_FAILURES:
                logger.warning("smartmatch.batch_vendor_failed", business_id=business_id, error=str(exc))

    result.errors = errors[:MAX_RETURNED_ERRORS]
    logger.info("smartmatch.batch_completed", computed=result.computed, failed=result.failed)
    return result
