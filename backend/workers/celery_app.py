"""
Celery Application Configuration
"""

from celery import Celery
from celery.schedules import crontab

from core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "smartmatch",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    task_routes={
        "workers.smartmatch.*": {"queue": "smartmatch"},
    },
    # ── Celery Beat Schedule ─────────────────────────────────────────
    beat_schedule={
        # Must fire within the default profile TTL (30 min); ranking skips stale profiles.
        "recompute-vendor-profiles-every-15min": {
            "task": "workers.smartmatch.recompute_vendor_profiles",
            "schedule": crontab(minute="*/15"),
            "options": {"queue": "smartmatch"},
        },
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["workers"])
