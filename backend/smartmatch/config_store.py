"""
SmartMatch ConfigStore — admin-tunable scoring config with a process-local cache.

The config document lives at `config/smartmatch`. Reads are cached for
5 minutes; a save busts the cache so the next read reloads. Load failures
never propagate: scoring always gets a valid (possibly default) config.

No locking: two concurrent reloads are harmless because a reload is
deterministic for the same stored document.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from smartmatch.config import CONFIG_CACHE_TTL_MS, CONFIG_DOC_PATH, DEFAULT_CONFIG, config_from_document, now_ms
from smartmatch.repository import SmartMatchRepository
from smartmatch.types import SmartMatchConfig

logger = structlog.get_logger()

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class ConfigStore:
    """Load/save the SmartMatch config. One instance per process."""

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        doc_path: str = CONFIG_DOC_PATH,
        ttl_ms: int = CONFIG_CACHE_TTL_MS,
        clock: Callable[[], int] = now_ms,
    ):
        self._session_factory = session_factory
        self._doc_path = doc_path
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._cached: SmartMatchConfig | None = None
        self._cached_at_ms = 0

    async def get(self) -> SmartMatchConfig:
        now = self._clock()
        if self._cached is not None and now - self._cached_at_ms < self._ttl_ms:
            return self._cached

        try:
            async with self._session_factory() as db:
                doc = await SmartMatchRepository(db).get_config_document(self._doc_path)
            config = config_from_document(doc)
        except Exception as exc:  # noqa: BLE001
            logger.error("smartmatch.config_load_failed", doc_path=self._doc_path, error=str(exc))
            config = DEFAULT_CONFIG

        self._cached = config
        self._cached_at_ms = now
        return config

    async def save(self, partial: Mapping[str, Any]) -> None:
        """Merge a partial camelCase config document and bust the cache."""
        patch = {**partial, "updatedAtMs": self._clock()}
        async with self._session_factory() as db:
            await SmartMatchRepository(db).merge_config_document(self._doc_path, patch)
        logger.info("smartmatch.config_saved", doc_path=self._doc_path, fields=sorted(partial.keys()))
        self.invalidate()

    def invalidate(self) -> None:
        self._cached = None
        self._cached_at_ms = 0
