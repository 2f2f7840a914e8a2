# ruff: noqa: BLE001
"""Translation cache manager.

Combines the in-memory LRU tier and the SQLite tier behind one get/set surface.
Provides lookup with promotion, write-through registration, TTL expiry, statistics and paginated listing.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from core.cache.interface import CacheStoreError
from core.cache.memory_store import MemoryCacheStore
from core.cache.sqlite_store import SqliteCacheStore
from models.cache_models import CacheEntry, CacheStats, PaginatedCacheEntries
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from core.cache.interface import CacheStore
    from models.config_models import Config

__all__: list[str] = ["TranslationCacheManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TranslationCacheManager:
    """Two-tier translation cache.

    The hot tier answers first and holds the most recently used entries. The cold tier persists every entry
    and is authoritative for totals and listings. Any cold-tier failure is logged and the manager continues
    with the hot tier alone; no method raises.

    Attributes:
        config (Config): Application configuration.
        hot (CacheStore): In-memory tier.
        cold (CacheStore | None): Persistent tier. None until loaded, or after it failed to open.
        ttl (timedelta): Lifetime of a cold-tier entry.
    """

    def __init__(self, config: Config, *, hot: CacheStore | None = None, cold: CacheStore | None = None) -> None:
        """Initialize the cache manager.

        Args:
            config (Config): Application configuration.
            hot (CacheStore | None): In-memory tier. Defaults to an LRU store sized by CACHE.MEMORY_LIMIT.
            cold (CacheStore | None): Persistent tier. Defaults to SQLite at CACHE.DB_PATH.
        """
        self.config: Config = config
        self.hot: CacheStore = hot if hot is not None else MemoryCacheStore(config.CACHE.MEMORY_LIMIT)
        self._cold_candidate: CacheStore = cold if cold is not None else SqliteCacheStore(config.CACHE.DB_PATH)
        self.cold: CacheStore | None = None
        self.ttl: timedelta = timedelta(days=config.CACHE.TTL_DAYS)
        self._is_initialized: bool = False
        logger.debug("TranslationCacheManager instance created")

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def is_persistent(self) -> bool:
        """Whether the cold tier is available."""
        return self.cold is not None

    async def component_load(self) -> None:
        """Open both tiers and remove expired cold entries."""
        logger.info("TranslationCacheManager initialization started")
        await self.hot.open()
        try:
            await self._cold_candidate.open()
            self.cold = self._cold_candidate
        except CacheStoreError as err:
            logger.error("Persistent cache unavailable, continuing with memory only: %s", err)
            self.cold = None
        self._is_initialized = True
        await self.clean_expired()
        logger.info("TranslationCacheManager initialized (persistent=%s)", self.is_persistent)

    async def component_teardown(self) -> None:
        """Close both tiers."""
        logger.info("TranslationCacheManager shutdown started")
        if self.cold is not None:
            try:
                await self.cold.close()
            except Exception as err:
                logger.error("Error closing persistent cache: %s", err)
            self.cold = None
        await self.hot.close()
        self._is_initialized = False
        logger.info("TranslationCacheManager shutdown completed")

    def _now_ms(self) -> int:
        return int(datetime.now().astimezone().timestamp() * 1000)

    def _cutoff_ms(self) -> int:
        return self._now_ms() - int(self.ttl.total_seconds() * 1000)

    def _log_cold_failure(self, action: str, err: Exception) -> None:
        logger.error("Persistent cache %s failed: %s", action, err)

    async def clean_expired(self) -> int:
        """Delete cold entries older than the TTL.

        Returns:
            int: Number of deleted entries.
        """
        if self.cold is None:
            return 0
        try:
            deleted: int = await self.cold.delete_older_than(self._cutoff_ms())
        except Exception as err:
            self._log_cold_failure("expiry sweep", err)
            return 0
        logger.info("Deleted %d expired translation cache entries", deleted)
        return deleted

    async def get(self, source: str, target: str, text: str) -> str | None:
        """Look up a translation.

        A hot hit is promoted to most recently used. A live cold hit is copied into the hot tier; an expired
        cold hit is deleted and reported as a miss.

        Returns:
            str | None: The cached translation, or None.
        """
        key: str = StringUtils.make_cache_key(source, target, text)
        try:
            entry: CacheEntry | None = await self.hot.get(key)
        except Exception as err:
            logger.error("Memory cache lookup failed: %s", err)
            entry = None
        if entry is not None:
            return entry.translation

        if self.cold is None:
            return None
        try:
            entry = await self.cold.get(key)
            if entry is None:
                return None
            if entry.created_at < self._cutoff_ms():
                logger.debug("Expired cache entry removed on read: %.40s", key)
                await self.cold.delete(key)
                return None
            await self.hot.put(entry)
        except Exception as err:
            self._log_cold_failure("lookup", err)
            return None
        return entry.translation

    async def set(self, source: str, target: str, text: str, translation: str) -> None:
        """Store a translation in the hot tier, then in the cold tier."""
        entry = CacheEntry(
            key=StringUtils.make_cache_key(source, target, text),
            source=source,
            target=target,
            original_text=text,
            translation=translation,
            created_at=self._now_ms(),
        )
        try:
            await self.hot.put(entry)
        except Exception as err:
            logger.error("Memory cache write failed: %s", err)

        if self.cold is None:
            return
        try:
            await self.cold.put(entry)
        except Exception as err:
            self._log_cold_failure("write", err)

    async def clear(self) -> None:
        """Empty both tiers."""
        try:
            await self.hot.clear()
        except Exception as err:
            logger.error("Memory cache clear failed: %s", err)
        if self.cold is not None:
            try:
                await self.cold.clear()
            except Exception as err:
                self._log_cold_failure("clear", err)
        logger.info("Translation cache cleared")

    async def get_stats(self) -> CacheStats:
        memory_count: int = await self.hot.count()
        db_count: int = 0
        if self.cold is not None:
            try:
                db_count = await self.cold.count()
            except Exception as err:
                self._log_cold_failure("count", err)
        return CacheStats(memory_count=memory_count, db_count=db_count, total_count=db_count)

    async def get_entries(self, page: int = 0, limit: int = 20) -> PaginatedCacheEntries:
        """Return one page of cold entries, newest first.

        Args:
            page (int): Zero-based page number. `page * limit` entries are skipped.
            limit (int): Page size.

        Returns:
            PaginatedCacheEntries: The page, with `has_more` and the total count. Empty if the cold tier is
                unavailable.
        """
        page = max(page, 0)
        limit = max(limit, 0)
        if self.cold is None:
            return PaginatedCacheEntries()
        try:
            total: int = await self.cold.count()
            entries: list[CacheEntry] = await self.cold.entries(page * limit, limit)
        except Exception as err:
            self._log_cold_failure("listing", err)
            return PaginatedCacheEntries()
        return PaginatedCacheEntries(entries=entries, has_more=(page + 1) * limit < total, total=total)
