"""In-memory LRU tier of the translation cache."""

from __future__ import annotations

from collections import OrderedDict
from typing import TYPE_CHECKING, Final

from core.cache.interface import CacheStore
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.cache_models import CacheEntry

__all__: list[str] = ["MemoryCacheStore"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_MEMORY_LIMIT: Final[int] = 500


class MemoryCacheStore(CacheStore):
    """Bounded LRU store kept in an OrderedDict.

    The last item is the most recently used. A read hit moves the entry to the end; inserting beyond
    `max_size` evicts exactly one entry from the front. No method awaits internally, so concurrent
    callers observe writes in call order.

    Attributes:
        max_size (int): Maximum number of entries.
    """

    def __init__(self, max_size: int = DEFAULT_MEMORY_LIMIT) -> None:
        if max_size < 1:
            msg: str = f"max_size must be 1 or greater: {max_size}"
            raise ValueError(msg)
        self.max_size: int = max_size
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()

    async def open(self) -> None:
        logger.debug("Memory cache ready (limit=%d)", self.max_size)

    async def close(self) -> None:
        self._entries.clear()

    async def get(self, key: str) -> CacheEntry | None:
        entry: CacheEntry | None = self._entries.get(key)
        if entry is not None:
            self._entries.move_to_end(key)
        return entry

    async def put(self, entry: CacheEntry) -> None:
        if entry.key in self._entries:
            self._entries.move_to_end(entry.key)
        self._entries[entry.key] = entry
        if len(self._entries) > self.max_size:
            evicted_key, _ = self._entries.popitem(last=False)
            logger.debug("Evicted least recently used entry: %.40s", evicted_key)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    async def count(self) -> int:
        return len(self._entries)

    async def entries(self, offset: int, limit: int) -> list[CacheEntry]:
        ordered: list[CacheEntry] = sorted(self._entries.values(), key=lambda e: e.created_at, reverse=True)
        return ordered[offset : offset + limit]

    async def delete_older_than(self, cutoff_ms: int) -> int:
        expired: list[str] = [key for key, entry in self._entries.items() if entry.created_at < cutoff_ms]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def keys(self) -> list[str]:
        """Keys from least to most recently used."""
        return list(self._entries)
