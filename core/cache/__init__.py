"""Translation cache package.

Provides the two-tier translation cache: an in-memory LRU tier and a persistent SQLite tier
behind one CacheStore interface.
"""

from __future__ import annotations

from core.cache.interface import CacheStore, CacheStoreError
from core.cache.manager import TranslationCacheManager
from core.cache.memory_store import MemoryCacheStore
from core.cache.sqlite_store import SqliteCacheStore

__all__: list[str] = [
    "CacheStore",
    "CacheStoreError",
    "MemoryCacheStore",
    "SqliteCacheStore",
    "TranslationCacheManager",
]
