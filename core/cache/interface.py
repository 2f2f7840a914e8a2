"""This module defines the abstract base class shared by both translation cache tiers.

The hybrid cache is a composition of two CacheStore implementations: the in-memory LRU tier and the
SQLite tier. Both accept the same operations, so either can stand in for the other in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.cache_models import CacheEntry

__all__: list[str] = ["CacheStore", "CacheStoreError"]


class CacheStoreError(Exception):
    """A cache tier could not complete an operation."""


class CacheStore(ABC):
    """Abstract base class for a translation cache tier.

    Keys are `source:target:text` strings. A tier holds at most one entry per key; `put` overwrites.
    """

    @abstractmethod
    async def open(self) -> None:
        """Prepare the tier for use.

        Raises:
            CacheStoreError: If the tier cannot be opened.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release resources held by the tier."""

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Return the entry for `key`, or None."""

    @abstractmethod
    async def put(self, entry: CacheEntry) -> None:
        """Insert or overwrite the entry for `entry.key`."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove the entry for `key` if present."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""

    @abstractmethod
    async def count(self) -> int:
        """Return the number of entries held."""

    @abstractmethod
    async def entries(self, offset: int, limit: int) -> list[CacheEntry]:
        """Return up to `limit` entries starting at `offset`, newest `created_at` first."""

    @abstractmethod
    async def delete_older_than(self, cutoff_ms: int) -> int:
        """Remove entries created before `cutoff_ms` (epoch milliseconds) and return how many were removed."""
