"""Models for translation cache data.

Defines the cache entry record shared by both cache tiers, the statistics view and the paginated listing
returned to the cache administration surface. All three serialize with camelCase keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "CacheEntry",
    "CacheStats",
    "PaginatedCacheEntries",
]


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CacheEntry(DataClassJsonMixin):
    """Translation cache entry.

    Attributes:
        key (str): `source:target:original_text`. Unique per live entry.
        source (str): Source language code.
        target (str): Target language code.
        original_text (str): Text as submitted for translation.
        translation (str): Translated text.
        created_at (int): Creation time in epoch milliseconds. Drives expiry and newest-first listing.
    """

    key: str
    source: str
    target: str
    original_text: str
    translation: str
    created_at: int


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CacheStats(DataClassJsonMixin):
    """Cache usage statistics.

    Attributes:
        memory_count (int): Entries held by the in-memory tier.
        db_count (int): Entries held by the persistent tier.
        total_count (int): Total entries. Taken from the persistent tier, which is the superset.
    """

    memory_count: int = 0
    db_count: int = 0
    total_count: int = 0


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class PaginatedCacheEntries(DataClassJsonMixin):
    """One page of persistent cache entries, newest first.

    Attributes:
        entries (list[CacheEntry]): Entries on this page.
        has_more (bool): Whether a following page exists.
        total (int): Total number of persistent entries.
    """

    entries: list[CacheEntry] = field(default_factory=list)
    has_more: bool = False
    total: int = 0
