"""Data models for the translation relay.

This package contains dataclass definitions for configuration, cache entries, stream parsing state,
and regular expression patterns used throughout the application.
Request, response and event models live in models.translation_models.
"""

from __future__ import annotations

from models.cache_models import CacheEntry, CacheStats, PaginatedCacheEntries
from models.config_models import Config
from models.re_models import CODE_FENCE_PATTERN, JSON_ARRAY_PATTERN, SSE_DATA_PATTERN
from models.stream_models import OrchestratorState, ParserState, StreamingSession

__all__: list[str] = [
    "CODE_FENCE_PATTERN",
    "JSON_ARRAY_PATTERN",
    "SSE_DATA_PATTERN",
    "CacheEntry",
    "CacheStats",
    "Config",
    "OrchestratorState",
    "PaginatedCacheEntries",
    "ParserState",
    "StreamingSession",
]
