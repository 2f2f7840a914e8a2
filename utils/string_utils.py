from __future__ import annotations

from typing import Final

from models.re_models import CODE_FENCE_PATTERN, JSON_ARRAY_PATTERN

__all__: list[str] = ["StringUtils"]

PREVIEW_LENGTH_LIMIT: Final[int] = 200


class StringUtils:
    """Utility class for the string handling shared by the cache and the providers."""

    @staticmethod
    def ensure_str(value: str | None) -> str:
        """Return `value` as a string, or an empty string for None.

        Note: Does not strip. Whitespace is significant in translation input and cache keys.
        """
        if not isinstance(value, str):
            value = str(value) if value is not None else ""
        return value

    @staticmethod
    def make_cache_key(source: str, target: str, text: str) -> str:
        """Build the cache key `source:target:text`.

        The key is case-sensitive and the text is used as is, without any normalization.
        """
        return f"{source}:{target}:{text}"

    @staticmethod
    def strip_code_fences(value: str) -> str:
        """Remove markdown code fences (```json ... ```) and surrounding whitespace."""
        return CODE_FENCE_PATTERN.sub("", StringUtils.ensure_str(value)).strip()

    @staticmethod
    def extract_json_array(value: str) -> str:
        """Return the outermost `[...]` span of fence-stripped text, or the stripped text if there is none."""
        cleaned: str = StringUtils.strip_code_fences(value)
        match = JSON_ARRAY_PATTERN.search(cleaned)
        if match:
            return match.group(0)
        return cleaned

    @staticmethod
    def preview(value: str, limit: int = PREVIEW_LENGTH_LIMIT) -> str:
        """Single-line, length-limited rendering of `value` for log messages."""
        body: str = StringUtils.ensure_str(value).strip().replace("\n", "\\n")
        if len(body) > limit:
            return f"{body[:limit]}..."
        return body
