"""Regular expressions for cleaning AI provider output.

Patterns for markdown code fences and for locating a JSON array inside surrounding text.
"""

from __future__ import annotations

import re
from re import Pattern
from typing import Final

__all__: list[str] = [
    "CODE_FENCE_PATTERN",
    "JSON_ARRAY_PATTERN",
    "SSE_DATA_PATTERN",
]

# Opening or closing markdown fence, with an optional language tag on the opening one
# Example: "```json\n[...]\n```"
CODE_FENCE_PATTERN: Final[Pattern[str]] = re.compile(r"```(?:json)?\s*", re.IGNORECASE)

# Outermost bracketed span (greedy, spans newlines)
# Example: 'Here you go: ["Hola", "Mundo"] Enjoy' -> '["Hola", "Mundo"]'
JSON_ARRAY_PATTERN: Final[Pattern[str]] = re.compile(r"\[[\s\S]*\]")

# Server-sent event data line
# Example: 'data: {"choices": [...]}' -> '{"choices": [...]}'
SSE_DATA_PATTERN: Final[Pattern[str]] = re.compile(r"^data:\s?(?P<payload>.*)$")
