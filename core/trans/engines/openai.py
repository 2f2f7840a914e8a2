"""OpenAI translation provider.

OpenAI models tend to truncate long arrays, so requests are limited to 20 items and larger inputs are
sent as sequential chunks. Output is taken from the first bracketed span, since replies may wrap the array
in prose or code fences.
"""

from __future__ import annotations

from typing import Any, ClassVar, Final

from core.trans.engines.chat_completions import ChatCompletionsProvider
from core.trans.errors import ErrorCode
from core.trans.interface import ProviderAttributes, ProviderKind

__all__: list[str] = ["OpenAIProvider"]

OPENAI_MAX_ITEMS_PER_BATCH: Final[int] = 20


class OpenAIProvider(ChatCompletionsProvider):
    ENDPOINT: ClassVar[str] = "https://api.openai.com/v1/chat/completions"
    EXTRACT_ARRAY: ClassVar[bool] = True

    @staticmethod
    def fetch_engine_name() -> str:
        return ProviderKind.OPENAI

    def initialize(self) -> None:
        self.provider_attributes = ProviderAttributes(
            name="OpenAI",
            default_model="gpt-4o-mini",
            model_prefixes=("gpt", "o1", "o3", "o4"),
            missing_key_code=ErrorCode.OPENAI_API_KEY_MISSING,
            max_items_per_call=OPENAI_MAX_ITEMS_PER_BATCH,
        )

    def _options(self) -> dict[str, Any]:
        return {"reasoning_effort": "low"}
