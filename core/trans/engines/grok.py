"""Grok (xAI) translation provider."""

from __future__ import annotations

from typing import Any, ClassVar

from core.trans.engines.chat_completions import ChatCompletionsProvider
from core.trans.errors import ErrorCode
from core.trans.interface import ProviderAttributes, ProviderKind

__all__: list[str] = ["GrokProvider"]


class GrokProvider(ChatCompletionsProvider):
    ENDPOINT: ClassVar[str] = "https://api.x.ai/v1/chat/completions"

    @staticmethod
    def fetch_engine_name() -> str:
        return ProviderKind.GROK

    def initialize(self) -> None:
        self.provider_attributes = ProviderAttributes(
            name="Grok",
            default_model="grok-3-mini",
            model_prefixes=("grok",),
            missing_key_code=ErrorCode.GROK_API_KEY_MISSING,
        )

    def _options(self) -> dict[str, Any]:
        return {"temperature": 0.1}
