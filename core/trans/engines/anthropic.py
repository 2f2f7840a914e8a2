"""Anthropic translation provider (Messages API)."""

from __future__ import annotations

from contextlib import aclosing
from typing import TYPE_CHECKING, Any, Final

from core.trans.errors import ErrorCode, TranslationError
from core.trans.interface import ProviderAttributes, ProviderInterface, ProviderKind

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

__all__: list[str] = ["AnthropicProvider"]

ANTHROPIC_ENDPOINT: Final[str] = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION: Final[str] = "2023-06-01"
ANTHROPIC_MAX_TOKENS: Final[int] = 8192


class AnthropicProvider(ProviderInterface):
    @staticmethod
    def fetch_engine_name() -> str:
        return ProviderKind.ANTHROPIC

    def initialize(self) -> None:
        self.provider_attributes = ProviderAttributes(
            name="Anthropic",
            default_model="claude-3-5-haiku-latest",
            model_prefixes=("claude",),
            missing_key_code=ErrorCode.ANTHROPIC_API_KEY_MISSING,
        )

    @staticmethod
    def _headers(credential: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": credential,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    @staticmethod
    def _payload(model: str, system_prompt: str, user_prompt: str, *, stream: bool) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model,
            "max_tokens": ANTHROPIC_MAX_TOKENS,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if stream:
            payload["stream"] = True
        return payload

    async def _request_batch(self, credential: str, model: str, system_prompt: str, user_prompt: str) -> list[str]:
        data: Any = await self._post(
            ANTHROPIC_ENDPOINT, self._payload(model, system_prompt, user_prompt, stream=False), self._headers(credential)
        )
        blocks: Any = data.get("content") if isinstance(data, dict) else None
        texts: list[str] = []
        if isinstance(blocks, list):
            texts = [b["text"] for b in blocks if isinstance(b, dict) and b.get("type") == "text" and b.get("text")]
        if not texts:
            raise TranslationError(ErrorCode.INVALID_RESPONSE, "No content in Anthropic response")
        return self._decode_array("".join(texts))

    async def _stream_request(
        self, credential: str, model: str, system_prompt: str, user_prompt: str
    ) -> AsyncIterator[str]:
        payload: dict[str, Any] = self._payload(model, system_prompt, user_prompt, stream=True)
        async with aclosing(self._sse_frames(ANTHROPIC_ENDPOINT, payload, self._headers(credential))) as frames:
            async for frame in frames:
                if not isinstance(frame, dict):
                    continue
                match frame.get("type"):
                    case "message_stop":
                        return
                    case "error":
                        message: str = frame.get("error", {}).get("message", "") or "Stream error"
                        raise TranslationError(ErrorCode.API_ERROR, message)
                    case "content_block_delta":
                        text: Any = frame.get("delta", {}).get("text")
                        if isinstance(text, str) and text:
                            yield text
                    case _:
                        continue
