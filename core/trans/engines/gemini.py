"""Gemini translation provider.

Gemini is the default provider: models without a recognized prefix are sent here. The system prompt and
the input array travel in one user turn, and JSON output is requested through the generation config.
The API key is passed as a query parameter.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import TYPE_CHECKING, Any, Final

from core.trans.errors import ErrorCode, TranslationError
from core.trans.interface import ProviderAttributes, ProviderInterface, ProviderKind
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import AsyncIterator

__all__: list[str] = ["GeminiProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

GEMINI_BASE_URL: Final[str] = "https://generativelanguage.googleapis.com/v1beta"
GEMINI_DEFAULT_MODEL: Final[str] = "models/gemini-2.5-flash"


class GeminiProvider(ProviderInterface):
    @staticmethod
    def fetch_engine_name() -> str:
        return ProviderKind.GEMINI

    def initialize(self) -> None:
        self.provider_attributes = ProviderAttributes(
            name="Gemini",
            default_model=GEMINI_DEFAULT_MODEL,
            model_prefixes=("models/gemini", "gemini"),
            missing_key_code=ErrorCode.GEMINI_API_KEY_MISSING,
        )

    @staticmethod
    def _model_path(model: str) -> str:
        return model if model.startswith("models/") else f"models/{model}"

    @staticmethod
    def _payload(system_prompt: str, user_prompt: str) -> dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [{"text": f"{system_prompt}\n\nInput:\n{user_prompt}"}],
                }
            ],
            "generationConfig": {"responseMimeType": "application/json"},
        }

    @staticmethod
    def _candidate_text(data: Any) -> str | None:
        """Join the text parts of the first candidate. None if there are none."""
        try:
            parts: Any = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            return None
        if not isinstance(parts, list):
            return None
        texts: list[str] = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
        return "".join(texts) if texts else None

    async def _request_batch(self, credential: str, model: str, system_prompt: str, user_prompt: str) -> list[str]:
        url: str = f"{GEMINI_BASE_URL}/{self._model_path(model)}:generateContent?key={credential}"
        data: Any = await self._post(url, self._payload(system_prompt, user_prompt), {"Content-Type": "application/json"})

        raw_text: str | None = self._candidate_text(data)
        if raw_text is None:
            finish_reason: Any = None
            try:
                finish_reason = data["candidates"][0].get("finishReason")
            except (KeyError, IndexError, TypeError, AttributeError):
                pass
            if finish_reason and finish_reason != "STOP":
                raise TranslationError(ErrorCode.API_ERROR, f"Response blocked: {finish_reason}")
            raise TranslationError(ErrorCode.INVALID_RESPONSE, "No translation text in response")
        return self._decode_array(raw_text)

    async def _stream_request(
        self, credential: str, model: str, system_prompt: str, user_prompt: str
    ) -> AsyncIterator[str]:
        url: str = f"{GEMINI_BASE_URL}/{self._model_path(model)}:streamGenerateContent?alt=sse&key={credential}"
        payload: dict[str, Any] = self._payload(system_prompt, user_prompt)
        async with aclosing(self._sse_frames(url, payload, {"Content-Type": "application/json"})) as frames:
            async for frame in frames:
                text: str | None = self._candidate_text(frame)
                if text:
                    yield text
