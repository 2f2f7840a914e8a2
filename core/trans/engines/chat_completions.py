"""Shared implementation for providers speaking the chat completions protocol.

The request carries the system prompt and the serialized array as two messages; the response text is in
`choices[0].message.content`, and stream frames carry `choices[0].delta.content`.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import TYPE_CHECKING, Any, ClassVar

from core.trans.errors import ErrorCode, TranslationError
from core.trans.interface import ProviderInterface
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import AsyncIterator

__all__: list[str] = ["ChatCompletionsProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ChatCompletionsProvider(ProviderInterface):
    """Base for chat-completions providers. Not registered itself.

    Attributes:
        ENDPOINT (ClassVar[str]): Chat completions URL.
        EXTRACT_ARRAY (ClassVar[bool]): Take the first bracketed span from surrounding prose before decoding.
    """

    ENDPOINT: ClassVar[str] = ""
    EXTRACT_ARRAY: ClassVar[bool] = False

    @staticmethod
    def fetch_engine_name() -> str:
        return ""

    def _headers(self, credential: str) -> dict[str, str]:
        return {"Content-Type": "application/json", "Authorization": f"Bearer {credential}"}

    def _options(self) -> dict[str, Any]:
        """Provider-specific request fields added to every payload."""
        return {}

    def _payload(self, model: str, system_prompt: str, user_prompt: str, *, stream: bool) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            **self._options(),
        }
        if stream:
            payload["stream"] = True
        return payload

    async def _request_batch(self, credential: str, model: str, system_prompt: str, user_prompt: str) -> list[str]:
        data: Any = await self._post(
            self.ENDPOINT, self._payload(model, system_prompt, user_prompt, stream=False), self._headers(credential)
        )
        content: Any = None
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.debug("'%s' response structure: %s", self.provider_name, data)
        if not isinstance(content, str) or not content:
            msg: str = f"No content in {self.provider_name} response"
            raise TranslationError(ErrorCode.INVALID_RESPONSE, msg)
        return self._decode_array(content, extract=self.EXTRACT_ARRAY)

    async def _stream_request(
        self, credential: str, model: str, system_prompt: str, user_prompt: str
    ) -> AsyncIterator[str]:
        payload: dict[str, Any] = self._payload(model, system_prompt, user_prompt, stream=True)
        async with aclosing(self._sse_frames(self.ENDPOINT, payload, self._headers(credential))) as frames:
            async for frame in frames:
                try:
                    content: Any = frame["choices"][0]["delta"]["content"]
                except (KeyError, IndexError, TypeError):
                    continue
                if isinstance(content, str) and content:
                    yield content
