"""This module defines the abstract base class for AI translation providers.

Every provider translates a JSON array of strings in two forms: a single request returning the whole array,
and a streamed request that hands each incremental text fragment to a callback. The base class handles
chunking, transport error mapping, server-sent event framing and array decoding, so a provider only
describes its payloads.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from contextlib import aclosing
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

from core.trans.errors import ErrorCode, TranslationError, error_code_from_status
from handlers.async_comm import (
    AsyncCommError,
    AsyncCommInvalidContentTypeError,
    AsyncCommStatusError,
    AsyncCommTimeoutError,
)
from models.re_models import SSE_DATA_PATTERN
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import AsyncGenerator, AsyncIterator, Callable

    from handlers.async_comm import AsyncHttp

__all__: list[str] = [
    "ProviderAttributes",
    "ProviderInterface",
    "ProviderKind",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ProviderKind(StrEnum):
    GEMINI = "gemini"
    GROK = "grok"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass(frozen=True)
class ProviderAttributes:
    """Provider-specific routing data and limits.

    Attributes:
        name (str): Display name used in logs and error details.
        default_model (str): Model used when the caller does not name one.
        model_prefixes (tuple[str, ...]): Model-name prefixes routed to this provider.
        missing_key_code (ErrorCode): Error reported when the credential is empty.
        max_items_per_call (int): Maximum array length per request. 0 means unbounded.
    """

    name: str
    default_model: str
    model_prefixes: tuple[str, ...]
    missing_key_code: ErrorCode
    max_items_per_call: int = 0


class ProviderInterface(ABC):
    """Abstract base class for translation providers.

    Subclasses with a non-empty `fetch_engine_name()` register themselves on definition.
    Subclasses implement `_request_batch` and `_stream_request` for one request of at most
    `max_items_per_call` items; the public entry points split larger inputs and run the chunks in order.

    Attributes:
        registered (ClassVar[dict[str, type[ProviderInterface]]]): Registered provider classes keyed by name.
    """

    registered: ClassVar[dict[str, type[ProviderInterface]]] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if not hasattr(cls, "fetch_engine_name") or not callable(cls.fetch_engine_name):
            msg = "Subclasses of ProviderInterface must implement the static method fetch_engine_name()."
            raise TypeError(msg)

        if not isinstance(cls.fetch_engine_name(), str) or cls.fetch_engine_name() == "":
            return  # Shared intermediate bases have no name and are not registered.

        if cls.fetch_engine_name() in cls.registered:
            msg: str = f"A translation provider with the name '{cls.fetch_engine_name()}' is already registered."
            raise ValueError(msg)

        cls.registered[cls.fetch_engine_name()] = cls

    def __init__(self, http: AsyncHttp) -> None:
        self.http: AsyncHttp = http
        self._provider_attributes: ProviderAttributes | None = None

    @property
    def provider_attributes(self) -> ProviderAttributes:
        if self._provider_attributes is None:
            msg = "Provider attributes have not been set."
            raise RuntimeError(msg)
        return self._provider_attributes

    @provider_attributes.setter
    def provider_attributes(self, attributes: ProviderAttributes) -> None:
        if self._provider_attributes is not None:
            msg = "Provider attributes can only be set once during initialization."
            raise RuntimeError(msg)
        self._provider_attributes = attributes

    @property
    def provider_name(self) -> str:
        return self.provider_attributes.name

    @property
    def max_items_per_call(self) -> int:
        return self.provider_attributes.max_items_per_call

    def handles_model(self, model: str) -> bool:
        return model.startswith(self.provider_attributes.model_prefixes)

    @staticmethod
    @abstractmethod
    def fetch_engine_name() -> str:
        """Fetch the distinguished name of the provider.

        Called during class registration in __init_subclass__, so it must work on the class itself.

        Returns:
            str: A ProviderKind value, or an empty string for an unregistered base.
        """
        raise NotImplementedError

    @abstractmethod
    def initialize(self) -> None:
        """Set `provider_attributes`."""
        raise NotImplementedError

    @abstractmethod
    async def _request_batch(self, credential: str, model: str, system_prompt: str, user_prompt: str) -> list[str]:
        """Translate one chunk and return the decoded array.

        Raises:
            TranslationError: On any transport, status or payload failure.
        """
        raise NotImplementedError

    @abstractmethod
    def _stream_request(self, credential: str, model: str, system_prompt: str, user_prompt: str) -> AsyncIterator[str]:
        """Stream one chunk, yielding each non-empty text fragment.

        Raises:
            TranslationError: On any transport or status failure.
        """
        raise NotImplementedError

    def _chunks(self, serialized_input: str) -> list[str]:
        """Split the serialized input array into serialized chunks of at most `max_items_per_call` items."""
        limit: int = self.max_items_per_call
        if limit <= 0:
            return [serialized_input]
        try:
            items: Any = json.loads(serialized_input)
        except json.JSONDecodeError as err:
            raise TranslationError(ErrorCode.INVALID_REQUEST, "Input is not a JSON array") from err
        if not isinstance(items, list):
            raise TranslationError(ErrorCode.INVALID_REQUEST, "Input is not a JSON array")
        if len(items) <= limit:
            return [serialized_input]
        return [json.dumps(items[i : i + limit], ensure_ascii=False) for i in range(0, len(items), limit)]

    async def translate_batch(self, credential: str, model: str, system_prompt: str, serialized_input: str) -> list[str]:
        """Translate a serialized JSON array and return the translated array.

        Inputs larger than `max_items_per_call` are sent as sequential chunks. Each chunk response must
        have the length of its chunk.

        Raises:
            TranslationError: With the canonical code of the first failure.
        """
        chunks: list[str] = self._chunks(serialized_input)
        if len(chunks) == 1 and self.max_items_per_call <= 0:
            return await self._request_batch(credential, model, system_prompt, chunks[0])

        results: list[str] = []
        for number, chunk in enumerate(chunks, start=1):
            expected: int = len(json.loads(chunk))
            translated: list[str] = await self._request_batch(credential, model, system_prompt, chunk)
            if len(translated) != expected:
                msg: str = f"{self.provider_name} chunk {number}: sent {expected}, got {len(translated)}"
                raise TranslationError(ErrorCode.RESPONSE_MISMATCH, msg)
            results.extend(translated)
        logger.debug("'%s' translated %d items in %d call(s)", self.provider_name, len(results), len(chunks))
        return results

    async def translate_stream(
        self,
        credential: str,
        model: str,
        system_prompt: str,
        serialized_input: str,
        on_fragment: Callable[[str], None],
        on_chunk: Callable[[int, int], None] | None = None,
    ) -> None:
        """Stream the translation of a serialized JSON array into `on_fragment`.

        Chunks are streamed one after another into the same callback. Returns once the last stream ends.

        Args:
            on_chunk (Callable[[int, int], None] | None): For providers with `max_items_per_call`, called with
                the offset and item count of each chunk before its stream starts. An exception raised here
                stops the request before that chunk is sent.

        Raises:
            TranslationError: With the canonical code of the first failure.
        """
        offset: int = 0
        for chunk in self._chunks(serialized_input):
            if on_chunk is not None and self.max_items_per_call > 0:
                size: int = len(json.loads(chunk))
                on_chunk(offset, size)
                offset += size
            async with aclosing(self._stream_request(credential, model, system_prompt, chunk)) as fragments:
                async for fragment in fragments:
                    on_fragment(fragment)

    async def _post(self, url: str, payload: dict[str, Any], headers: dict[str, str] | None = None) -> Any:
        """POST a request and return the decoded response, mapping transport failures."""
        try:
            return await self.http.post_json(url, payload=payload, headers=headers)
        except AsyncCommError as err:
            raise self._map_transport_error(err) from err

    async def _sse_frames(
        self, url: str, payload: dict[str, Any], headers: dict[str, str] | None = None
    ) -> AsyncIterator[Any]:
        """Yield the decoded JSON of each server-sent event data line.

        The `[DONE]` sentinel ends the stream. Data lines that are not valid JSON are skipped.
        """
        lines: AsyncGenerator[str] = self.http.stream_lines(url, payload=payload, headers=headers)
        try:
            async for line in lines:
                match = SSE_DATA_PATTERN.match(line)
                if match is None:
                    continue
                data: str = match.group("payload").strip()
                if not data:
                    continue
                if data == "[DONE]":
                    return
                try:
                    frame: Any = json.loads(data)
                except json.JSONDecodeError:
                    logger.debug("Skipped undecodable stream frame: %s", StringUtils.preview(data, 80))
                    continue
                yield frame
        except AsyncCommError as err:
            raise self._map_transport_error(err) from err
        finally:
            await lines.aclose()

    def _map_transport_error(self, err: AsyncCommError) -> TranslationError:
        if isinstance(err, AsyncCommStatusError):
            code: ErrorCode = error_code_from_status(err.status)
            message: str = self._error_message(err.body) or f"HTTP {err.status}"
            if code in (ErrorCode.API_ERROR, ErrorCode.RATE_LIMITED) and "quota" in message.lower():
                code = ErrorCode.QUOTA_EXCEEDED
            logger.error("'%s' returned HTTP %s: %s", self.provider_name, err.status, message)
            return TranslationError(code, message)
        if isinstance(err, AsyncCommTimeoutError):
            return TranslationError(ErrorCode.TIMEOUT_ERROR, f"{self.provider_name}: {err.msg}")
        if isinstance(err, AsyncCommInvalidContentTypeError):
            return TranslationError(ErrorCode.INVALID_RESPONSE, f"{self.provider_name}: {err.msg}")
        return TranslationError(ErrorCode.NETWORK_ERROR, f"Failed to connect to {self.provider_name} API")

    @staticmethod
    def _error_message(body: str) -> str:
        """Return `error.message` from a provider error payload, or an empty string."""
        try:
            data: Any = json.loads(body)
        except (json.JSONDecodeError, TypeError):
            return ""
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            message: Any = data["error"].get("message")
            if isinstance(message, str):
                return message
        return ""

    def _decode_array(self, text: str, *, extract: bool = False) -> list[str]:
        """Decode provider output into a list of strings.

        Code fences are removed first. With `extract`, the first bracketed span is taken from surrounding
        prose. Non-string elements become empty strings.

        Raises:
            TranslationError: JSON_PARSE_ERROR if the text is not JSON, INVALID_RESPONSE if it is not an array.
        """
        cleaned: str = StringUtils.extract_json_array(text) if extract else StringUtils.strip_code_fences(text)
        try:
            parsed: Any = json.loads(cleaned)
        except json.JSONDecodeError as err:
            logger.error("'%s' parse error. Raw content: %s", self.provider_name, StringUtils.preview(text, 500))
            raise TranslationError(ErrorCode.JSON_PARSE_ERROR, "Invalid JSON response") from err
        if not isinstance(parsed, list):
            msg: str = f"Expected array, got {type(parsed).__name__}"
            raise TranslationError(ErrorCode.INVALID_RESPONSE, msg)
        return [item if isinstance(item, str) else "" for item in parsed]
