"""Models for translation requests, responses and streaming events.

The response and event classes serialize to the wire format consumed by the page-side callers:
camelCase keys, with unset optional fields left out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from dataclasses_json import DataClassJsonMixin, LetterCase, config, dataclass_json

from core.trans.errors import ErrorCode, TranslationError

__all__: list[str] = [
    "BatchRequest",
    "ProviderConfig",
    "StreamEvent",
    "StreamEventType",
    "TranslationResponse",
]


def _omit_none(value: Any) -> bool:
    return value is None


def _optional(default: Any = None) -> Any:
    return field(default=default, metadata=config(exclude=_omit_none))


@dataclass
class ProviderConfig:
    """Provider selection and credentials for one request.

    Attributes:
        model (str): Model identifier. Its prefix selects the provider; empty selects the default provider.
        credentials (dict[str, str]): API keys keyed by provider name ("gemini", "openai", ...).
    """

    model: str = ""
    credentials: dict[str, str] = field(default_factory=dict)

    def credential_for(self, provider_name: str) -> str:
        return self.credentials.get(provider_name, "")

    def __repr__(self) -> str:
        # Never render key material.
        masked: dict[str, str] = {name: "***" if key else "" for name, key in self.credentials.items()}
        return f"ProviderConfig(model={self.model!r}, credentials={masked!r})"


@dataclass
class BatchRequest:
    """A list of texts to translate between one language pair.

    Attributes:
        texts (list[str]): Source texts. Their order is preserved in every result.
        source (str): Source language code.
        target (str): Target language code.
        provider (ProviderConfig): Provider selection and credentials.
    """

    texts: list[str]
    source: str
    target: str
    provider: ProviderConfig = field(default_factory=ProviderConfig)

    @classmethod
    def from_message(cls, message: dict[str, Any], provider: ProviderConfig) -> BatchRequest:
        """Build a request from a caller message `{texts, source, target}`.

        Raises:
            TranslationError: INVALID_REQUEST if a field is missing or has the wrong type.
        """
        texts: Any = message.get("texts")
        source: Any = message.get("source")
        target: Any = message.get("target")

        if not isinstance(texts, list) or not all(isinstance(text, str) for text in texts):
            msg = "'texts' must be a list of strings"
            raise TranslationError(ErrorCode.INVALID_REQUEST, msg)
        if not isinstance(source, str) or not source:
            msg = "'source' must be a non-empty string"
            raise TranslationError(ErrorCode.INVALID_REQUEST, msg)
        if not isinstance(target, str) or not target:
            msg = "'target' must be a non-empty string"
            raise TranslationError(ErrorCode.INVALID_REQUEST, msg)

        return cls(texts=list(texts), source=source, target=target, provider=provider)


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class TranslationResponse(DataClassJsonMixin):
    """Result of a one-shot batch request.

    Attributes:
        success (bool): Whether every text was translated.
        translations (list[str] | None): Translations in request order, on success.
        error (str | None): User-facing error message, on failure.
        error_code (str | None): Canonical error code, on failure.
    """

    success: bool
    translations: list[str] | None = _optional()
    error: str | None = _optional()
    error_code: str | None = _optional()

    @classmethod
    def ok(cls, translations: list[str]) -> TranslationResponse:
        return cls(success=True, translations=translations)

    @classmethod
    def failed(cls, err: TranslationError) -> TranslationResponse:
        return cls(success=False, error=err.user_message, error_code=err.code.value)


class StreamEventType(StrEnum):
    CACHED = "cached"
    ELEMENT = "element"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class StreamEvent(DataClassJsonMixin):
    """One message of a streaming session.

    "cached" and "element" events carry the original request index and its translation.
    Exactly one terminal event ("complete" or "error") ends a session.
    """

    type: StreamEventType
    index: int | None = _optional()
    text: str | None = _optional()
    translations: list[str] | None = _optional()
    error: str | None = _optional()
    error_code: str | None = _optional()

    @classmethod
    def cached(cls, index: int, text: str) -> StreamEvent:
        return cls(type=StreamEventType.CACHED, index=index, text=text)

    @classmethod
    def element(cls, index: int, text: str) -> StreamEvent:
        return cls(type=StreamEventType.ELEMENT, index=index, text=text)

    @classmethod
    def complete(cls, translations: list[str]) -> StreamEvent:
        return cls(type=StreamEventType.COMPLETE, translations=translations)

    @classmethod
    def failed(cls, err: TranslationError) -> StreamEvent:
        return cls(type=StreamEventType.ERROR, error=err.user_message, error_code=err.code.value)

    @property
    def is_terminal(self) -> bool:
        return self.type in (StreamEventType.COMPLETE, StreamEventType.ERROR)

    def to_message(self) -> dict[str, Any]:
        """Wire representation: camelCase keys, unset fields omitted, enum rendered as its string value."""
        message: dict[str, Any] = self.to_dict()
        message["type"] = self.type.value
        return message
