"""Canonical translation error codes and the exception that carries them.

Every failure that reaches a caller is a TranslationError with one of the ErrorCode values below.
Provider-specific HTTP statuses are folded into these codes by error_code_from_status().
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

__all__: list[str] = [
    "ErrorCode",
    "TranslationError",
    "error_code_from_status",
    "user_friendly_message",
]


class ErrorCode(StrEnum):
    # Credentials
    GEMINI_API_KEY_MISSING = "GEMINI_API_KEY_MISSING"
    GROK_API_KEY_MISSING = "GROK_API_KEY_MISSING"
    OPENAI_API_KEY_MISSING = "OPENAI_API_KEY_MISSING"
    ANTHROPIC_API_KEY_MISSING = "ANTHROPIC_API_KEY_MISSING"

    # Transport
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"

    # Provider responses
    API_ERROR = "API_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_API_KEY = "INVALID_API_KEY"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"

    # Payload
    JSON_PARSE_ERROR = "JSON_PARSE_ERROR"
    RESPONSE_MISMATCH = "RESPONSE_MISMATCH"
    INVALID_RESPONSE = "INVALID_RESPONSE"

    # Caller
    INVALID_REQUEST = "INVALID_REQUEST"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


ERROR_MESSAGES: Final[dict[ErrorCode, str]] = {
    ErrorCode.GEMINI_API_KEY_MISSING: "Gemini API key is missing. Please add it in Settings.",
    ErrorCode.GROK_API_KEY_MISSING: "Grok API key is missing. Please add it in Settings.",
    ErrorCode.OPENAI_API_KEY_MISSING: "OpenAI API key is missing. Please add it in Settings.",
    ErrorCode.ANTHROPIC_API_KEY_MISSING: "Anthropic API key is missing. Please add it in Settings.",
    ErrorCode.NETWORK_ERROR: "Network error. Please check your connection.",
    ErrorCode.TIMEOUT_ERROR: "Request timed out. Please try again.",
    ErrorCode.API_ERROR: "API error occurred. Please try again.",
    ErrorCode.RATE_LIMITED: "Rate limited. Please wait a moment before trying again.",
    ErrorCode.INVALID_API_KEY: "Invalid API key. Please check your key in Settings.",
    ErrorCode.QUOTA_EXCEEDED: "API quota exceeded. Please check your usage limits.",
    ErrorCode.JSON_PARSE_ERROR: "Failed to parse AI response. Please try again.",
    ErrorCode.RESPONSE_MISMATCH: "Translation count mismatch. Some texts may not be translated.",
    ErrorCode.INVALID_RESPONSE: "Invalid response from AI. Please try again.",
    ErrorCode.INVALID_REQUEST: "Invalid translation request.",
    ErrorCode.UNKNOWN_ERROR: "An unexpected error occurred. Please try again.",
}


class TranslationError(Exception):
    """A translation failure tagged with its canonical error code.

    Attributes:
        code (ErrorCode): Canonical error kind. Preserved unchanged from the provider to the caller.
        user_message (str): Fixed, user-facing text for the code.
        details (str | None): Provider message or other diagnostic detail.
    """

    def __init__(self, code: ErrorCode, details: str | None = None) -> None:
        self.code: ErrorCode = code
        self.user_message: str = ERROR_MESSAGES[code]
        self.details: str | None = details
        message: str = f"{self.user_message} ({details})" if details else self.user_message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"TranslationError(code={self.code.value!r}, details={self.details!r})"


def error_code_from_status(status: int) -> ErrorCode:
    """Map an HTTP status code to a canonical error code."""
    match status:
        case 401 | 403:
            return ErrorCode.INVALID_API_KEY
        case 402:
            return ErrorCode.QUOTA_EXCEEDED
        case 429:
            return ErrorCode.RATE_LIMITED
        case 503 | 504:
            return ErrorCode.TIMEOUT_ERROR
        case _:
            return ErrorCode.API_ERROR


def user_friendly_message(err: BaseException) -> str:
    """Return user-facing text for any exception.

    TranslationError carries its own message. Other exceptions are classified by keywords in their text,
    falling back to the raw message, or the generic message when there is none.
    """
    if isinstance(err, TranslationError):
        return err.user_message

    msg: str = str(err).lower()
    if not msg:
        return ERROR_MESSAGES[ErrorCode.UNKNOWN_ERROR]
    if "api key" in msg or "apikey" in msg:
        return ERROR_MESSAGES[ErrorCode.INVALID_API_KEY]
    if "rate" in msg or "429" in msg:
        return ERROR_MESSAGES[ErrorCode.RATE_LIMITED]
    if "quota" in msg or "limit" in msg:
        return ERROR_MESSAGES[ErrorCode.QUOTA_EXCEEDED]
    if "network" in msg or "fetch" in msg:
        return ERROR_MESSAGES[ErrorCode.NETWORK_ERROR]
    if "timeout" in msg:
        return ERROR_MESSAGES[ErrorCode.TIMEOUT_ERROR]
    return str(err)
