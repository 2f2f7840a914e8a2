from __future__ import annotations

import pytest

from core.trans.errors import ErrorCode, TranslationError, error_code_from_status, user_friendly_message


@pytest.mark.parametrize(
    ("status", "code"),
    [
        (401, ErrorCode.INVALID_API_KEY),
        (403, ErrorCode.INVALID_API_KEY),
        (402, ErrorCode.QUOTA_EXCEEDED),
        (429, ErrorCode.RATE_LIMITED),
        (503, ErrorCode.TIMEOUT_ERROR),
        (504, ErrorCode.TIMEOUT_ERROR),
        (400, ErrorCode.API_ERROR),
        (500, ErrorCode.API_ERROR),
    ],
)
def test_error_code_from_status(status: int, code: ErrorCode) -> None:
    assert error_code_from_status(status) is code


def test_translation_error_carries_code_and_details() -> None:
    err = TranslationError(ErrorCode.RATE_LIMITED, "Retry after 20s")

    assert err.code is ErrorCode.RATE_LIMITED
    assert err.user_message == "Rate limited. Please wait a moment before trying again."
    assert str(err) == "Rate limited. Please wait a moment before trying again. (Retry after 20s)"
    assert repr(err) == "TranslationError(code='RATE_LIMITED', details='Retry after 20s')"


def test_every_code_has_a_user_message() -> None:
    for code in ErrorCode:
        assert TranslationError(code).user_message


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("Invalid API key provided", "Invalid API key. Please check your key in Settings."),
        ("HTTP 429 received", "Rate limited. Please wait a moment before trying again."),
        ("monthly quota used up", "API quota exceeded. Please check your usage limits."),
        ("failed to fetch", "Network error. Please check your connection."),
        ("socket timeout", "Request timed out. Please try again."),
        ("something odd", "something odd"),
        ("", "An unexpected error occurred. Please try again."),
    ],
)
def test_user_friendly_message_classifies_plain_exceptions(message: str, expected: str) -> None:
    assert user_friendly_message(RuntimeError(message)) == expected


def test_user_friendly_message_prefers_translation_error_text() -> None:
    err = TranslationError(ErrorCode.QUOTA_EXCEEDED, "rate")

    assert user_friendly_message(err) == "API quota exceeded. Please check your usage limits."
