from __future__ import annotations

import pytest

from utils.string_utils import StringUtils


def test_make_cache_key_keeps_text_verbatim() -> None:
    assert StringUtils.make_cache_key("en", "ja", " Hello:World ") == "en:ja: Hello:World "


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('```json\n["a"]\n```', '["a"]'),
        ('```JSON ["a"] ```', '["a"]'),
        ('  ["a"]  ', '["a"]'),
    ],
)
def test_strip_code_fences(raw: str, expected: str) -> None:
    assert StringUtils.strip_code_fences(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('Here you go: ["Hola", "Mundo"] Enjoy', '["Hola", "Mundo"]'),
        ('```json\n[["nested"], "x"]\n```', '[["nested"], "x"]'),
        ("no array at all", "no array at all"),
    ],
)
def test_extract_json_array(raw: str, expected: str) -> None:
    assert StringUtils.extract_json_array(raw) == expected


def test_ensure_str_and_preview() -> None:
    assert StringUtils.ensure_str(None) == ""
    assert StringUtils.ensure_str(12) == "12"  # type: ignore[arg-type]
    assert StringUtils.preview("line1\nline2") == "line1\\nline2"
    assert StringUtils.preview("abcdef", limit=3) == "abc..."
