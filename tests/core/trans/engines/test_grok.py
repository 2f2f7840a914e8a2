from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from core.trans.engines.chat_completions import ChatCompletionsProvider
from core.trans.engines.grok import GrokProvider
from core.trans.errors import ErrorCode, TranslationError
from handlers.async_comm import AsyncCommStatusError

if TYPE_CHECKING:
    from tests.core.trans.conftest import DummyHttp


@pytest.fixture
def provider(http: DummyHttp) -> GrokProvider:
    grok = GrokProvider(http)  # type: ignore[arg-type]
    grok.initialize()
    return grok


@pytest.mark.asyncio
async def test_large_input_is_sent_in_one_call(provider: GrokProvider, http: DummyHttp) -> None:
    translated: list[str] = [f"訳 {i}" for i in range(25)]
    http.replies.append({"choices": [{"message": {"content": json.dumps(translated, ensure_ascii=False)}}]})

    result: list[str] = await provider.translate_batch("xai-key", "grok-3-mini", "P", json.dumps(["x"] * 25))

    assert result == translated
    assert len(http.posts) == 1
    url, payload, headers = http.posts[0]
    assert url == "https://api.x.ai/v1/chat/completions"
    assert payload["temperature"] == 0.1
    assert headers is not None
    assert headers["Authorization"] == "Bearer xai-key"


@pytest.mark.asyncio
async def test_prose_output_is_not_extracted(provider: GrokProvider, http: DummyHttp) -> None:
    http.replies.append({"choices": [{"message": {"content": 'Sure: ["a"]'}}]})

    with pytest.raises(TranslationError) as exc_info:
        await provider.translate_batch("xai-key", "grok-3-mini", "P", '["a"]')

    assert exc_info.value.code is ErrorCode.JSON_PARSE_ERROR


@pytest.mark.asyncio
async def test_stream_skips_frames_without_content(provider: GrokProvider, http: DummyHttp) -> None:
    http.streams.append(
        [
            "data: " + json.dumps({"choices": [{"delta": {"role": "assistant"}}]}),
            "data: " + json.dumps({"choices": [{"delta": {"content": '["a"]'}}]}),
            "data: " + json.dumps({"choices": [{"delta": {}, "finish_reason": "stop"}]}),
            "data: [DONE]",
        ]
    )
    fragments: list[str] = []

    await provider.translate_stream("xai-key", "grok-3-mini", "P", '["a"]', fragments.append)

    assert fragments == ['["a"]']


@pytest.mark.asyncio
async def test_invalid_key_is_mapped(provider: GrokProvider, http: DummyHttp) -> None:
    http.replies.append(AsyncCommStatusError("x", status=403, body='{"error": {"message": "Incorrect API key"}}'))

    with pytest.raises(TranslationError) as exc_info:
        await provider.translate_batch("bad", "grok-3-mini", "P", '["a"]')

    assert exc_info.value.code is ErrorCode.INVALID_API_KEY
    assert exc_info.value.details == "Incorrect API key"


def test_chat_completions_base_is_abstract(http: DummyHttp) -> None:
    with pytest.raises(TypeError):
        ChatCompletionsProvider(http)  # type: ignore[abstract, arg-type]
