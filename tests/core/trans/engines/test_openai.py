from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

from core.trans.engines.openai import OpenAIProvider
from core.trans.errors import ErrorCode, TranslationError

if TYPE_CHECKING:
    from tests.core.trans.conftest import DummyHttp


def _reply(content: str | None) -> dict[str, Any]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _frame(content: str) -> str:
    return "data: " + json.dumps({"choices": [{"delta": {"content": content}}]})


def _items(count: int) -> list[str]:
    return [f"text {i}" for i in range(count)]


@pytest.fixture
def provider(http: DummyHttp) -> OpenAIProvider:
    openai = OpenAIProvider(http)  # type: ignore[arg-type]
    openai.initialize()
    return openai


@pytest.mark.asyncio
async def test_single_call_payload(provider: OpenAIProvider, http: DummyHttp) -> None:
    http.replies.append(_reply('["こんにちは"]'))

    result: list[str] = await provider.translate_batch("sk-test", "gpt-4o-mini", "PROMPT", '["Hello"]')

    assert result == ["こんにちは"]
    url, payload, headers = http.posts[0]
    assert url == "https://api.openai.com/v1/chat/completions"
    assert headers is not None
    assert headers["Authorization"] == "Bearer sk-test"
    assert payload["model"] == "gpt-4o-mini"
    assert payload["reasoning_effort"] == "low"
    assert payload["messages"] == [
        {"role": "system", "content": "PROMPT"},
        {"role": "user", "content": '["Hello"]'},
    ]
    assert "stream" not in payload


@pytest.mark.asyncio
async def test_large_input_is_split_into_chunks_of_twenty(provider: OpenAIProvider, http: DummyHttp) -> None:
    items: list[str] = _items(25)
    http.replies.append(_reply(json.dumps([f"訳 {i}" for i in range(20)])))
    http.replies.append(_reply(json.dumps([f"訳 {i}" for i in range(20, 25)])))

    result: list[str] = await provider.translate_batch("sk", "gpt-4o-mini", "P", json.dumps(items))

    assert result == [f"訳 {i}" for i in range(25)]
    sent: list[list[str]] = [json.loads(payload["messages"][1]["content"]) for _, payload, _ in http.posts]
    assert sent == [items[:20], items[20:]]


@pytest.mark.asyncio
async def test_chunk_length_mismatch_is_reported(provider: OpenAIProvider, http: DummyHttp) -> None:
    http.replies.append(_reply(json.dumps(["x"] * 19)))

    with pytest.raises(TranslationError) as exc_info:
        await provider.translate_batch("sk", "gpt-4o-mini", "P", json.dumps(_items(25)))

    assert exc_info.value.code is ErrorCode.RESPONSE_MISMATCH
    assert exc_info.value.details == "OpenAI chunk 1: sent 20, got 19"
    assert len(http.posts) == 1


@pytest.mark.asyncio
async def test_array_is_extracted_from_prose(provider: OpenAIProvider, http: DummyHttp) -> None:
    http.replies.append(_reply('Here are the translations:\n```json\n["Hola", "Mundo"]\n```\nEnjoy!'))

    assert await provider.translate_batch("sk", "gpt-4o-mini", "P", '["Hello", "World"]') == ["Hola", "Mundo"]


@pytest.mark.asyncio
async def test_missing_content_is_invalid_response(provider: OpenAIProvider, http: DummyHttp) -> None:
    http.replies.append(_reply(None))

    with pytest.raises(TranslationError) as exc_info:
        await provider.translate_batch("sk", "gpt-4o-mini", "P", '["a"]')

    assert exc_info.value.code is ErrorCode.INVALID_RESPONSE
    assert exc_info.value.details == "No content in OpenAI response"


@pytest.mark.asyncio
async def test_non_array_input_is_invalid_request(provider: OpenAIProvider) -> None:
    with pytest.raises(TranslationError) as exc_info:
        await provider.translate_batch("sk", "gpt-4o-mini", "P", '{"text": "a"}')

    assert exc_info.value.code is ErrorCode.INVALID_REQUEST


@pytest.mark.asyncio
async def test_stream_runs_chunks_in_order(provider: OpenAIProvider, http: DummyHttp) -> None:
    http.streams.append([_frame('["a", '), _frame('"b"]'), "data: [DONE]", _frame("ignored")])
    http.streams.append([_frame('["c"]'), "data: [DONE]"])
    fragments: list[str] = []

    await provider.translate_stream("sk", "gpt-4o-mini", "P", json.dumps(_items(21)), fragments.append)

    assert fragments == ['["a", ', '"b"]', '["c"]']
    assert [payload["stream"] for _, payload, _ in http.stream_posts] == [True, True]
    assert [len(json.loads(payload["messages"][1]["content"])) for _, payload, _ in http.stream_posts] == [20, 1]
    assert http.closed_streams == 2


@pytest.mark.asyncio
async def test_stream_reports_chunk_offsets(provider: OpenAIProvider, http: DummyHttp) -> None:
    http.streams.append([_frame("[]"), "data: [DONE]"])
    http.streams.append([_frame("[]"), "data: [DONE]"])
    chunks: list[tuple[int, int]] = []

    def on_chunk(offset: int, size: int) -> None:
        chunks.append((offset, size))

    await provider.translate_stream("sk", "gpt-4o-mini", "P", json.dumps(_items(25)), lambda _: None, on_chunk)

    assert chunks == [(0, 20), (20, 5)]


@pytest.mark.asyncio
async def test_stream_chunk_hook_failure_stops_next_request(provider: OpenAIProvider, http: DummyHttp) -> None:
    http.streams.append([_frame("[]"), "data: [DONE]"])
    http.streams.append([_frame("[]"), "data: [DONE]"])

    def on_chunk(offset: int, size: int) -> None:
        _ = size
        if offset > 0:
            raise TranslationError(ErrorCode.RESPONSE_MISMATCH, "Chunk 1: sent 20, got 19")

    with pytest.raises(TranslationError) as exc_info:
        await provider.translate_stream("sk", "gpt-4o-mini", "P", json.dumps(_items(25)), lambda _: None, on_chunk)

    assert exc_info.value.code is ErrorCode.RESPONSE_MISMATCH
    assert len(http.stream_posts) == 1
    assert http.closed_streams == 1


def test_handles_openai_models(provider: OpenAIProvider) -> None:
    assert provider.max_items_per_call == 20
    for model in ("gpt-4o", "o1-mini", "o3", "o4-mini"):
        assert provider.handles_model(model)
    assert not provider.handles_model("grok-3")
