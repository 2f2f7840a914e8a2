from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from core.cache.manager import TranslationCacheManager
from core.cache.memory_store import MemoryCacheStore
from core.trans.errors import ErrorCode, TranslationError
from handlers.messages import MessageHandler
from models.config_models import Config
from models.translation_models import BatchRequest, ProviderConfig, StreamEvent
from utils.event_channel import EventChannel

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


class DummyOrchestrator:
    def __init__(self) -> None:
        self.result: list[str] | Exception = []
        self.requests: list[BatchRequest] = []

    async def translate(self, request: BatchRequest) -> list[str]:
        self.requests.append(request)
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    async def translate_streaming(self, request: BatchRequest, channel: EventChannel) -> None:
        self.requests.append(request)
        channel.send(StreamEvent.complete([text.upper() for text in request.texts]))


class DummyTransManager:
    def load_provider_config(self) -> ProviderConfig:
        return ProviderConfig(model="gpt-4o-mini", credentials={"openai": "sk"})


class BrokenCache:
    async def clear(self) -> None:
        msg = "database is locked"
        raise RuntimeError(msg)

    async def get_stats(self) -> None:
        msg = "database is locked"
        raise RuntimeError(msg)


@pytest.fixture
async def cache() -> AsyncGenerator[TranslationCacheManager]:
    manager = TranslationCacheManager(Config(), hot=MemoryCacheStore(), cold=MemoryCacheStore())
    await manager.component_load()
    yield manager
    await manager.component_teardown()


@pytest.fixture
def orchestrator() -> DummyOrchestrator:
    return DummyOrchestrator()


@pytest.fixture
def handler(orchestrator: DummyOrchestrator, cache: TranslationCacheManager) -> MessageHandler:
    return MessageHandler(orchestrator, cache, DummyTransManager())  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_translate_batch_success(handler: MessageHandler, orchestrator: DummyOrchestrator) -> None:
    orchestrator.result = ["こんにちは"]

    response: Any = await handler.handle_message(
        {"action": "translateBatch", "texts": ["Hello"], "source": "en", "target": "ja"}
    )

    assert response == {"success": True, "translations": ["こんにちは"]}
    assert orchestrator.requests[0].provider.model == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_translate_batch_reports_error_code(handler: MessageHandler, orchestrator: DummyOrchestrator) -> None:
    orchestrator.result = TranslationError(ErrorCode.OPENAI_API_KEY_MISSING)

    response: Any = await handler.handle_message(
        {"action": "translateBatch", "texts": ["Hello"], "source": "en", "target": "ja"}
    )

    assert response == {
        "success": False,
        "error": "OpenAI API key is missing. Please add it in Settings.",
        "errorCode": "OPENAI_API_KEY_MISSING",
    }


@pytest.mark.asyncio
async def test_translate_batch_unexpected_error_is_unknown(
    handler: MessageHandler, orchestrator: DummyOrchestrator
) -> None:
    orchestrator.result = RuntimeError("Connection timeout while reading")

    response: Any = await handler.handle_message(
        {"action": "translateBatch", "texts": ["Hello"], "source": "en", "target": "ja"}
    )

    assert response == {
        "success": False,
        "error": "Request timed out. Please try again.",
        "errorCode": "UNKNOWN_ERROR",
    }


@pytest.mark.asyncio
async def test_translate_batch_rejects_malformed_request(
    handler: MessageHandler, orchestrator: DummyOrchestrator
) -> None:
    response: Any = await handler.handle_message({"action": "translateBatch", "texts": "Hello", "source": "en"})

    assert response["success"] is False
    assert response["errorCode"] == "INVALID_REQUEST"
    assert orchestrator.requests == []


@pytest.mark.parametrize("message", [{"action": "translate"}, {}, ["translateBatch"], None])
@pytest.mark.asyncio
async def test_unknown_action_is_invalid_request(handler: MessageHandler, message: Any) -> None:
    response: Any = await handler.handle_message(message)

    assert response["success"] is False
    assert response["errorCode"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_cache_actions(handler: MessageHandler, cache: TranslationCacheManager) -> None:
    for i in range(3):
        await cache.set("en", "ja", f"t{i}", f"訳{i}")

    stats: Any = await handler.handle_message({"action": "getCacheStats"})
    assert stats == {"memoryCount": 3, "dbCount": 3, "totalCount": 3}

    page: Any = await handler.handle_message({"action": "getCacheEntries", "page": 1, "limit": 2})
    assert page["total"] == 3
    assert page["hasMore"] is False
    assert len(page["entries"]) == 1

    default_page: Any = await handler.handle_message({"action": "getCacheEntries", "page": -4, "limit": "x"})
    assert len(default_page["entries"]) == 3

    assert await handler.handle_message({"action": "clearCache"}) is True
    assert (await cache.get_stats()).db_count == 0


@pytest.mark.asyncio
async def test_cache_failures_fall_back(orchestrator: DummyOrchestrator) -> None:
    handler = MessageHandler(orchestrator, BrokenCache(), DummyTransManager())  # type: ignore[arg-type]

    assert await handler.handle_message({"action": "clearCache"}) is False
    assert await handler.handle_message({"action": "getCacheStats"}) == {
        "memoryCount": 0,
        "dbCount": 0,
        "totalCount": 0,
    }


@pytest.mark.asyncio
async def test_handle_streaming_forwards_valid_request(handler: MessageHandler) -> None:
    channel = EventChannel()

    await handler.handle_streaming({"texts": ["a", "b"], "source": "en", "target": "fr"}, channel)

    assert channel.get_nowait().to_message() == {"type": "complete", "translations": ["A", "B"]}


@pytest.mark.parametrize("message", [["a"], {"texts": ["a"], "source": "en"}])
@pytest.mark.asyncio
async def test_handle_streaming_rejects_invalid_request(
    handler: MessageHandler, orchestrator: DummyOrchestrator, message: Any
) -> None:
    channel = EventChannel()

    await handler.handle_streaming(message, channel)

    event: dict[str, Any] = channel.get_nowait().to_message()
    assert event["type"] == "error"
    assert event["errorCode"] == "INVALID_REQUEST"
    assert channel.empty()
    assert orchestrator.requests == []
