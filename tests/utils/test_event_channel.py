from __future__ import annotations

import asyncio

import pytest

from core.trans.errors import ErrorCode, TranslationError
from models.translation_models import StreamEvent
from utils.event_channel import EventChannel


@pytest.mark.asyncio
async def test_iteration_stops_after_terminal_event() -> None:
    channel = EventChannel()
    channel.send(StreamEvent.cached(0, "a"))
    channel.send(StreamEvent.element(1, "b"))
    channel.send(StreamEvent.complete(["a", "b"]))

    received: list[StreamEvent] = [event async for event in channel]

    assert [event.type for event in received] == ["cached", "element", "complete"]


@pytest.mark.asyncio
async def test_sends_after_terminal_event_are_dropped() -> None:
    channel = EventChannel()

    assert channel.send(StreamEvent.failed(TranslationError(ErrorCode.TIMEOUT_ERROR))) is True
    assert channel.send(StreamEvent.complete([])) is False
    assert channel.accepting is False
    assert channel.qsize() == 1


@pytest.mark.asyncio
async def test_close_drops_new_events_but_keeps_queued_ones() -> None:
    channel = EventChannel()
    channel.send(StreamEvent.element(0, "a"))

    channel.close()

    assert channel.closed is True
    assert channel.send(StreamEvent.element(1, "b")) is False
    assert channel.get_nowait().text == "a"
    assert channel.empty()


@pytest.mark.asyncio
async def test_consumer_receives_events_sent_later() -> None:
    channel = EventChannel()

    async def produce() -> None:
        await asyncio.sleep(0)
        channel.send(StreamEvent.element(0, "a"))
        await asyncio.sleep(0)
        channel.send(StreamEvent.complete(["a"]))

    producer: asyncio.Task[None] = asyncio.create_task(produce())
    received: list[StreamEvent] = [event async for event in channel]
    await producer

    assert [event.to_message()["type"] for event in received] == ["element", "complete"]
