from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import AsyncIterator

    from models.translation_models import StreamEvent

__all__: list[str] = ["EventChannel"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class EventChannel(asyncio.Queue["StreamEvent"]):
    """Ordered channel of stream events from one streaming session to its caller.

    The producer sends without waiting. Once a terminal event has been sent, or the consumer has closed
    the channel, further sends are dropped. Events already queued remain readable.
    Iterating the channel yields events in send order and stops after the terminal event.
    """

    def __init__(self) -> None:
        super().__init__()
        self._closed: bool = False
        self._terminated: bool = False

    @property
    def closed(self) -> bool:
        """Whether the consumer has gone away."""
        return self._closed

    @property
    def accepting(self) -> bool:
        return not self._closed and not self._terminated

    def send(self, event: StreamEvent) -> bool:
        """Queue an event.

        Returns:
            bool: False if the event was dropped.
        """
        if not self.accepting:
            logger.debug("Dropped '%s' event on a finished channel", event.type)
            return False
        self.put_nowait(event)
        if event.is_terminal:
            self._terminated = True
        return True

    def close(self) -> None:
        """Mark the consumer as gone. Called when the caller disconnects."""
        if not self._closed:
            logger.debug("Event channel closed by the consumer")
        self._closed = True

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[StreamEvent]:
        while True:
            event: StreamEvent = await self.get()
            yield event
            if event.is_terminal:
                return
