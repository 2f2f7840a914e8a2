"""HTTP and WebSocket front end of the translation relay.

Routes:
    POST /message  One-shot request. The JSON body is a caller message with an `action` field.
    GET  /stream   WebSocket. The client sends one `{texts, source, target}` request and receives
                   each stream event as a JSON text frame; the server closes after the terminal event.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

from aiohttp import WSMsgType, web

from core.trans.errors import ErrorCode, TranslationError
from models.translation_models import StreamEvent, TranslationResponse
from utils.event_channel import EventChannel
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from core.shared_data import SharedData

__all__: list[str] = ["TranslationServer"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SHARED_DATA_KEY: web.AppKey[SharedData] = web.AppKey("shared_data")


class TranslationServer:
    """aiohttp application wrapping the message handler.

    Startup loads the cache and the providers; cleanup closes them.

    Args:
        shared_data (SharedData): Service container built by the caller.
    """

    def __init__(self, shared_data: SharedData) -> None:
        self.shared_data: SharedData = shared_data

    def create_app(self) -> web.Application:
        app = web.Application()
        app[SHARED_DATA_KEY] = self.shared_data
        app.router.add_post("/message", self.handle_message)
        app.router.add_get("/stream", self.handle_stream)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _on_startup(self, app: web.Application) -> None:
        await app[SHARED_DATA_KEY].component_load()
        logger.info("Translation server started")

    async def _on_cleanup(self, app: web.Application) -> None:
        await app[SHARED_DATA_KEY].component_teardown()
        logger.info("Translation server stopped")

    async def handle_message(self, request: web.Request) -> web.Response:
        try:
            message: Any = await request.json()
        except json.JSONDecodeError:
            err = TranslationError(ErrorCode.INVALID_REQUEST, "Body is not valid JSON")
            return web.json_response(TranslationResponse.failed(err).to_dict(), status=400)
        response: dict[str, Any] | bool = await self.shared_data.message_handler.handle_message(message)
        return web.json_response(response)

    async def handle_stream(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        msg = await ws.receive()
        if msg.type != WSMsgType.TEXT:
            logger.debug("Stream closed before a request was received: %s", msg.type)
            await ws.close()
            return ws

        channel = EventChannel()
        try:
            message: Any = json.loads(msg.data)
        except json.JSONDecodeError:
            channel.send(StreamEvent.failed(TranslationError(ErrorCode.INVALID_REQUEST, "Request is not valid JSON")))
            producer: asyncio.Task[None] | None = None
        else:
            producer = asyncio.create_task(self.shared_data.message_handler.handle_streaming(message, channel))
            producer.add_done_callback(self._ensure_terminal(channel))

        watcher: asyncio.Task[None] = asyncio.create_task(self._watch_disconnect(ws, channel))
        try:
            async for event in channel:
                if ws.closed:
                    break
                await ws.send_json(event.to_message())
        except ConnectionResetError:
            logger.info("Stream client disconnected")
        finally:
            channel.close()
            watcher.cancel()
            await asyncio.gather(watcher, return_exceptions=True)
            if producer is not None:
                await asyncio.gather(producer, return_exceptions=True)
            if not ws.closed:
                await ws.close()
        return ws

    @staticmethod
    async def _watch_disconnect(ws: web.WebSocketResponse, channel: EventChannel) -> None:
        """Close the channel when the client goes away, and wake the sender with a terminal event."""
        async for _ in ws:
            pass
        if channel.accepting:
            channel.close()
            channel.put_nowait(StreamEvent.failed(TranslationError(ErrorCode.NETWORK_ERROR, "Client disconnected")))

    @staticmethod
    def _ensure_terminal(channel: EventChannel) -> Callable[[asyncio.Task[None]], None]:
        """Build a done callback that ends the session with an error if the producer stopped without one."""

        def _done(task: asyncio.Task[None]) -> None:
            if not task.cancelled() and task.exception() is not None:
                logger.error("Streaming session failed: %r", task.exception())
            if channel.accepting:
                err = TranslationError(ErrorCode.UNKNOWN_ERROR, "Streaming session ended without a result")
                channel.send(StreamEvent.failed(err))

        return _done
