from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from handlers.async_comm import (
    AsyncCommError,
    AsyncCommInvalidContentTypeError,
    AsyncCommStatusError,
    AsyncCommTimeoutError,
    AsyncHttp,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


async def _echo(request: web.Request) -> web.Response:
    body: Any = await request.json()
    return web.json_response({"received": body, "auth": request.headers.get("Authorization", "")})


async def _rate_limited(_request: web.Request) -> web.Response:
    return web.json_response({"error": {"message": "Rate limit reached"}}, status=429)


async def _binary(_request: web.Request) -> web.Response:
    return web.Response(body=b"\x00\x01", content_type="application/octet-stream")


async def _slow(_request: web.Request) -> web.Response:
    await asyncio.sleep(2)
    return web.json_response({})


async def _events(request: web.Request) -> web.StreamResponse:
    resp = web.StreamResponse(headers={"Content-Type": "text/event-stream"})
    await resp.prepare(request)
    for chunk in (b"data: one\r\n", b"\r\n", b"data: t", b"wo\n", b"data: [DONE]\n"):
        await resp.write(chunk)
    await resp.write_eof()
    return resp


@pytest.fixture
async def server() -> AsyncGenerator[TestServer]:
    app = web.Application()
    app.router.add_post("/echo", _echo)
    app.router.add_post("/limited", _rate_limited)
    app.router.add_post("/binary", _binary)
    app.router.add_post("/slow", _slow)
    app.router.add_post("/events", _events)
    test_server = TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest.mark.asyncio
async def test_init_registers_default_handlers(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)

    http = AsyncHttp()

    assert set(http.content_handlers) == {"text/plain", "text/event-stream", "application/json"}
    assert any("AsyncHttp initializing" in rec.message for rec in caplog.records)


@pytest.mark.asyncio
async def test_reenter_after_close_logs_session_initialized(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)

    http = AsyncHttp()
    async with http:
        pass

    caplog.clear()
    async with http:
        assert http.session.closed is False

    assert any("AsyncHttp session initialized" in rec.message for rec in caplog.records)


@pytest.mark.asyncio
async def test_post_json_returns_decoded_body(server: TestServer) -> None:
    async with AsyncHttp() as http:
        result: Any = await http.post_json(
            str(server.make_url("/echo")), payload={"text": "こんにちは"}, headers={"Authorization": "Bearer k"}
        )

    assert result == {"received": {"text": "こんにちは"}, "auth": "Bearer k"}


@pytest.mark.asyncio
async def test_status_error_keeps_status_and_body(server: TestServer) -> None:
    async with AsyncHttp() as http:
        with pytest.raises(AsyncCommStatusError) as exc_info:
            await http.post_json(str(server.make_url("/limited")), payload={})

    assert exc_info.value.status == 429
    assert "Rate limit reached" in exc_info.value.body


@pytest.mark.asyncio
async def test_unknown_content_type_is_rejected(server: TestServer) -> None:
    async with AsyncHttp() as http:
        with pytest.raises(AsyncCommInvalidContentTypeError):
            await http.post_json(str(server.make_url("/binary")), payload={})


@pytest.mark.asyncio
async def test_timeout_is_reported(server: TestServer) -> None:
    async with AsyncHttp(total_timeout=0.2) as http:
        with pytest.raises(AsyncCommTimeoutError):
            await http.post_json(str(server.make_url("/slow")), payload={})


@pytest.mark.asyncio
async def test_unreachable_server_is_reported() -> None:
    async with AsyncHttp(total_timeout=5) as http:
        with pytest.raises(AsyncCommError) as exc_info:
            await http.post_json("http://127.0.0.1:1/unreachable", payload={})

    assert not isinstance(exc_info.value, AsyncCommStatusError)


@pytest.mark.asyncio
async def test_stream_lines_yields_lines_without_terminators(server: TestServer) -> None:
    async with AsyncHttp() as http:
        lines: list[str] = [line async for line in http.stream_lines(str(server.make_url("/events")), payload={})]

    assert lines == ["data: one", "", "data: two", "data: [DONE]"]


@pytest.mark.asyncio
async def test_stream_lines_raises_status_error_before_yielding(server: TestServer) -> None:
    async with AsyncHttp() as http:
        with pytest.raises(AsyncCommStatusError):
            async for _ in http.stream_lines(str(server.make_url("/limited")), payload={}):
                pass
