"""Asynchronous HTTP communication for the AI provider gateway.

This module provides the `AsyncHttp` client used by every provider. It sends JSON POST requests and either
decodes the whole response body or yields the body line by line for server-sent event streams.
Transport failures are reported through the `AsyncCommError` hierarchy so that callers can map them to
their own error kinds: no response (`AsyncCommError`), timeout (`AsyncCommTimeoutError`) and non-success
status (`AsyncCommStatusError`, which keeps the status code and the raw body).
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Final, Self

import aiohttp
from aiohttp.client import ClientSession

from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import AsyncIterator, Callable

    from aiohttp.client import ClientResponse


__all__: list[str] = [
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommStatusError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

CONNECT_TIMEOUT: Final[float] = 10.0
DEFAULT_TOTAL_TIMEOUT: Final[float] = 300.0


class AsyncHttp:
    """Asynchronous HTTP client shared by the provider gateway.

    One aiohttp session is created lazily and reused by all requests until `close()` is called.
    Content type handlers decode non-streamed bodies; unknown content types are rejected.
    """

    def __init__(self, *, total_timeout: float = DEFAULT_TOTAL_TIMEOUT) -> None:
        """Initialize the AsyncHttp client.

        Args:
            total_timeout (float): Total timeout per request in seconds. 0 or less disables it.

        The default handlers include:
            - "text/plain": Decodes bytes to a UTF-8 string.
            - "text/event-stream": Decodes bytes to a UTF-8 string.
            - "application/json": Parses bytes as JSON.
        """
        logger.info("%s initializing", self.__class__.__name__)
        self.__session: ClientSession | None = None
        self.total_timeout: float = total_timeout
        self.content_handlers: dict[str, Callable[[bytes], Any]] = {}

        self.add_handler("text/plain", lambda x: x.decode("utf-8"))
        self.add_handler("text/event-stream", lambda x: x.decode("utf-8"))
        self.add_handler("application/json", lambda x: json.loads(x.decode("utf-8")))

    async def __aenter__(self) -> Self:
        logger.debug("%s entering context", self.__class__.__name__)
        self.initialize_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        logger.debug("%s exiting context", self.__class__.__name__)
        await self.close()

    def initialize_session(self) -> None:
        """Create the aiohttp session if there is none or the previous one was closed."""
        if self.__session is None or self.__session.closed:
            # Status handling is done per request so that error bodies can be read.
            self.__session = ClientSession(raise_for_status=False)
            logger.debug("%s session initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        self.initialize_session()
        assert self.__session is not None  # noqa: S101
        return self.__session

    async def close(self) -> None:
        """Close the aiohttp session if it is open."""
        if self.__session and not self.__session.closed:
            await self.__session.close()
        logger.info("%s session closed", self.__class__.__name__)

    def add_handler(self, content_type: str, handler: Callable[[bytes], Any]) -> None:
        """Register a decoder for a response content type, replacing any existing one."""
        if self.content_handlers.get(content_type):
            logger.warning("Handler for content type '%s' already exists, replacing it", content_type)
        self.content_handlers[content_type] = handler
        logger.debug("Added handler for content type '%s'", content_type)

    def _timeout(self) -> aiohttp.ClientTimeout:
        if self.total_timeout <= 0:
            return aiohttp.ClientTimeout(total=None, connect=CONNECT_TIMEOUT)
        if self.total_timeout < CONNECT_TIMEOUT:
            return aiohttp.ClientTimeout(total=self.total_timeout)
        return aiohttp.ClientTimeout(total=self.total_timeout, connect=CONNECT_TIMEOUT)

    async def post_json(self, url: str, *, payload: Any, headers: dict[str, str] | None = None) -> Any:
        """POST a JSON payload and return the decoded response body.

        Args:
            url (str): Request URL.
            payload (Any): JSON-serializable request body.
            headers (dict[str, str] | None): Extra request headers.

        Returns:
            Any: Parsed JSON, decoded text, or None for an empty body.

        Raises:
            AsyncCommStatusError: If the server answers with a non-success status.
            AsyncCommTimeoutError: If the request times out.
            AsyncCommError: If no response is received.
        """
        async with self._open("POST", url, json=payload, headers=headers) as resp:
            return await self.decode_response(resp)

    async def stream_lines(
        self, url: str, *, payload: Any, headers: dict[str, str] | None = None
    ) -> AsyncIterator[str]:
        """POST a JSON payload and yield the response body line by line, without line terminators.

        Raises:
            AsyncCommStatusError: If the server answers with a non-success status.
            AsyncCommTimeoutError: If the request or a read times out.
            AsyncCommError: If no response is received or the connection drops mid-stream.
        """
        async with self._open("POST", url, json=payload, headers=headers) as resp:
            try:
                async for raw_line in resp.content:
                    yield raw_line.decode("utf-8", errors="replace").rstrip("\r\n")
            except TimeoutError as err:
                msg = "Timed out while reading the response stream."
                raise AsyncCommTimeoutError(msg) from err
            except (aiohttp.ClientPayloadError, aiohttp.ClientConnectionError) as err:
                logger.debug(err)
                msg = "The connection was lost while reading the response stream."
                raise AsyncCommError(msg) from err

    async def decode_response(self, resp: ClientResponse) -> Any:
        """Decode a response body according to its Content-Type.

        Raises:
            AsyncCommInvalidContentTypeError: If no handler is registered for the content type.
        """
        content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip()
        logger.debug("'Content-Type': '%s'", content_type)

        raw: bytes = await resp.read()
        if not raw:
            logger.debug("Received empty response")
            return None

        handler: Callable[[bytes], Any] | None = self.content_handlers.get(content_type)
        if handler:
            return handler(raw)

        msg: str = f"Unknown Content-Type '{content_type}'"
        raise AsyncCommInvalidContentTypeError(msg)

    @asynccontextmanager
    async def _open(self, method: str, url: str, **kwargs: Any) -> AsyncIterator[ClientResponse]:
        """Open a request and yield the response after checking its status.

        Errors raised while the caller consumes the body inside the context are passed through unchanged.
        """
        logger.debug("[%s] url=%s timeout=%s", method, url.split("?")[0], self.total_timeout)
        try:
            resp_cm = self.session.request(method=method, url=url, timeout=self._timeout(), **kwargs)
            resp: ClientResponse = await resp_cm.__aenter__()
        except TimeoutError as err:
            logger.debug(err)
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except ConnectionResetError as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientConnectorError as err:
            logger.debug(err)
            msg = "The server is not reachable."
            raise AsyncCommError(msg) from err
        except aiohttp.ClientError as err:
            logger.debug(err)
            msg = "The request could not be completed."
            raise AsyncCommError(msg) from err

        try:
            if resp.status >= 300:
                body: str = await resp.text(errors="replace")
                logger.debug("HTTP %s from %s: %s", resp.status, url.split("?")[0], StringUtils.preview(body))
                msg = "Error response from the server."
                raise AsyncCommStatusError(msg, status=resp.status, body=body)
            yield resp
        finally:
            await resp_cm.__aexit__(None, None, None)


class AsyncCommError(Exception):
    """Base class for asynchronous communication errors.

    Raised when a request cannot be completed: connection refused, connection reset, or any other
    failure in which no usable response was received.
    """

    def __init__(self, msg: str | BaseException) -> None:
        self.msg: str = str(msg)
        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """A request or a stream read did not complete within the timeout."""


class AsyncCommStatusError(AsyncCommError):
    """The server answered with a non-success status.

    Attributes:
        status (int): HTTP status code.
        body (str): Raw response body, usually carrying the provider's error payload.
    """

    def __init__(self, msg: str, *, status: int, body: str = "") -> None:
        super().__init__(f"{msg}: status='{status}'")
        self.status: int = status
        self.body: str = body


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """The response content type is not recognized or no handler is registered for it."""
