"""Request handling utilities for the translation relay.

This package provides asynchronous HTTP communication with the providers, incremental parsing
of streamed provider output, and message-level routing of caller requests.
"""

from handlers.array_stream_parser import ArrayStreamParser
from handlers.async_comm import (
    AsyncCommError,
    AsyncCommInvalidContentTypeError,
    AsyncCommStatusError,
    AsyncCommTimeoutError,
    AsyncHttp,
)

__all__: list[str] = [
    "ArrayStreamParser",
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommStatusError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
]
