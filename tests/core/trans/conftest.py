from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class DummyHttp:
    """Stands in for AsyncHttp. Replies are consumed in order; an exception reply is raised."""

    def __init__(self) -> None:
        self.replies: list[Any] = []
        self.streams: list[list[str | Exception] | Exception] = []
        self.posts: list[tuple[str, Any, dict[str, str] | None]] = []
        self.stream_posts: list[tuple[str, Any, dict[str, str] | None]] = []
        self.closed_streams: int = 0

    async def post_json(self, url: str, *, payload: Any, headers: dict[str, str] | None = None) -> Any:
        self.posts.append((url, payload, headers))
        reply: Any = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def stream_lines(
        self, url: str, *, payload: Any, headers: dict[str, str] | None = None
    ) -> AsyncIterator[str]:
        self.stream_posts.append((url, payload, headers))
        script: list[str | Exception] | Exception = self.streams.pop(0)
        try:
            if isinstance(script, Exception):
                raise script
            for line in script:
                if isinstance(line, Exception):
                    raise line
                yield line
        finally:
            self.closed_streams += 1


@pytest.fixture
def http() -> DummyHttp:
    return DummyHttp()
