"""Incremental parser for a streamed JSON array of strings.

Provider output arrives as arbitrary text fragments. ArrayStreamParser consumes them character by character
and reports each array element as soon as its delimiter is seen, so translations can be delivered before the
closing bracket arrives. The result is the same regardless of how the input is split into fragments.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Final

from models.stream_models import ParserState
from utils.logger_utils import LoggerUtils
from utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

__all__: list[str] = ["ArrayStreamParser"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

NO_ELEMENTS_MESSAGE: Final[str] = "Stream ended with no elements parsed"

_OPENERS: Final[str] = "[{"
_CLOSERS: Final[str] = "]}"


class ArrayStreamParser:
    """State machine that extracts elements from a partially received JSON array.

    Text before the opening bracket is ignored. Nested arrays and objects are passed through as opaque
    element content. Every flushed element is decoded as JSON: strings are emitted as is, any other value
    is emitted as an empty string, and undecodable text is skipped.

    After the top-level array closes, the parser waits for another opening bracket, so the output of
    several sequential requests can be fed to one instance and share one index sequence.

    Args:
        on_element (Callable[[str, int], None]): Called with each element and its index, counted from 0.
        on_complete (Callable[[list[str]], None] | None): Called with all elements when a top-level array closes.
        on_error (Callable[[str], None] | None): Called with a message when parsing fails.
    """

    def __init__(
        self,
        on_element: Callable[[str, int], None],
        on_complete: Callable[[list[str]], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> None:
        self._on_element: Callable[[str, int], None] = on_element
        self._on_complete: Callable[[list[str]], None] | None = on_complete
        self._on_error: Callable[[str], None] | None = on_error
        self._state: ParserState = ParserState()
        self._ended: bool = False

    def feed(self, fragment: str) -> None:
        """Process the next fragment of provider output.

        An exception raised by a callback stops processing of this fragment and is reported through `on_error`.
        """
        if self._ended:
            logger.warning("Fragment fed after end() was ignored: %s", StringUtils.preview(fragment, 40))
            return
        self._state.buffer += fragment
        try:
            for char in fragment:
                self._process_char(char)
        except Exception as err:  # noqa: BLE001
            logger.error("Element callback failed: %s", err)
            self._report_error(f"Element handler failed: {err}")

    def end(self) -> None:
        """Signal the end of input.

        Flushes a pending element if the array was left open outside a string. Reports an error if no
        element was ever emitted. Never calls `on_complete`.
        """
        if self._ended:
            return
        self._ended = True
        state: ParserState = self._state
        if state.started and not state.in_string and state.current_element.strip():
            try:
                self._flush_element()
            except Exception as err:  # noqa: BLE001
                logger.error("Element callback failed: %s", err)
                self._report_error(f"Element handler failed: {err}")
                return
        elif state.in_string:
            logger.debug("Stream ended inside a string; pending element dropped")

        if not state.elements:
            logger.warning("%s: %s", NO_ELEMENTS_MESSAGE, StringUtils.preview(state.buffer))
            self._report_error(NO_ELEMENTS_MESSAGE)

    def get_state(self) -> ParserState:
        """Return a snapshot of the parser state."""
        return self._state.snapshot()

    @property
    def elements(self) -> list[str]:
        return list(self._state.elements)

    def _report_error(self, message: str) -> None:
        if self._on_error is not None:
            self._on_error(message)

    def _process_char(self, char: str) -> None:
        state: ParserState = self._state

        if state.in_string:
            state.current_element += char
            if state.escape_next:
                state.escape_next = False
            elif char == "\\":
                state.escape_next = True
            elif char == '"':
                state.in_string = False
            return

        if not state.started:
            if char == "[":
                state.started = True
                state.bracket_depth = 0
                state.current_element = ""
            return

        if char == '"':
            state.in_string = True
            state.current_element += char
        elif char in _OPENERS:
            state.bracket_depth += 1
            state.current_element += char
        elif char in _CLOSERS:
            if state.bracket_depth == 0:
                if char == "]":
                    self._close_array()
                return
            state.bracket_depth -= 1
            state.current_element += char
        elif char == "," and state.bracket_depth == 0:
            self._flush_element()
        elif char.isspace():
            if state.current_element:
                state.current_element += char
        else:
            state.current_element += char

    def _close_array(self) -> None:
        state: ParserState = self._state
        self._flush_element()
        state.started = False
        state.completed = True
        if self._on_complete is not None:
            self._on_complete(list(state.elements))

    def _flush_element(self) -> None:
        state: ParserState = self._state
        raw: str = state.current_element.strip()
        state.current_element = ""
        if not raw:
            return

        try:
            value = json.loads(raw)
        except json.JSONDecodeError as err:
            logger.warning("Skipped undecodable element %r: %s", StringUtils.preview(raw, 80), err)
            return

        text: str = value if isinstance(value, str) else ""
        index: int = state.element_index
        state.element_index += 1
        state.elements.append(text)
        self._on_element(text, index)
