"""Models for incremental parsing of streamed provider output.

ParserState is the plain-data state of the array stream parser. StreamingSession holds the per-request
bookkeeping that maps parser positions back to request positions.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum

__all__: list[str] = ["OrchestratorState", "ParserState", "StreamingSession"]


class OrchestratorState(StrEnum):
    COLLECTING = "collecting"
    TRANSLATING = "translating"
    MERGING = "merging"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class ParserState:
    """State of the JSON array stream parser.

    Attributes:
        buffer (str): Every character fed so far.
        in_string (bool): Inside a JSON string. Toggled only by an unescaped double quote.
        escape_next (bool): The next character is taken literally. Set by a backslash inside a string.
        bracket_depth (int): Nesting depth of brackets inside the top-level array.
        current_element (str): Raw text of the element being accumulated.
        element_index (int): Index the next emitted element receives.
        elements (list[str]): Emitted elements in order.
        started (bool): The top-level opening bracket has been seen.
        completed (bool): At least one top-level array has been closed.
    """

    buffer: str = ""
    in_string: bool = False
    escape_next: bool = False
    bracket_depth: int = 0
    current_element: str = ""
    element_index: int = 0
    elements: list[str] = field(default_factory=list)
    started: bool = False
    completed: bool = False

    def snapshot(self) -> ParserState:
        """Return a detached copy, safe to hand out for diagnostics."""
        return replace(self, elements=list(self.elements))


@dataclass
class StreamingSession:
    """Bookkeeping for one streaming translation request.

    Attributes:
        index_map (list[int]): Request index for each position of the cache-miss subset.
        results (list[str | None]): Translations in request order. None until resolved.
        resolved_count (int): Number of parser elements delivered so far.
        parse_error (str | None): Terminal parser error, if one was reported.
        state (OrchestratorState): Current stage of the request.
        chunk_number (int): Number of provider chunks started so far. 0 for an unchunked request.
        chunk_offset (int): Subset position of the first item of the current chunk.
        chunk_size (int | None): Item count of the current chunk. None for an unchunked request.
        chunk_received (int): Elements parsed from the current chunk, extra ones included.
    """

    index_map: list[int]
    results: list[str | None]
    resolved_count: int = 0
    parse_error: str | None = None
    state: OrchestratorState = OrchestratorState.COLLECTING
    chunk_number: int = 0
    chunk_offset: int = 0
    chunk_size: int | None = None
    chunk_received: int = 0

    @property
    def expected_count(self) -> int:
        return len(self.index_map)

    def start_chunk(self, offset: int, size: int) -> None:
        self.chunk_number += 1
        self.chunk_offset = offset
        self.chunk_size = size
        self.chunk_received = 0

    def chunk_mismatch(self) -> str | None:
        """Describe a count mismatch of the current chunk, or return None when it is complete."""
        if self.chunk_size is None or self.chunk_received == self.chunk_size:
            return None
        return f"Chunk {self.chunk_number}: sent {self.chunk_size}, got {self.chunk_received}"

    def subset_position(self, local_index: int) -> int | None:
        """Map a parser index within the current chunk to a cache-miss subset position.

        None when the index lies beyond the current chunk.
        """
        if self.chunk_size is not None and local_index >= self.chunk_size:
            return None
        return self.chunk_offset + local_index

    def original_index(self, position: int) -> int | None:
        """Map a cache-miss subset position to the request index. None when the provider returned extra elements."""
        if 0 <= position < len(self.index_map):
            return self.index_map[position]
        return None

    def merged(self) -> list[str]:
        return [text if text is not None else "" for text in self.results]
