# ruff: noqa: BLE001
"""Batch translation orchestration.

Resolves a list of texts against the translation cache, sends only the misses to the provider gateway and
merges the results back in request order. Two modes are provided: `translate` returns the merged list,
`translate_streaming` reports each item on an event channel as soon as it is known.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from core.trans.errors import ErrorCode, TranslationError
from handlers.array_stream_parser import ArrayStreamParser
from models.stream_models import OrchestratorState, StreamingSession
from models.translation_models import StreamEvent
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.cache.manager import TranslationCacheManager
    from core.trans.manager import TransManager
    from models.translation_models import BatchRequest
    from utils.event_channel import EventChannel

__all__: list[str] = ["BatchOrchestrator"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class BatchOrchestrator:
    """Cache-aware batch translation.

    Args:
        cache (TranslationCacheManager): Two-tier translation cache.
        trans_manager (TransManager): Provider gateway.
    """

    def __init__(self, cache: TranslationCacheManager, trans_manager: TransManager) -> None:
        self.cache: TranslationCacheManager = cache
        self.trans_manager: TransManager = trans_manager
        self._pending_writes: set[asyncio.Task[None]] = set()

    @staticmethod
    def _transition(mode: str, count: int, state: OrchestratorState) -> OrchestratorState:
        logger.debug("%s request (%d texts): %s", mode, count, state)
        return state

    async def _lookup(self, request: BatchRequest) -> tuple[list[str | None], list[int]]:
        """Look up every text concurrently and return the results with the indices of the misses."""
        cached: list[str | None] = list(
            await asyncio.gather(*(self.cache.get(request.source, request.target, text) for text in request.texts))
        )
        missing: list[int] = [index for index, translation in enumerate(cached) if translation is None]
        logger.info("Cache lookup: %d hit(s), %d miss(es)", len(cached) - len(missing), len(missing))
        return cached, missing

    async def translate(self, request: BatchRequest) -> list[str]:
        """Translate a batch and return the translations in request order.

        Raises:
            TranslationError: Provider failures with their canonical code, or RESPONSE_MISMATCH if the provider
                returned a different number of translations. Nothing is cached on failure.
        """
        count: int = len(request.texts)
        state: OrchestratorState = self._transition("Batch", count, OrchestratorState.COLLECTING)
        results, missing = await self._lookup(request)
        if not missing:
            self._transition("Batch", count, OrchestratorState.COMPLETE)
            return [text or "" for text in results]

        state = self._transition("Batch", count, OrchestratorState.TRANSLATING)
        texts_to_translate: list[str] = [request.texts[index] for index in missing]
        try:
            translated: list[str] = await self.trans_manager.call_batch(
                texts_to_translate, request.source, request.target, request.provider
            )
            if len(translated) != len(texts_to_translate):
                msg: str = f"Sent {len(texts_to_translate)}, got {len(translated)}"
                raise TranslationError(ErrorCode.RESPONSE_MISMATCH, msg)
        except TranslationError as err:
            self._transition("Batch", count, OrchestratorState.FAILED)
            logger.error("Translation failed in state '%s': %r", state, err)
            raise

        self._transition("Batch", count, OrchestratorState.MERGING)
        await asyncio.gather(
            *(
                self.cache.set(request.source, request.target, text, translation)
                for text, translation in zip(texts_to_translate, translated, strict=True)
            )
        )
        for index, translation in zip(missing, translated, strict=True):
            results[index] = translation

        self._transition("Batch", count, OrchestratorState.COMPLETE)
        return [text or "" for text in results]

    async def translate_streaming(self, request: BatchRequest, channel: EventChannel) -> None:
        """Translate a batch, reporting each item on `channel` as soon as it is known.

        Cached items are sent first as "cached" events. Provider output is parsed as it arrives and each
        element is sent as an "element" event with its request index. Exactly one terminal event follows:
        "complete" with all translations in request order, or "error". Elements already sent are not retracted
        by a later error. Cache writes for streamed elements run in the background.

        A chunked provider's chunks are parsed separately. A chunk that yields a different number of elements
        than it was sent ends the request with RESPONSE_MISMATCH before the next chunk is requested, and
        elements beyond a chunk's size are never reported or cached.
        """
        count: int = len(request.texts)
        results, missing = await self._lookup(request)
        for index, translation in enumerate(results):
            if translation is not None:
                channel.send(StreamEvent.cached(index, translation))

        if not missing:
            self._transition("Streaming", count, OrchestratorState.COMPLETE)
            channel.send(StreamEvent.complete([text or "" for text in results]))
            return

        session = StreamingSession(index_map=missing, results=results)
        session.state = self._transition("Streaming", count, OrchestratorState.TRANSLATING)

        def on_element(text: str, local_index: int) -> None:
            session.resolved_count += 1
            session.chunk_received += 1
            position: int | None = session.subset_position(local_index)
            original_index: int | None = session.original_index(position) if position is not None else None
            if original_index is None:
                logger.warning("Unexpected extra element at position %d", session.chunk_offset + local_index)
                return
            session.results[original_index] = text
            channel.send(StreamEvent.element(original_index, text))
            self._schedule_cache_write(request.source, request.target, request.texts[original_index], text)

        def on_error(message: str) -> None:
            session.parse_error = message

        parser = ArrayStreamParser(on_element, on_error=on_error)

        def finish_chunk() -> None:
            parser.end()
            if session.parse_error is not None:
                raise TranslationError(ErrorCode.JSON_PARSE_ERROR, session.parse_error)
            mismatch: str | None = session.chunk_mismatch()
            if mismatch is not None:
                raise TranslationError(ErrorCode.RESPONSE_MISMATCH, mismatch)

        def on_chunk(offset: int, size: int) -> None:
            # Each chunk gets its own parser so element indices restart at the chunk offset.
            nonlocal parser
            if session.chunk_number:
                finish_chunk()
            session.start_chunk(offset, size)
            parser = ArrayStreamParser(on_element, on_error=on_error)

        def on_fragment(fragment: str) -> None:
            parser.feed(fragment)

        texts_to_translate: list[str] = [request.texts[index] for index in missing]
        try:
            await self.trans_manager.call_stream(
                texts_to_translate, request.source, request.target, request.provider, on_fragment, on_chunk=on_chunk
            )
            session.state = self._transition("Streaming", count, OrchestratorState.MERGING)
            finish_chunk()
        except TranslationError as err:
            self._fail(session, channel, err)
            return
        except Exception as err:
            logger.error("Unexpected error while streaming: %r", err)
            self._fail(session, channel, TranslationError(ErrorCode.UNKNOWN_ERROR, str(err)))
            return

        if session.resolved_count != session.expected_count:
            msg: str = f"Sent {session.expected_count}, got {session.resolved_count}"
            self._fail(session, channel, TranslationError(ErrorCode.RESPONSE_MISMATCH, msg))
        else:
            session.state = self._transition("Streaming", count, OrchestratorState.COMPLETE)
            channel.send(StreamEvent.complete(session.merged()))

    def _fail(self, session: StreamingSession, channel: EventChannel, err: TranslationError) -> None:
        session.state = OrchestratorState.FAILED
        logger.error("Streaming translation failed after %d element(s): %r", session.resolved_count, err)
        channel.send(StreamEvent.failed(err))

    def _schedule_cache_write(self, source: str, target: str, text: str, translation: str) -> None:
        task: asyncio.Task[None] = asyncio.create_task(self._write_cache(source, target, text, translation))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write_cache(self, source: str, target: str, text: str, translation: str) -> None:
        try:
            await self.cache.set(source, target, text, translation)
        except Exception as err:
            logger.error("Background cache write failed: %s", err)

    @property
    def pending_writes(self) -> int:
        return len(self._pending_writes)

    async def drain(self) -> None:
        """Wait for background cache writes to finish."""
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)
