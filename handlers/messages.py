# ruff: noqa: BLE001
"""Message routing for caller requests.

Translates the `action` field of a caller message into a call on the orchestrator or the translation cache,
and converts the result into the camelCase response shape. Streaming requests are forwarded to the
orchestrator together with the caller's event channel.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final, TypeAlias

from core.trans.errors import ErrorCode, TranslationError, user_friendly_message
from models.cache_models import CacheStats, PaginatedCacheEntries
from models.translation_models import BatchRequest, StreamEvent, TranslationResponse
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from core.cache.manager import TranslationCacheManager
    from core.trans.manager import TransManager
    from core.trans.orchestrator import BatchOrchestrator
    from utils.event_channel import EventChannel

__all__: list[str] = ["MessageHandler"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_PAGE: Final[int] = 0
DEFAULT_PAGE_LIMIT: Final[int] = 20

MessageResponse: TypeAlias = dict[str, Any] | bool


class MessageHandler:
    """Routes caller messages by their `action` field.

    Supported actions:
        - translateBatch: `{texts, source, target}` -> `{success, translations}` or `{success, error, errorCode}`
        - getCacheStats: -> `{memoryCount, dbCount, totalCount}`
        - getCacheEntries: `{page=0, limit=20}` -> `{entries, hasMore, total}`
        - clearCache: -> `true` or `false`
    """

    def __init__(
        self,
        orchestrator: BatchOrchestrator,
        cache_manager: TranslationCacheManager,
        trans_manager: TransManager,
    ) -> None:
        self.orchestrator: BatchOrchestrator = orchestrator
        self.cache_manager: TranslationCacheManager = cache_manager
        self.trans_manager: TransManager = trans_manager

    async def handle_message(self, message: Any) -> MessageResponse:
        """Process one caller message and return its response."""
        action: Any = message.get("action") if isinstance(message, dict) else None
        logger.debug("Received action: %s", action)

        match action:
            case "translateBatch":
                return (await self.process_batch(message)).to_dict()
            case "getCacheStats":
                return (await self.cache_stats()).to_dict()
            case "getCacheEntries":
                page: int = self._int_field(message, "page", DEFAULT_PAGE)
                limit: int = self._int_field(message, "limit", DEFAULT_PAGE_LIMIT)
                return (await self.cache_entries(page, limit)).to_dict()
            case "clearCache":
                return await self.clear_cache()
            case _:
                logger.warning("Unknown action: %r", action)
                err = TranslationError(ErrorCode.INVALID_REQUEST, f"Unknown action: {action!r}")
                return TranslationResponse.failed(err).to_dict()

    @staticmethod
    def _int_field(message: dict[str, Any], name: str, default: int) -> int:
        value: Any = message.get(name)
        if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
            return value
        return default

    async def process_batch(self, message: dict[str, Any]) -> TranslationResponse:
        try:
            request: BatchRequest = BatchRequest.from_message(message, self.trans_manager.load_provider_config())
            translations: list[str] = await self.orchestrator.translate(request)
        except TranslationError as err:
            logger.error("Translation Error: %s", err)
            return TranslationResponse.failed(err)
        except Exception as err:
            logger.error("Unexpected translation error: %r", err)
            return TranslationResponse(
                success=False, error=user_friendly_message(err), error_code=ErrorCode.UNKNOWN_ERROR.value
            )
        return TranslationResponse.ok(translations)

    async def cache_stats(self) -> CacheStats:
        try:
            return await self.cache_manager.get_stats()
        except Exception as err:
            logger.error("Failed to read cache statistics: %s", err)
            return CacheStats()

    async def cache_entries(self, page: int, limit: int) -> PaginatedCacheEntries:
        try:
            return await self.cache_manager.get_entries(page, limit)
        except Exception as err:
            logger.error("Failed to list cache entries: %s", err)
            return PaginatedCacheEntries()

    async def clear_cache(self) -> bool:
        try:
            await self.cache_manager.clear()
        except Exception as err:
            logger.error("Failed to clear cache: %s", err)
            return False
        return True

    async def handle_streaming(self, message: Any, channel: EventChannel) -> None:
        """Run one streaming session. An invalid request produces a single error event."""
        try:
            if not isinstance(message, dict):
                raise TranslationError(ErrorCode.INVALID_REQUEST, "Request must be a JSON object")
            request: BatchRequest = BatchRequest.from_message(message, self.trans_manager.load_provider_config())
        except TranslationError as err:
            logger.warning("Rejected streaming request: %s", err)
            channel.send(StreamEvent.failed(err))
            return
        await self.orchestrator.translate_streaming(request, channel)
