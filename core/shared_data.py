"""Shared data management for the relay services.

This module defines the SharedData class, which serves as a centralized container for the services used by the
server: configuration, the translation cache, the provider gateway, the batch orchestrator and the message handler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from core.cache.manager import TranslationCacheManager
from core.trans.manager import TransManager
from core.trans.orchestrator import BatchOrchestrator
from handlers.messages import MessageHandler
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from models.config_models import Config


__all__: list[str] = ["SharedData"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass
class SharedData:
    _config: Config = field()
    _cache_manager: TranslationCacheManager = field(init=False)
    _trans_manager: TransManager = field(init=False)
    _orchestrator: BatchOrchestrator = field(init=False)
    _message_handler: MessageHandler = field(init=False)

    def __post_init__(self) -> None:
        self._cache_manager = TranslationCacheManager(self.config)
        self._trans_manager = TransManager(self.config)
        self._orchestrator = BatchOrchestrator(self._cache_manager, self._trans_manager)
        self._message_handler = MessageHandler(self._orchestrator, self._cache_manager, self._trans_manager)

    async def component_load(self) -> None:
        """Open the cache (running the expiry sweep) and initialize the providers."""
        await self._cache_manager.component_load()
        await self._trans_manager.initialize()

    async def component_teardown(self) -> None:
        """Finish background cache writes, then close the HTTP session and the database."""
        await self._orchestrator.drain()
        await self._trans_manager.close()
        await self._cache_manager.component_teardown()
        logger.info("Shared services closed")

    @property
    def config(self) -> Config:
        return self._config

    @property
    def cache_manager(self) -> TranslationCacheManager:
        return self._cache_manager

    @property
    def trans_manager(self) -> TransManager:
        return self._trans_manager

    @property
    def orchestrator(self) -> BatchOrchestrator:
        return self._orchestrator

    @property
    def message_handler(self) -> MessageHandler:
        return self._message_handler
