from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, ClassVar

import core.trans.engines  # noqa: F401  # registers the providers
from core.trans.errors import ErrorCode, TranslationError
from core.trans.interface import ProviderInterface, ProviderKind
from handlers.async_comm import AsyncHttp
from models.translation_models import ProviderConfig
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from models.config_models import Config


__all__: list[str] = ["TransManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SYSTEM_PROMPT_TEMPLATE: str = """
You are a translation engine.
Input: A JSON array of strings.
Task: Translate each string from {source} to {target}.
Output: A strictly valid JSON array of strings.
Rules:
1. Maintain the exact order.
2. Do not include conversational text, markdown formatting, or code blocks (no ```json).
3. Just the raw JSON array.
""".strip()


class TransManager:
    """Gateway to the translation providers.

    Owns the shared HTTP client, creates one instance of every registered provider, selects a provider
    by model-name prefix and checks the credential before each call.

    Attributes:
        DEFAULT_PROVIDER (ClassVar[str]): Provider used for empty or unrecognized model names.
    """

    DEFAULT_PROVIDER: ClassVar[str] = ProviderKind.GEMINI

    def __init__(self, config: Config, http: AsyncHttp | None = None) -> None:
        """Initialize the TransManager.

        Args:
            config (Config): Application configuration.
            http (AsyncHttp | None): HTTP client shared by all providers. Created from TRANSLATION.TIMEOUT if None.
        """
        self.config: Config = config
        self.http: AsyncHttp = http if http is not None else AsyncHttp(total_timeout=config.TRANSLATION.TIMEOUT)
        self._providers: dict[str, ProviderInterface] = {}
        logger.debug("Registered translation providers: %s", ProviderInterface.registered)

    async def initialize(self) -> None:
        """Create and initialize every registered provider."""
        logger.info("TransManager initialization started")
        for name, provider_cls in ProviderInterface.registered.items():
            instance: ProviderInterface = provider_cls(self.http)
            try:
                instance.initialize()
            except RuntimeError as err:
                logger.critical("RuntimeError in '%s' provider setup: %s", name, err)
                continue
            self._providers[name] = instance
            logger.info("Translation provider initialized: '%s'", name)
            logger.debug("Provider attributes: %s", instance.provider_attributes)

    async def close(self) -> None:
        await self.http.close()
        self._providers.clear()
        logger.info("TransManager closed")

    @property
    def provider_names(self) -> list[str]:
        return list(self._providers)

    def resolve_provider(self, model: str) -> ProviderInterface:
        """Select the provider for a model name.

        Raises:
            TranslationError: UNKNOWN_ERROR if no provider is initialized for the name or the default.
        """
        for name, provider in self._providers.items():
            if name != self.DEFAULT_PROVIDER and model and provider.handles_model(model):
                return provider
        try:
            return self._providers[self.DEFAULT_PROVIDER]
        except KeyError as err:
            msg: str = f"Translation provider '{self.DEFAULT_PROVIDER}' is not initialized"
            raise TranslationError(ErrorCode.UNKNOWN_ERROR, msg) from err

    @staticmethod
    def build_system_prompt(source: str, target: str) -> str:
        return SYSTEM_PROMPT_TEMPLATE.format(source=source, target=target)

    def _prepare(
        self, texts: list[str], source: str, target: str, provider_config: ProviderConfig
    ) -> tuple[ProviderInterface, str, str, str, str]:
        provider: ProviderInterface = self.resolve_provider(provider_config.model)
        credential: str = provider_config.credential_for(provider.fetch_engine_name())
        if not credential:
            raise TranslationError(provider.provider_attributes.missing_key_code)
        model: str = provider_config.model or provider.provider_attributes.default_model
        logger.debug(
            "'%s' selected for model '%s' (%d items, %s > %s)", provider.provider_name, model, len(texts), source, target
        )
        return (
            provider,
            credential,
            model,
            self.build_system_prompt(source, target),
            json.dumps(texts, ensure_ascii=False),
        )

    async def call_batch(
        self, texts: list[str], source: str, target: str, provider_config: ProviderConfig
    ) -> list[str]:
        """Translate `texts` with one batch call (one per chunk for limited providers).

        Raises:
            TranslationError: Missing credential or any provider failure.
        """
        provider, credential, model, system_prompt, user_prompt = self._prepare(texts, source, target, provider_config)
        return await provider.translate_batch(credential, model, system_prompt, user_prompt)

    async def call_stream(
        self,
        texts: list[str],
        source: str,
        target: str,
        provider_config: ProviderConfig,
        on_fragment: Callable[[str], None],
        on_chunk: Callable[[int, int], None] | None = None,
    ) -> None:
        """Stream the translation of `texts` into `on_fragment`.

        `on_chunk` receives the offset and size of each chunk of a chunked provider before it is sent.

        Raises:
            TranslationError: Missing credential or any provider failure.
        """
        provider, credential, model, system_prompt, user_prompt = self._prepare(texts, source, target, provider_config)
        await provider.translate_stream(credential, model, system_prompt, user_prompt, on_fragment, on_chunk)

    def load_provider_config(self) -> ProviderConfig:
        """Build the provider selection from TRANSLATION.MODEL and the `<PROVIDER>_API_OAUTH` variables."""
        credentials: dict[str, str] = {
            name: os.getenv(f"{name.upper()}_API_OAUTH", "") for name in ProviderInterface.registered
        }
        return ProviderConfig(model=self.config.TRANSLATION.MODEL, credentials=credentials)
