"""Translation provider implementations.

This package contains the concrete ProviderInterface implementations. Importing it registers
every provider with ProviderInterface.registered.

Modules:
- AnthropicProvider: Anthropic Messages API.
- ChatCompletionsProvider: Shared base for chat completions providers (not registered).
- GeminiProvider: Google Gemini generateContent API. Default provider.
- GrokProvider: xAI chat completions.
- OpenAIProvider: OpenAI chat completions, limited to 20 items per call.
"""

from core.trans.engines.anthropic import AnthropicProvider
from core.trans.engines.chat_completions import ChatCompletionsProvider
from core.trans.engines.gemini import GeminiProvider
from core.trans.engines.grok import GrokProvider
from core.trans.engines.openai import OpenAIProvider

__all__: list[str] = [
    "AnthropicProvider",
    "ChatCompletionsProvider",
    "GeminiProvider",
    "GrokProvider",
    "OpenAIProvider",
]
