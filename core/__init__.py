"""Core services of the translation relay.

This package contains the translation cache, the provider gateway, the batch orchestrator,
the shared service container and the HTTP/WebSocket server.
"""

from core.version import VERSION

__all__: list[str] = ["VERSION"]
