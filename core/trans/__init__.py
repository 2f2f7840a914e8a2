"""Translation provider gateway and batch orchestration.

This package provides the canonical translation errors, the provider interface with its
pluggable implementations, the provider dispatcher and the batch orchestrator.
"""

from core.trans.errors import ErrorCode, TranslationError, error_code_from_status, user_friendly_message
from core.trans.interface import ProviderAttributes, ProviderInterface, ProviderKind

__all__: list[str] = [
    "ErrorCode",
    "ProviderAttributes",
    "ProviderInterface",
    "ProviderKind",
    "TranslationError",
    "error_code_from_status",
    "user_friendly_message",
]
