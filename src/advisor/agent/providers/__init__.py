"""LLM provider implementations."""

from .base import BaseProvider
from .factory import create_provider, create_providers
from .fallback import FALLBACK_PROVIDER_ID, FallbackProvider, select_fallback_text

__all__ = [
    "BaseProvider",
    "FallbackProvider",
    "FALLBACK_PROVIDER_ID",
    "create_provider",
    "create_providers",
    "select_fallback_text",
]
