"""Build provider adapters from configuration."""

from __future__ import annotations

import logging

from ...core.exceptions import ConfigurationError
from ..domain.entities import ProviderAdapterType, ProviderConfig
from .base import BaseProvider
from .fallback import FallbackProvider

logger = logging.getLogger(__name__)


def create_provider(config: ProviderConfig) -> BaseProvider:
    """Instantiate the adapter for one provider config.

    Adapters are imported lazily so a missing optional SDK only matters
    when a provider actually needs it.

    Raises:
        ConfigurationError: Unknown adapter type or missing SDK
    """
    try:
        if config.adapter == ProviderAdapterType.OLLAMA:
            from .ollama import OllamaProvider

            return OllamaProvider(config)
        if config.adapter == ProviderAdapterType.OPENAI:
            from .openai import OpenAIProvider

            return OpenAIProvider(config)
        if config.adapter == ProviderAdapterType.ANTHROPIC:
            from .anthropic import AnthropicProvider

            return AnthropicProvider(config)
        if config.adapter == ProviderAdapterType.FALLBACK:
            return FallbackProvider(config)
    except ImportError as e:
        raise ConfigurationError(
            f"Provider {config.id!r} needs an SDK that is not installed: {e}",
            cause=e,
        )

    raise ConfigurationError(f"Unknown provider adapter: {config.adapter!r}")


def create_providers(configs: list[ProviderConfig]) -> list[BaseProvider]:
    """Instantiate adapters for every enabled config.

    Raises:
        ConfigurationError: Duplicate provider ids
    """
    providers: list[BaseProvider] = []
    seen: set[str] = set()
    for config in configs:
        if config.id in seen:
            raise ConfigurationError(f"Duplicate provider id: {config.id}")
        seen.add(config.id)
        if not config.enabled:
            logger.info(f"Provider {config.id} is disabled, skipping")
            continue
        providers.append(create_provider(config))
    return providers
