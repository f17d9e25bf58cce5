"""
Base LLM Provider Implementation.

Provides common functionality for all provider adapters.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from ..domain.entities import (
    LLMRequest,
    LLMResponse,
    MessageRole,
    ProviderConfig,
    ProviderKind,
)
from ..domain.ports import ILLMProvider

logger = logging.getLogger(__name__)


class BaseProvider(ILLMProvider, ABC):
    """Base class for provider adapters.

    Holds the static configuration and the helpers every adapter shares.
    Subclasses implement ``health_check`` and ``chat`` for one wire format.
    """

    def __init__(self, config: ProviderConfig):
        """Initialize the provider.

        Args:
            config: Provider configuration
        """
        self.config = config

    @property
    def provider_id(self) -> str:
        return self.config.id

    @property
    def model_name(self) -> str:
        return self.config.model

    @property
    def kind(self) -> ProviderKind:
        return self.config.kind

    @property
    def is_synthetic(self) -> bool:
        return self.config.kind == ProviderKind.SYNTHETIC

    def _format_messages_for_api(
        self, request: LLMRequest, include_system: bool = True
    ) -> list[dict[str, Any]]:
        """Convert the request to an OpenAI-style message list.

        Subclasses may override for provider-specific formatting.
        """
        api_messages = []
        if include_system and request.system_prompt:
            api_messages.append({"role": "system", "content": request.system_prompt})
        for msg in request.messages:
            if msg.role == MessageRole.SYSTEM and not include_system:
                continue
            api_messages.append(msg.to_api())
        return api_messages

    def _build_response(
        self,
        text: str,
        started: float,
        model: Optional[str] = None,
        tokens_used: Optional[int] = None,
        finish_reason: Optional[str] = None,
    ) -> LLMResponse:
        return LLMResponse(
            text=text,
            provider=self.provider_id,
            model=model or self.model_name,
            processing_time_ms=(time.perf_counter() - started) * 1000,
            tokens_used=tokens_used,
            finish_reason=finish_reason or "stop",
        )

    @abstractmethod
    async def health_check(self) -> bool:
        """Probe the backend. Must be implemented by subclasses."""
        pass

    @abstractmethod
    async def chat(self, request: LLMRequest) -> LLMResponse:
        """Generate a response. Must be implemented by subclasses."""
        pass

    async def aclose(self) -> None:
        """Release network resources. Adapters with clients override this."""
        pass

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.provider_id!r}, model={self.model_name!r})"
