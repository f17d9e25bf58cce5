"""
Anthropic Claude LLM Provider.

Uses the Messages API. The system prompt travels as a separate parameter
and the message list may only hold user and assistant turns.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from ...core.exceptions import ProviderTimeoutError, ProviderUnavailableError
from ..domain.entities import LLMRequest, LLMResponse, MessageRole, ProviderConfig
from .base import BaseProvider

logger = logging.getLogger(__name__)

# Lazy import to avoid requiring anthropic if not used
try:
    import anthropic
    from anthropic import AsyncAnthropic

    ANTHROPIC_AVAILABLE = True
except ImportError:
    ANTHROPIC_AVAILABLE = False
    anthropic = None
    AsyncAnthropic = None


class AnthropicProvider(BaseProvider):
    """Anthropic Claude provider implementation."""

    DEFAULT_MODEL = "claude-3-5-haiku-latest"

    def __init__(self, config: ProviderConfig, client: Optional[Any] = None):
        """Initialize the Anthropic provider.

        Args:
            config: Provider configuration
            client: Pre-built AsyncAnthropic client (tests inject a mock)

        Raises:
            ImportError: If anthropic package is not installed
        """
        if not ANTHROPIC_AVAILABLE:
            raise ImportError(
                "anthropic package is required for AnthropicProvider. "
                "Install with: pip install anthropic"
            )

        super().__init__(config)
        self.client = client or AsyncAnthropic(
            api_key=config.api_key,
            timeout=config.timeout,
            max_retries=0,
        )

    def _format_messages_for_api(
        self, request: LLMRequest, include_system: bool = False
    ) -> list[dict[str, Any]]:
        """Convert messages to Anthropic format.

        Consecutive turns with the same role are merged, since the API
        requires alternating roles.
        """
        api_messages: list[dict[str, Any]] = []
        for msg in request.messages:
            if msg.role == MessageRole.SYSTEM:
                continue
            if api_messages and api_messages[-1]["role"] == msg.role.value:
                api_messages[-1]["content"] += f"\n\n{msg.content}"
            else:
                api_messages.append(msg.to_api())
        return api_messages

    def _system_prompt(self, request: LLMRequest) -> Optional[str]:
        parts = [request.system_prompt] if request.system_prompt else []
        parts.extend(m.content for m in request.messages if m.role == MessageRole.SYSTEM)
        return "\n\n".join(parts) or None

    async def health_check(self) -> bool:
        if not self.config.api_key:
            return False
        try:
            await self.client.models.list(limit=1)
            return True
        except Exception as e:
            logger.debug(f"Anthropic health check failed: {e}")
            return False

    async def chat(self, request: LLMRequest) -> LLMResponse:
        """Generate a response through the Messages API.

        Raises:
            ProviderUnavailableError: On API or connection errors
            ProviderTimeoutError: When the API does not answer in time
        """
        started = time.perf_counter()
        kwargs: dict[str, Any] = {
            "model": request.model or self.model_name,
            "messages": self._format_messages_for_api(request),
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
        }
        system = self._system_prompt(request)
        if system:
            kwargs["system"] = system

        try:
            message = await self.client.messages.create(**kwargs)
        except anthropic.APITimeoutError as e:
            raise ProviderTimeoutError(
                "Anthropic request timed out",
                provider=self.provider_id,
                timeout_seconds=self.config.timeout,
                cause=e,
            )
        except anthropic.APIStatusError as e:
            logger.warning(f"Anthropic API error: {e.status_code}")
            raise ProviderUnavailableError(
                f"Anthropic API error: {e.status_code}",
                provider=self.provider_id,
                status_code=e.status_code,
                cause=e,
            )
        except anthropic.APIError as e:
            raise ProviderUnavailableError(
                f"Anthropic API error: {e}",
                provider=self.provider_id,
                cause=e,
            )

        text = "".join(
            getattr(block, "text", "") for block in (message.content or [])
        )
        if not text:
            raise ProviderUnavailableError(
                "Anthropic returned no text content",
                provider=self.provider_id,
            )

        usage = getattr(message, "usage", None)
        tokens = None
        if usage is not None:
            tokens = (usage.input_tokens or 0) + (usage.output_tokens or 0)

        return self._build_response(
            text,
            started,
            model=getattr(message, "model", None),
            tokens_used=tokens,
            finish_reason=getattr(message, "stop_reason", None),
        )

    async def aclose(self) -> None:
        await self.client.close()
