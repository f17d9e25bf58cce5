"""
OpenAI-compatible LLM Provider.

Covers OpenAI itself and every backend that speaks the same chat
completions API through a custom ``base_url`` (Groq, vLLM, DeepSeek,
OpenRouter, Mistral).
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from ...core.exceptions import ProviderTimeoutError, ProviderUnavailableError
from ..domain.entities import LLMRequest, LLMResponse, ProviderConfig
from .base import BaseProvider

logger = logging.getLogger(__name__)

# Lazy import to avoid requiring openai if not used
try:
    import openai
    from openai import AsyncOpenAI

    OPENAI_AVAILABLE = True
except ImportError:
    OPENAI_AVAILABLE = False
    openai = None
    AsyncOpenAI = None


class OpenAIProvider(BaseProvider):
    """OpenAI chat completions provider.

    Usage:
        config = ProviderConfig(
            id="groq",
            adapter="openai",
            kind="cloud",
            model="llama-3.1-8b-instant",
            base_url="https://api.groq.com/openai/v1",
            api_key="gsk_...",
        )
        provider = OpenAIProvider(config)
    """

    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(self, config: ProviderConfig, client: Optional[Any] = None):
        """Initialize the OpenAI-compatible provider.

        Args:
            config: Provider configuration
            client: Pre-built AsyncOpenAI client (tests inject a mock)

        Raises:
            ImportError: If openai package is not installed
        """
        if not OPENAI_AVAILABLE:
            raise ImportError(
                "openai package is required for OpenAIProvider. "
                "Install with: pip install openai"
            )

        super().__init__(config)

        # Retries are disabled; failover to the next provider replaces them
        self.client = client or AsyncOpenAI(
            api_key=config.api_key or "not-needed",
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
        )

    async def health_check(self) -> bool:
        """List models as a cheap authenticated probe."""
        if not self.config.api_key:
            return False
        try:
            await self.client.models.list()
            return True
        except Exception as e:
            logger.debug(f"{self.provider_id} health check failed: {e}")
            return False

    async def chat(self, request: LLMRequest) -> LLMResponse:
        """Generate a response through the chat completions API.

        Raises:
            ProviderUnavailableError: On API or connection errors
            ProviderTimeoutError: When the API does not answer in time
        """
        started = time.perf_counter()
        kwargs: dict[str, Any] = {
            "model": request.model or self.model_name,
            "messages": self._format_messages_for_api(request),
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }

        try:
            completion = await self.client.chat.completions.create(**kwargs)
        except openai.APITimeoutError as e:
            raise ProviderTimeoutError(
                f"{self.provider_id} request timed out",
                provider=self.provider_id,
                timeout_seconds=self.config.timeout,
                cause=e,
            )
        except openai.APIStatusError as e:
            logger.warning(f"{self.provider_id} API error: {e.status_code}")
            raise ProviderUnavailableError(
                f"{self.provider_id} API error: {e.status_code}",
                provider=self.provider_id,
                status_code=e.status_code,
                cause=e,
            )
        except openai.APIError as e:
            raise ProviderUnavailableError(
                f"{self.provider_id} API error: {e}",
                provider=self.provider_id,
                cause=e,
            )

        if not completion.choices:
            raise ProviderUnavailableError(
                f"{self.provider_id} returned no choices",
                provider=self.provider_id,
            )

        choice = completion.choices[0]
        content = choice.message.content if choice.message else None
        if not content:
            raise ProviderUnavailableError(
                f"{self.provider_id} returned an empty message",
                provider=self.provider_id,
            )

        usage = getattr(completion, "usage", None)
        return self._build_response(
            content,
            started,
            model=getattr(completion, "model", None),
            tokens_used=getattr(usage, "total_tokens", None),
            finish_reason=choice.finish_reason,
        )

    async def aclose(self) -> None:
        await self.client.close()
