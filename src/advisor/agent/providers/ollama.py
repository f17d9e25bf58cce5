"""
Ollama LLM Provider.

Talks to a locally-hosted Ollama server over its HTTP API. Uses the
non-streaming ``/api/chat`` endpoint and probes ``/api/tags`` for health.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from ...core.exceptions import ProviderTimeoutError, ProviderUnavailableError
from ..domain.entities import LLMRequest, LLMResponse, ProviderConfig
from .base import BaseProvider

logger = logging.getLogger(__name__)

# Lazy import to avoid requiring httpx if not used
try:
    import httpx

    OLLAMA_AVAILABLE = True
except ImportError:
    OLLAMA_AVAILABLE = False
    httpx = None


class OllamaProvider(BaseProvider):
    """Ollama local LLM provider implementation.

    Usage:
        config = ProviderConfig(
            id="ollama",
            adapter="ollama",
            kind="local",
            model="llama3.1:8b",
            base_url="http://localhost:11434",
        )
        provider = OllamaProvider(config)

        if await provider.health_check():
            response = await provider.chat(LLMRequest(messages=[...]))
    """

    DEFAULT_BASE_URL = "http://localhost:11434"

    def __init__(self, config: ProviderConfig, client: Optional["httpx.AsyncClient"] = None):
        """Initialize the Ollama provider.

        Args:
            config: Provider configuration
            client: Pre-built HTTP client (tests inject a mock transport)

        Raises:
            ImportError: If httpx package is not installed
        """
        if not OLLAMA_AVAILABLE:
            raise ImportError(
                "httpx package is required for OllamaProvider. "
                "Install with: pip install httpx"
            )

        super().__init__(config)
        self.base_url = config.base_url or self.DEFAULT_BASE_URL
        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=config.timeout,
        )

    async def health_check(self) -> bool:
        """Check that the server answers and lists at least the models key."""
        try:
            response = await self.client.get("/api/tags")
            response.raise_for_status()
            body = response.json()
            if not isinstance(body, dict) or "models" not in body:
                logger.debug(f"Ollama health check got malformed body from {self.base_url}")
                return False
            return True
        except Exception as e:
            logger.debug(f"Ollama health check failed for {self.base_url}: {e}")
            return False

    async def chat(self, request: LLMRequest) -> LLMResponse:
        """Generate a response using Ollama.

        Args:
            request: Uniform chat request

        Returns:
            Normalized response

        Raises:
            ProviderUnavailableError: On HTTP errors or malformed replies
            ProviderTimeoutError: When the server does not answer in time
        """
        started = time.perf_counter()
        model = request.model or self.model_name

        payload: dict[str, Any] = {
            "model": model,
            "messages": self._format_messages_for_api(request),
            "stream": False,
            "options": {
                "temperature": request.temperature,
                "num_predict": request.max_tokens,
            },
        }

        try:
            response = await self.client.post("/api/chat", json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Ollama API error: {e.response.status_code}")
            raise ProviderUnavailableError(
                f"Ollama API error: {e.response.status_code}",
                provider=self.provider_id,
                status_code=e.response.status_code,
                cause=e,
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                "Request to Ollama timed out",
                provider=self.provider_id,
                timeout_seconds=self.config.timeout,
                cause=e,
            )
        except httpx.RequestError as e:
            raise ProviderUnavailableError(
                f"Could not connect to Ollama at {self.base_url}",
                provider=self.provider_id,
                cause=e,
            )
        except ValueError as e:
            raise ProviderUnavailableError(
                "Ollama returned a non-JSON body",
                provider=self.provider_id,
                cause=e,
            )

        message = body.get("message") if isinstance(body, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not content:
            raise ProviderUnavailableError(
                "Ollama returned an empty message",
                provider=self.provider_id,
            )

        tokens = None
        if "eval_count" in body or "prompt_eval_count" in body:
            tokens = int(body.get("eval_count", 0)) + int(body.get("prompt_eval_count", 0))

        return self._build_response(
            content,
            started,
            model=body.get("model", model),
            tokens_used=tokens,
            finish_reason=body.get("done_reason", "stop"),
        )

    async def aclose(self) -> None:
        await self.client.aclose()
