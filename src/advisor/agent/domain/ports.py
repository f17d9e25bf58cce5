"""
Port interfaces (abstract base classes) for the agent module.

These define the contracts that adapters must implement.
Following the Ports & Adapters (Hexagonal) architecture pattern.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .entities import (
        AgentCapability,
        AgentContext,
        AgentReply,
        InteractionRecord,
        LLMRequest,
        LLMResponse,
    )


# ============================================
# LLM Provider Interface
# ============================================


class ILLMProvider(ABC):
    """Interface for inference backends (Ollama, OpenAI-compatible, Anthropic).

    Implementations handle the wire format of one backend while presenting
    a uniform request/response shape to the LLM service.
    """

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Return the configured provider id."""
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the default model identifier."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Probe the backend.

        Returns:
            True when reachable and usable. Never raises.
        """
        pass

    @abstractmethod
    async def chat(self, request: LLMRequest) -> LLMResponse:
        """Run one non-streaming completion.

        Args:
            request: Uniform chat request

        Returns:
            Normalized response

        Raises:
            ProviderUnavailableError: On any backend failure
            ProviderTimeoutError: When the backend does not answer in time
        """
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Release network resources."""
        pass


# ============================================
# Agent Interface
# ============================================


class IAgent(ABC):
    """Interface every concrete agent variant implements."""

    @abstractmethod
    def get_capabilities(self) -> AgentCapability:
        """Return the agent's immutable capability descriptor."""
        pass

    @abstractmethod
    def can_handle(self, message: str) -> bool:
        """Return True if the message falls in this agent's domain.

        Must be deterministic and must not touch the network.
        """
        pass

    @abstractmethod
    async def process_message(self, message: str, context: AgentContext) -> AgentReply:
        """Produce a reply for one user message."""
        pass

    @abstractmethod
    def get_fallback_response(self, message: str) -> AgentReply:
        """Return a canned reply used when processing fails."""
        pass


# ============================================
# Metrics Sink Interface
# ============================================


class IMetricsSink(ABC):
    """Consumer of interaction records (fire-and-forget)."""

    @abstractmethod
    def record(self, record: InteractionRecord) -> None:
        """Accept one record. Must not raise."""
        pass

    @abstractmethod
    def get_summary(self) -> dict[str, Any]:
        """Return aggregate statistics over recorded interactions."""
        pass
