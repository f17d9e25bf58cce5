"""
Runtime configuration for the advisor platform.

Settings are read from environment variables (a ``.env`` file is loaded
by the entry points via python-dotenv). Every field can also be passed
explicitly, which is what tests do.

Recognized variables:
    ADVISOR_PREFERRED_PROVIDER     Provider tried first when healthy
    ADVISOR_PRIORITY_ORDER         Comma-separated failover order
    ADVISOR_SESSION_TTL_SECONDS    Idle time before a session is evicted
    ADVISOR_MAX_SESSION_MESSAGES   FIFO cap on messages per session
    ADVISOR_PROVIDER_TIMEOUT_MS    Budget for each health check / chat call
    ADVISOR_MAX_CONTEXT_TOKENS     Token budget for one LLM request
    ADVISOR_REGISTRY_PATH          Optional YAML agent/provider registry
    OLLAMA_BASE_URL, OLLAMA_MODEL
    VLLM_BASE_URL, VLLM_MODEL
    OPENAI_API_KEY, OPENAI_MODEL
    GROQ_API_KEY, GROQ_MODEL
    ANTHROPIC_API_KEY, ANTHROPIC_MODEL
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from ..agent.domain.entities import ProviderAdapterType, ProviderConfig, ProviderKind

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass
class AdvisorSettings:
    """Configuration for the LLM service, sessions and orchestrator."""

    # Provider tried first when its cached status is healthy
    preferred_provider: Optional[str] = field(
        default_factory=lambda: _env_optional("ADVISOR_PREFERRED_PROVIDER")
    )

    # Failover order; local backends first
    priority_order: list[str] = field(
        default_factory=lambda: _env_list(
            "ADVISOR_PRIORITY_ORDER", "ollama,vllm,groq,openai,anthropic"
        )
    )

    # Idle sessions are evicted after this many seconds
    session_ttl_seconds: int = field(
        default_factory=lambda: int(os.getenv("ADVISOR_SESSION_TTL_SECONDS", "3600"))
    )

    # FIFO cap on stored messages per session
    max_session_messages: int = field(
        default_factory=lambda: int(os.getenv("ADVISOR_MAX_SESSION_MESSAGES", "50"))
    )

    # Budget for each health check and each chat call
    per_provider_timeout_ms: int = field(
        default_factory=lambda: int(os.getenv("ADVISOR_PROVIDER_TIMEOUT_MS", "30000"))
    )

    # Token budget for the messages of one request
    max_context_tokens: int = field(
        default_factory=lambda: int(os.getenv("ADVISOR_MAX_CONTEXT_TOKENS", "4000"))
    )

    # Optional YAML registry of agents and providers
    registry_path: Optional[str] = field(
        default_factory=lambda: _env_optional("ADVISOR_REGISTRY_PATH")
    )

    # Providers; built from the environment when left empty
    providers: list[ProviderConfig] = field(default_factory=list)

    def __post_init__(self):
        if self.max_session_messages < 1:
            raise ValueError("max_session_messages must be at least 1")
        if self.per_provider_timeout_ms <= 0:
            raise ValueError("per_provider_timeout_ms must be positive")

    @property
    def per_provider_timeout(self) -> float:
        """Per-provider budget in seconds."""
        return self.per_provider_timeout_ms / 1000.0

    def resolve_providers(self) -> list[ProviderConfig]:
        """Return configured providers, falling back to the environment."""
        if self.providers:
            return list(self.providers)
        return providers_from_env(timeout=self.per_provider_timeout)


def providers_from_env(timeout: float = 30.0) -> list[ProviderConfig]:
    """Build provider configs for every backend the environment enables.

    Ollama is always registered; cloud backends only when their API key
    is present. vLLM is registered when ``VLLM_BASE_URL`` is set.
    """
    providers = [
        ProviderConfig(
            id="ollama",
            adapter=ProviderAdapterType.OLLAMA,
            kind=ProviderKind.LOCAL,
            model=os.getenv("OLLAMA_MODEL", "llama3.1:8b"),
            base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
            timeout=timeout,
        )
    ]

    vllm_url = _env_optional("VLLM_BASE_URL")
    if vllm_url:
        providers.append(
            ProviderConfig(
                id="vllm",
                adapter=ProviderAdapterType.OPENAI,
                kind=ProviderKind.LOCAL,
                model=os.getenv("VLLM_MODEL", "meta-llama/Llama-3.1-8B-Instruct"),
                base_url=vllm_url,
                api_key=os.getenv("VLLM_API_KEY", "not-needed"),
                timeout=timeout,
            )
        )

    groq_key = _env_optional("GROQ_API_KEY")
    if groq_key:
        providers.append(
            ProviderConfig(
                id="groq",
                adapter=ProviderAdapterType.OPENAI,
                kind=ProviderKind.CLOUD,
                model=os.getenv("GROQ_MODEL", "llama-3.1-8b-instant"),
                base_url=GROQ_BASE_URL,
                api_key=groq_key,
                timeout=timeout,
            )
        )

    openai_key = _env_optional("OPENAI_API_KEY")
    if openai_key:
        providers.append(
            ProviderConfig(
                id="openai",
                adapter=ProviderAdapterType.OPENAI,
                kind=ProviderKind.CLOUD,
                model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
                base_url=_env_optional("OPENAI_BASE_URL"),
                api_key=openai_key,
                timeout=timeout,
            )
        )

    anthropic_key = _env_optional("ANTHROPIC_API_KEY")
    if anthropic_key:
        providers.append(
            ProviderConfig(
                id="anthropic",
                adapter=ProviderAdapterType.ANTHROPIC,
                kind=ProviderKind.CLOUD,
                model=os.getenv("ANTHROPIC_MODEL", "claude-3-5-haiku-latest"),
                api_key=anthropic_key,
                timeout=timeout,
            )
        )

    logger.info(f"Providers from environment: {[p.id for p in providers]}")
    return providers
