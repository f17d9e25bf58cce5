"""
Application root.

Builds and owns every service instance (LLM service, tool registry,
session store, metrics sink, orchestrator). Nothing here is a module
global: each ``AdvisorApp`` is independent, so tests can run isolated
instances side by side.

Usage:
    app = AdvisorApp.create(AdvisorSettings())
    await app.start()
    reply = await app.orchestrator.process_message("Hello", "s1")
    await app.aclose()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..core.config import AdvisorSettings
from ..core.resilience import gather_with_errors
from .admin.metrics_logger import MetricsLogger
from .admin.registry_loader import RegistryLoader, RegistrySnapshot
from .agents import create_agent, create_default_agents
from .agents.base import BaseAgent
from .llm.service import LLMService
from .memory.session_manager import ChatSessionManager
from .orchestrator.agent import AgentOrchestrator
from .providers.base import BaseProvider
from .providers.factory import create_providers
from .tools import build_default_registry
from .tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


@dataclass
class AdvisorApp:
    """Container for one fully wired advisor instance."""

    settings: AdvisorSettings
    llm_service: LLMService
    tools: ToolRegistry
    sessions: ChatSessionManager
    metrics: MetricsLogger
    orchestrator: AgentOrchestrator
    registry: Optional[RegistryLoader] = None

    @classmethod
    def create(
        cls,
        settings: Optional[AdvisorSettings] = None,
        providers: Optional[list[BaseProvider]] = None,
    ) -> "AdvisorApp":
        """Wire up all services.

        Args:
            settings: Runtime settings; read from the environment if omitted
            providers: Pre-built providers, bypassing provider configuration

        Raises:
            ConfigurationError: Invalid registry, duplicate ids, missing SDKs
        """
        settings = settings or AdvisorSettings()

        registry = RegistryLoader(settings.registry_path) if settings.registry_path else None
        snapshot: Optional[RegistrySnapshot] = registry.snapshot if registry else None

        if providers is None:
            configs = snapshot.provider_configs() if snapshot and snapshot.providers else []
            providers = create_providers(configs or settings.resolve_providers())

        llm_service = LLMService(
            providers,
            priority_order=settings.priority_order,
            preferred_provider=settings.preferred_provider,
            per_provider_timeout=settings.per_provider_timeout,
            max_context_tokens=settings.max_context_tokens,
        )
        tools = build_default_registry()
        sessions = ChatSessionManager(
            max_session_messages=settings.max_session_messages,
            session_ttl_seconds=settings.session_ttl_seconds,
        )
        metrics = MetricsLogger()

        agents: list[BaseAgent]
        if snapshot and snapshot.agents:
            agents = [
                create_agent(entry.kind, llm_service, tools, entry.capability_overrides())
                for entry in snapshot.enabled_agents()
            ]
        else:
            agents = create_default_agents(llm_service, tools)

        orchestrator = AgentOrchestrator(
            agents=agents,
            sessions=sessions,
            tools=tools,
            metrics=metrics,
            llm_service=llm_service,
        )

        logger.info(
            f"Advisor app created: providers={llm_service.provider_ids}, "
            f"agents={[a.agent_id for a in agents]}"
        )
        return cls(
            settings=settings,
            llm_service=llm_service,
            tools=tools,
            sessions=sessions,
            metrics=metrics,
            orchestrator=orchestrator,
            registry=registry,
        )

    async def start(self) -> None:
        """Warm the provider status cache."""
        statuses = await self.llm_service.get_available_providers()
        healthy = [s.provider_id for s in statuses if s.is_healthy]
        logger.info(f"Startup health check: {healthy}")

    async def reload_registry(self) -> list[str]:
        """Re-read the registry file and swap in its agents and providers.

        Agents are validated first. The loader's snapshot and the provider
        set only change once the orchestrator has accepted the new agents,
        so a rejected file leaves the running configuration untouched.

        Raises:
            ConfigurationError: Unreadable file or invalid agent set
        """
        if self.registry is None:
            logger.info("No registry file configured, nothing to reload")
            return [a["id"] for a in self.orchestrator.get_agent_list()]

        snapshot = self.registry.load()
        new_providers = create_providers(snapshot.provider_configs()) if snapshot.providers else []
        try:
            agent_ids = self.orchestrator.reload_registry(snapshot)
        except Exception:
            await self._close_providers(new_providers)
            raise

        retired = self.llm_service.replace_providers(new_providers) if snapshot.providers else []
        self.registry.commit(snapshot)
        await self._close_providers(retired)

        logger.info(f"Registry reloaded: agents={agent_ids}, providers={self.llm_service.provider_ids}")
        return agent_ids

    @staticmethod
    async def _close_providers(providers: list[BaseProvider]) -> None:
        _, errors = await gather_with_errors(*(p.aclose() for p in providers))
        for error in errors:
            logger.warning(f"Error closing provider: {error}")

    async def aclose(self) -> None:
        await self.llm_service.aclose()
        logger.info("Advisor app closed")
