"""
Agent Orchestrator.

Top-level entry point for user messages. Coordinates:
- Session resolution (lazy creation)
- Agent selection by capability
- Delegation to the selected agent
- Session history, usage stats and interaction metrics

A single message never raises out of ``process_message``: agent failures
are converted to the same agent's fallback reply.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ...core.exceptions import AgentProcessingError, ConfigurationError
from ..agents import create_agent
from ..agents.base import BaseAgent
from ..domain.entities import (
    AgentContext,
    AgentReply,
    ChatMessage,
    InteractionRecord,
    MessageRole,
)
from ..domain.ports import IMetricsSink
from ..llm.service import LLMService
from ..memory.session_manager import ChatSessionManager
from ..tools.registry import ToolRegistry
from .agent_selector import AgentSelector
from .stats import OrchestratorStats

logger = logging.getLogger(__name__)

EMERGENCY_RESPONSE = (
    "Sorry, something went wrong while handling your message. Please try again."
)


class OrchestrationState(str, Enum):
    """Stages one message passes through."""

    IDLE = "idle"
    SESSION_RESOLVED = "session_resolved"
    AGENT_SELECTED = "agent_selected"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class OrchestratorConfig:
    """Configuration for the agent orchestrator.

    Attributes:
        default_agent_id: Agent used when no agent matches a message
    """

    default_agent_id: str = "general-conversation"


class AgentOrchestrator:
    """Routes user messages to agents.

    Handles one message as:
    1. Resolve or create the session
    2. Select an agent (highest matching priority, then registration order)
    3. Let the agent process the message with session context
    4. Append the exchange to the session and record stats
    5. On agent failure, answer with that agent's fallback reply

    Usage:
        orchestrator = AgentOrchestrator(
            agents=create_default_agents(llm_service, tools),
            sessions=ChatSessionManager(max_session_messages=50),
            tools=tools,
            metrics=MetricsLogger(),
        )

        reply = await orchestrator.process_message("Value my fintech startup", "s1")
        print(reply.agent_id, reply.content)
    """

    def __init__(
        self,
        agents: list[BaseAgent],
        sessions: ChatSessionManager,
        tools: ToolRegistry,
        metrics: Optional[IMetricsSink] = None,
        llm_service: Optional[LLMService] = None,
        config: Optional[OrchestratorConfig] = None,
    ):
        """Initialize the orchestrator.

        Args:
            agents: Agents in registration order
            sessions: Session store
            tools: Tool registry; each agent's declared tools are registered
            metrics: Sink for interaction records
            llm_service: Needed only to rebuild agents on registry reload
            config: Orchestrator configuration

        Raises:
            ConfigurationError: No agents, duplicate ids, or unknown default
        """
        self.config = config or OrchestratorConfig()
        self.sessions = sessions
        self.tools = tools
        self.metrics = metrics
        self.llm_service = llm_service
        self.stats = OrchestratorStats()
        self._selector = self._build_selector(agents)

    def _build_selector(self, agents: list[BaseAgent]) -> AgentSelector:
        selector = AgentSelector(agents, self.config.default_agent_id)
        for agent in selector.agents:
            self.tools.register_capability(agent.get_capabilities())
        logger.info(f"Registered agents: {[a.agent_id for a in selector.agents]}")
        return selector

    # =========================================
    # Message handling
    # =========================================

    def select_agent(self, message: str) -> BaseAgent:
        return self._selector.select(message)

    async def process_message(
        self,
        message: str,
        session_id: str,
        user_id: str = "anonymous",
        metadata: Optional[dict[str, Any]] = None,
    ) -> AgentReply:
        """Handle one user message.

        Args:
            message: User message text
            session_id: Session the message belongs to (created if unknown)
            user_id: Sender
            metadata: Caller metadata passed to the agent

        Returns:
            The agent's reply, or its fallback reply if processing failed
        """
        start_time = time.perf_counter()
        state = OrchestrationState.IDLE
        agent: Optional[BaseAgent] = None

        try:
            session = self.sessions.get_or_create(session_id, user_id)
            state = OrchestrationState.SESSION_RESOLVED

            selector = self._selector
            agent = selector.select(message)
            state = OrchestrationState.AGENT_SELECTED

            context = AgentContext(
                session_id=session_id,
                user_id=user_id,
                history=list(session.messages),
                metadata=dict(metadata or {}),
                available_tools=self.tools.get_tools_for_agent(agent.agent_id),
            )

            state = OrchestrationState.PROCESSING
            try:
                reply = await agent.process_message(message, context)
            except Exception as e:
                error = AgentProcessingError(str(e), agent_id=agent.agent_id, cause=e)
                logger.error(f"{error}; using fallback response")
                reply = self._fallback_reply(agent, message)
                state = OrchestrationState.FAILED
            else:
                await self.sessions.add_message(
                    session_id, ChatMessage(role=MessageRole.USER, content=message)
                )
                await self.sessions.add_message(
                    session_id,
                    ChatMessage(
                        role=MessageRole.ASSISTANT,
                        content=reply.content,
                        agent_id=reply.agent_id,
                    ),
                )
                state = OrchestrationState.COMPLETED if reply.success else OrchestrationState.FAILED
        except Exception as e:
            logger.exception(f"Unexpected orchestration error in state {state.value}: {e}")
            reply = self._fallback_reply(agent, message) if agent else AgentReply(
                content=EMERGENCY_RESPONSE,
                agent_id=self.config.default_agent_id,
                confidence=0.0,
                success=False,
            )
            state = OrchestrationState.FAILED

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        success = state == OrchestrationState.COMPLETED
        reply.metadata.setdefault("response_time_ms", round(elapsed_ms, 2))
        self._record(reply, message, user_id, elapsed_ms, success)
        return reply

    def _fallback_reply(self, agent: BaseAgent, message: str) -> AgentReply:
        try:
            reply = agent.get_fallback_response(message)
        except Exception as e:
            logger.error(f"Fallback response failed for {agent.agent_id}: {e}")
            reply = AgentReply(content=EMERGENCY_RESPONSE, agent_id=agent.agent_id, confidence=0.0)
        reply.success = False
        return reply

    def _record(
        self,
        reply: AgentReply,
        message: str,
        user_id: str,
        elapsed_ms: float,
        success: bool,
    ) -> None:
        self.stats.record(reply.agent_id, elapsed_ms, success)
        if self.metrics is None:
            return
        try:
            self.metrics.record(
                InteractionRecord(
                    agent_id=reply.agent_id,
                    user_id=user_id,
                    message=message,
                    response_time_ms=elapsed_ms,
                    success=success,
                    tokens_used=reply.metadata.get("tokens_used"),
                    provider=reply.metadata.get("provider"),
                )
            )
        except Exception as e:
            logger.warning(f"Metrics sink rejected record: {e}")

    # =========================================
    # Admin
    # =========================================

    def reload_registry(self, snapshot: Any) -> list[str]:
        """Swap in agents built from a registry snapshot.

        The new routing table replaces the old one in a single assignment;
        in-flight messages keep the agent they already selected.

        Args:
            snapshot: RegistrySnapshot with agent entries

        Returns:
            Ids of the registered agents

        Raises:
            ConfigurationError: No LLM service, or an invalid agent set
        """
        if self.llm_service is None:
            raise ConfigurationError("Registry reload needs an LLM service")
        agents = [
            create_agent(entry.kind, self.llm_service, self.tools, entry.capability_overrides())
            for entry in snapshot.enabled_agents()
        ]
        self._selector = self._build_selector(agents)
        return [a.agent_id for a in agents]

    def get_agent_list(self) -> list[dict[str, Any]]:
        return [a.get_capabilities().to_dict() for a in self._selector.agents]

    def explain_selection(self, message: str) -> list[dict[str, Any]]:
        return self._selector.explain(message)

    def get_system_stats(self) -> dict[str, Any]:
        stats = self.stats.to_dict()
        stats["sessions"] = self.sessions.get_stats()
        stats["agents"] = len(self._selector.agents)
        if self.llm_service is not None:
            stats["llm"] = self.llm_service.get_usage_stats()
        return stats
