"""
Agent selection.

Deterministic routing: every registered agent is asked ``can_handle``;
among matches the highest priority wins and ties go to the agent
registered first. With no match the default agent is used.
"""

from __future__ import annotations

import logging
from typing import Any

from ...core.exceptions import ConfigurationError
from ..agents.base import BaseAgent

logger = logging.getLogger(__name__)


class AgentSelector:
    """Immutable routing table over a fixed list of agents.

    Args:
        agents: Agents in registration order
        default_agent_id: Agent used when nothing matches

    Raises:
        ConfigurationError: No agents, duplicate ids, or unknown default
    """

    def __init__(self, agents: list[BaseAgent], default_agent_id: str):
        if not agents:
            raise ConfigurationError("At least one agent must be registered")

        by_id: dict[str, BaseAgent] = {}
        for agent in agents:
            if agent.agent_id in by_id:
                raise ConfigurationError(f"Duplicate agent id: {agent.agent_id}")
            by_id[agent.agent_id] = agent

        if default_agent_id not in by_id:
            raise ConfigurationError(
                f"Default agent {default_agent_id!r} is not registered",
                details={"registered": list(by_id)},
            )

        self._agents = tuple(agents)
        self._by_id = by_id
        self.default_agent = by_id[default_agent_id]

    @property
    def agents(self) -> tuple[BaseAgent, ...]:
        return self._agents

    def get(self, agent_id: str) -> BaseAgent:
        return self._by_id[agent_id]

    def __contains__(self, agent_id: str) -> bool:
        return agent_id in self._by_id

    def _handles(self, agent: BaseAgent, message: str) -> bool:
        try:
            return bool(agent.can_handle(message))
        except Exception as e:
            logger.error(f"can_handle failed for {agent.agent_id}: {e}")
            return False

    def select(self, message: str) -> BaseAgent:
        """Pick the agent for ``message``."""
        best = None
        for agent in self._agents:
            if not self._handles(agent, message):
                continue
            if best is None or agent.capability.priority > best.capability.priority:
                best = agent

        selected = best or self.default_agent
        logger.debug(
            f"Selected {selected.agent_id} "
            f"({'matched' if best else 'default'}) for message of {len(message)} chars"
        )
        return selected

    def explain(self, message: str) -> list[dict[str, Any]]:
        """Per-agent match details in registration order."""
        selected = self.select(message).agent_id
        return [
            {
                "agent_id": agent.agent_id,
                "priority": agent.capability.priority,
                "score": agent.score(message),
                "matched": self._handles(agent, message),
                "selected": agent.agent_id == selected,
            }
            for agent in self._agents
        ]
