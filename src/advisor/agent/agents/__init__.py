"""Agent variants and their registration table.

The set of agent kinds is closed: every kind maps to exactly one class and
one default capability. Registry files pick a kind and may override the
capability fields.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from typing import Any, Optional

from ..domain.entities import AgentCapability
from ..llm.service import LLMService
from ..tools.registry import ToolRegistry
from .base import BaseAgent
from .financial import FINANCIAL_CAPABILITY, FinancialAgent
from .general import GENERAL_CAPABILITY, GeneralAgent
from .research import RESEARCH_CAPABILITY, ResearchAgent
from .venture_launch import VENTURE_LAUNCH_CAPABILITY, VentureLaunchAgent


class AgentKind(str, Enum):
    """Closed set of agent variants."""

    GENERAL = "general"
    RESEARCH = "research"
    FINANCIAL = "financial"
    VENTURE_LAUNCH = "venture_launch"


AGENT_VARIANTS: dict[AgentKind, tuple[type[BaseAgent], AgentCapability]] = {
    AgentKind.GENERAL: (GeneralAgent, GENERAL_CAPABILITY),
    AgentKind.RESEARCH: (ResearchAgent, RESEARCH_CAPABILITY),
    AgentKind.FINANCIAL: (FinancialAgent, FINANCIAL_CAPABILITY),
    AgentKind.VENTURE_LAUNCH: (VentureLaunchAgent, VENTURE_LAUNCH_CAPABILITY),
}

# Registration order of the built-in agents; earlier wins priority ties
DEFAULT_AGENT_KINDS: tuple[AgentKind, ...] = (
    AgentKind.RESEARCH,
    AgentKind.FINANCIAL,
    AgentKind.VENTURE_LAUNCH,
    AgentKind.GENERAL,
)


def create_agent(
    kind: AgentKind,
    llm_service: LLMService,
    tools: ToolRegistry,
    overrides: Optional[dict[str, Any]] = None,
) -> BaseAgent:
    """Instantiate an agent of ``kind``, applying capability overrides.

    Args:
        kind: Agent variant
        llm_service: Service for completions
        tools: Tool registry
        overrides: AgentCapability fields replacing the variant defaults
    """
    agent_cls, capability = AGENT_VARIANTS[AgentKind(kind)]
    if overrides:
        fields = {
            key: tuple(value) if isinstance(value, list) else value
            for key, value in overrides.items()
            if value is not None
        }
        capability = dataclasses.replace(capability, **fields)
    return agent_cls(capability, llm_service, tools)


def create_default_agents(llm_service: LLMService, tools: ToolRegistry) -> list[BaseAgent]:
    return [create_agent(kind, llm_service, tools) for kind in DEFAULT_AGENT_KINDS]


__all__ = [
    "AGENT_VARIANTS",
    "AgentKind",
    "BaseAgent",
    "DEFAULT_AGENT_KINDS",
    "FinancialAgent",
    "GeneralAgent",
    "ResearchAgent",
    "VentureLaunchAgent",
    "create_agent",
    "create_default_agents",
]
