"""Agent Orchestrator.

Provides:
- Main orchestrator and configuration
- Deterministic agent selection
- Usage statistics
"""

from .agent import AgentOrchestrator, OrchestrationState, OrchestratorConfig
from .agent_selector import AgentSelector
from .stats import AgentUsage, OrchestratorStats

__all__ = [
    "AgentOrchestrator",
    "AgentSelector",
    "AgentUsage",
    "OrchestrationState",
    "OrchestratorConfig",
    "OrchestratorStats",
]
