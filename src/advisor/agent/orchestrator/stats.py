"""Per-agent usage counters for the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class AgentUsage:
    """Counters for one agent.

    Attributes:
        count: Messages handled
        failures: Messages answered with the fallback after an error
        avg_response_ms: Running mean of handling time
    """

    count: int = 0
    failures: int = 0
    avg_response_ms: float = 0.0

    def record(self, response_ms: float, success: bool) -> None:
        self.count += 1
        if not success:
            self.failures += 1
        self.avg_response_ms += (response_ms - self.avg_response_ms) / self.count


@dataclass
class OrchestratorStats:
    """Totals across all agents."""

    total_messages: int = 0
    failed_messages: int = 0
    average_response_ms: float = 0.0
    agent_usage: dict[str, AgentUsage] = field(default_factory=dict)

    def record(self, agent_id: str, response_ms: float, success: bool) -> None:
        self.total_messages += 1
        if not success:
            self.failed_messages += 1
        self.average_response_ms += (response_ms - self.average_response_ms) / self.total_messages
        self.agent_usage.setdefault(agent_id, AgentUsage()).record(response_ms, success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_messages": self.total_messages,
            "failed_messages": self.failed_messages,
            "average_response_ms": round(self.average_response_ms, 2),
            "agent_usage": {
                agent_id: {
                    "count": usage.count,
                    "failures": usage.failures,
                    "avg_response_ms": round(usage.avg_response_ms, 2),
                }
                for agent_id, usage in self.agent_usage.items()
            },
        }
