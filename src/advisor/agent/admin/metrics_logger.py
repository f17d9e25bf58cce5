"""
Metrics logger.

In-memory sink for interaction records. Recording is fire-and-forget: it
never raises into the request path. The record buffer is bounded; the
per-agent aggregates cover every record ever seen.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Optional

from ..domain.entities import InteractionRecord
from ..domain.ports import IMetricsSink

logger = logging.getLogger(__name__)


class MetricsLogger(IMetricsSink):
    """Collects InteractionRecords and summarizes them per agent.

    Usage:
        metrics = MetricsLogger(max_records=1000)
        metrics.record(InteractionRecord(agent_id="meta3-research", ...))

        summary = metrics.get_summary()
        # {"total_interactions": 1, "success_rate": 1.0, "agents": {...}}
    """

    def __init__(self, max_records: int = 1000):
        self._records: deque[InteractionRecord] = deque(maxlen=max_records)
        self._agents: dict[str, dict[str, Any]] = {}
        self._total = 0
        self._failures = 0

    def record(self, record: InteractionRecord) -> None:
        try:
            self._records.append(record)
            self._total += 1
            if not record.success:
                self._failures += 1

            stats = self._agents.setdefault(
                record.agent_id,
                {"count": 0, "failures": 0, "total_response_ms": 0.0, "tokens_used": 0},
            )
            stats["count"] += 1
            stats["total_response_ms"] += record.response_time_ms
            stats["tokens_used"] += record.tokens_used or 0
            if not record.success:
                stats["failures"] += 1

            logger.debug(
                f"Interaction agent={record.agent_id} user={record.user_id} "
                f"time={record.response_time_ms:.0f}ms success={record.success}"
            )
        except Exception as e:
            logger.error(f"Failed to record interaction: {e}")

    def get_summary(self) -> dict[str, Any]:
        agents = {
            agent_id: {
                "count": s["count"],
                "avg_response_ms": round(s["total_response_ms"] / s["count"], 2),
                "success_rate": round((s["count"] - s["failures"]) / s["count"], 4),
                "tokens_used": s["tokens_used"],
            }
            for agent_id, s in self._agents.items()
        }
        return {
            "total_interactions": self._total,
            "success_rate": round((self._total - self._failures) / self._total, 4) if self._total else 1.0,
            "agents": agents,
        }

    def get_recent(self, limit: int = 50, agent_id: Optional[str] = None) -> list[InteractionRecord]:
        """Most recent records first."""
        records = [r for r in reversed(self._records) if agent_id is None or r.agent_id == agent_id]
        return records[:limit]

    def clear(self) -> None:
        self._records.clear()
        self._agents.clear()
        self._total = 0
        self._failures = 0
