"""
Tests for the in-memory metrics sink.
"""

import pytest

from src.advisor.agent.admin import MetricsLogger
from src.advisor.agent.domain.entities import InteractionRecord


def make_record(agent_id="meta3-research", success=True, response_time_ms=100.0, tokens_used=10):
    return InteractionRecord(
        agent_id=agent_id,
        user_id="u1",
        message="hello",
        response_time_ms=response_time_ms,
        success=success,
        tokens_used=tokens_used,
        provider="ollama",
    )


class TestMetricsLogger:
    """Tests for recording and summaries."""

    def test_empty_summary(self):
        assert MetricsLogger().get_summary() == {
            "total_interactions": 0,
            "success_rate": 1.0,
            "agents": {},
        }

    def test_summary_per_agent(self):
        metrics = MetricsLogger()
        metrics.record(make_record(response_time_ms=100))
        metrics.record(make_record(response_time_ms=300, success=False, tokens_used=None))
        metrics.record(make_record(agent_id="meta3-financial"))

        summary = metrics.get_summary()

        assert summary["total_interactions"] == 3
        assert summary["success_rate"] == pytest.approx(0.6667)
        assert summary["agents"]["meta3-research"] == {
            "count": 2,
            "avg_response_ms": 200.0,
            "success_rate": 0.5,
            "tokens_used": 10,
        }

    def test_buffer_is_bounded_but_totals_are_not(self):
        metrics = MetricsLogger(max_records=2)
        for _ in range(5):
            metrics.record(make_record())

        assert len(metrics.get_recent()) == 2
        assert metrics.get_summary()["total_interactions"] == 5

    def test_recent_newest_first_and_filtered(self):
        metrics = MetricsLogger()
        first = make_record()
        second = make_record(agent_id="meta3-financial")
        metrics.record(first)
        metrics.record(second)

        assert metrics.get_recent() == [second, first]
        assert metrics.get_recent(agent_id="meta3-research") == [first]
        assert metrics.get_recent(limit=1) == [second]

    def test_record_never_raises(self):
        metrics = MetricsLogger()

        metrics.record(object())

        assert metrics.get_summary()["agents"] == {}

    def test_clear(self):
        metrics = MetricsLogger()
        metrics.record(make_record())

        metrics.clear()

        assert metrics.get_recent() == []
        assert metrics.get_summary()["total_interactions"] == 0

    def test_record_serializes(self):
        data = make_record(response_time_ms=12.3456).to_dict()

        assert data["response_time_ms"] == 12.35
        assert data["provider"] == "ollama"
        assert data["id"]
