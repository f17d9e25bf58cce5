"""
Tests for the chat session manager.

Tests cover:
- Lazy session creation
- FIFO cap on stored messages
- Arrival order under concurrent appends
- Idle expiry with an injectable clock
- Topic and summary extraction
- Export and statistics
"""

import asyncio
from datetime import datetime, timedelta

import pytest

from src.advisor.agent.domain.entities import ChatMessage, MessageRole
from src.advisor.agent.memory.session_manager import (
    MAX_TOPICS,
    SWEEP_INTERVAL_SECONDS,
    ChatSessionManager,
)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def user(content):
    return ChatMessage(role=MessageRole.USER, content=content)


def assistant(content):
    return ChatMessage(role=MessageRole.ASSISTANT, content=content, agent_id="general-conversation")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sessions(clock):
    return ChatSessionManager(max_session_messages=4, session_ttl_seconds=60, clock=clock)


class TestSessionLifecycle:
    """Tests for creation, lookup and expiry."""

    def test_created_lazily(self, sessions):
        assert not sessions.has_session("s1")

        session = sessions.get_session("s1")

        assert session.id == "s1"
        assert session.messages == []
        assert sessions.has_session("s1")

    def test_get_or_create_keeps_existing(self, sessions):
        first = sessions.get_or_create("s1", user_id="founder")
        second = sessions.get_or_create("s1", metadata={"source": "web"})

        assert first is second
        assert second.user_id == "founder"
        assert second.metadata == {"source": "web"}

    @pytest.mark.asyncio
    async def test_expired_session_replaced(self, sessions, clock):
        await sessions.add_message("s1", user("hello"))
        clock.advance(seconds=61)

        assert not sessions.has_session("s1")
        fresh = sessions.get_session("s1")
        assert fresh.messages == []

    @pytest.mark.asyncio
    async def test_activity_extends_ttl(self, sessions, clock):
        await sessions.add_message("s1", user("hello"))
        clock.advance(seconds=50)
        await sessions.add_message("s1", user("still here"))
        clock.advance(seconds=50)

        assert sessions.has_session("s1")
        assert len(sessions.get_history("s1")) == 2

    @pytest.mark.asyncio
    async def test_evict_expired(self, sessions, clock):
        await sessions.add_message("old", user("a"))
        clock.advance(seconds=45)
        await sessions.add_message("new", user("b"))
        clock.advance(seconds=30)

        assert sessions.evict_expired() == 1
        assert [s.id for s in sessions.list_sessions()] == ["new"]

    @pytest.mark.asyncio
    async def test_lookup_sweeps_abandoned_sessions(self, sessions, clock):
        """Sessions nobody returns to are dropped by later traffic."""
        for i in range(20):
            await sessions.add_message(f"s{i}", user("hello"))
        clock.advance(hours=5)

        sessions.get_or_create("newcomer")

        assert [s.id for s in sessions.list_sessions()] == ["newcomer"]

    def test_sweep_runs_at_most_once_per_interval(self, sessions, clock):
        sessions.get_or_create("a")
        clock.advance(seconds=30)
        sessions.get_or_create("b")
        clock.advance(seconds=31)
        sessions.get_or_create("c")

        assert sorted(s.id for s in sessions.list_sessions()) == ["b", "c"]

        clock.advance(seconds=39)
        sessions.get_or_create("c")

        # "b" is past its TTL, but the last sweep was under a minute ago
        assert sorted(s.id for s in sessions.list_sessions()) == ["b", "c"]

        clock.advance(seconds=SWEEP_INTERVAL_SECONDS - 39)
        sessions.get_or_create("c")

        assert [s.id for s in sessions.list_sessions()] == ["c"]

    def test_ttl_disabled(self, clock):
        sessions = ChatSessionManager(session_ttl_seconds=None, clock=clock)
        sessions.get_session("s1")
        clock.advance(days=30)

        assert sessions.has_session("s1")

    def test_clear_session(self, sessions):
        sessions.get_session("s1")

        assert sessions.clear_session("s1") is True
        assert sessions.clear_session("s1") is False

    def test_invalid_cap(self):
        with pytest.raises(ValueError):
            ChatSessionManager(max_session_messages=0)


class TestMessages:
    """Tests for appending and history."""

    @pytest.mark.asyncio
    async def test_fifo_cap_keeps_most_recent(self, sessions):
        """Appending past the cap drops the oldest messages first."""
        for i in range(6):
            await sessions.add_message("s1", user(f"m{i}"))

        history = sessions.get_history("s1")

        assert [m.content for m in history] == ["m2", "m3", "m4", "m5"]

    @pytest.mark.asyncio
    async def test_cap_of_two_keeps_last_two(self, clock):
        sessions = ChatSessionManager(max_session_messages=2, clock=clock)
        for content in ("first", "second", "third"):
            await sessions.add_message("s1", user(content))

        messages = sessions.get_session("s1").messages

        assert len(messages) == 2
        assert [m.content for m in messages] == ["second", "third"]

    @pytest.mark.asyncio
    async def test_history_limit(self, sessions):
        for i in range(3):
            await sessions.add_message("s1", user(f"m{i}"))

        assert [m.content for m in sessions.get_history("s1", limit=2)] == ["m1", "m2"]
        assert sessions.get_history("s1", limit=0) == []

    @pytest.mark.asyncio
    async def test_history_is_a_copy(self, sessions):
        await sessions.add_message("s1", user("m0"))

        sessions.get_history("s1").clear()

        assert len(sessions.get_history("s1")) == 1

    @pytest.mark.asyncio
    async def test_concurrent_appends_keep_every_message(self):
        sessions = ChatSessionManager(max_session_messages=100)

        await asyncio.gather(*(sessions.add_message("s1", user(f"m{i}")) for i in range(20)))

        contents = [m.content for m in sessions.get_history("s1")]
        assert contents == [f"m{i}" for i in range(20)]

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self, sessions):
        await sessions.add_message("a", user("for a"))
        await sessions.add_message("b", user("for b"))

        assert [m.content for m in sessions.get_history("a")] == ["for a"]
        assert [m.content for m in sessions.get_history("b")] == ["for b"]


class TestContextExtraction:
    """Tests for topics and summaries."""

    @pytest.mark.asyncio
    async def test_topics_from_user_messages_only(self, sessions):
        await sessions.add_message("s1", user("We are a fintech startup looking for funding"))
        await sessions.add_message("s1", assistant("Blockchain is interesting too"))

        topics = sessions.get_session("s1").key_topics

        assert topics == ["funding", "startup", "fintech"]

    @pytest.mark.asyncio
    async def test_topics_capped(self):
        sessions = ChatSessionManager()

        await sessions.add_message(
            "s1",
            user(
                "ai blockchain funding investment venture capital startup fintech saas "
                "software technology innovation growth scaling"
            ),
        )

        assert len(sessions.get_session("s1").key_topics) == MAX_TOPICS

    @pytest.mark.asyncio
    async def test_summary_every_fifth_message(self):
        sessions = ChatSessionManager()
        for i in range(4):
            await sessions.add_message("s1", user(f"question {i}"))
        assert sessions.get_session("s1").summary == ""

        await sessions.add_message("s1", assistant("answer"))

        summary = sessions.get_session("s1").summary
        assert summary.startswith("user: question 0")
        assert summary.endswith("assistant: answer")


class TestIntrospection:
    """Tests for export and statistics."""

    @pytest.mark.asyncio
    async def test_export_does_not_create(self, sessions):
        assert sessions.export_session("missing") is None
        assert not sessions.has_session("missing")

    @pytest.mark.asyncio
    async def test_export_and_stats(self, sessions):
        sessions.get_or_create("s1", user_id="founder")
        await sessions.add_message("s1", user("hello"))
        await sessions.add_message("s1", assistant("hi"))
        sessions.get_session("s2")

        exported = sessions.export_session("s1")
        stats = sessions.get_stats()

        assert exported["user_id"] == "founder"
        assert [m["role"] for m in exported["messages"]] == ["user", "assistant"]
        assert exported["messages"][1]["agent_id"] == "general-conversation"
        assert stats == {
            "active_sessions": 2,
            "total_messages": 2,
            "avg_messages_per_session": 1.0,
        }
        assert [s.id for s in sessions.list_sessions(user_id="founder")] == ["s1"]
