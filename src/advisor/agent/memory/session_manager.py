"""
Chat Session Manager.

Bounded, keyed, in-memory conversation history. Sessions are created on
first reference, keep messages in arrival order, drop the oldest entries
past ``max_session_messages``, and expire after ``session_ttl_seconds``
without activity.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from ..domain.entities import ChatMessage, MessageRole, Session

logger = logging.getLogger(__name__)

TOPIC_KEYWORDS = (
    "ai", "artificial intelligence", "machine learning", "blockchain",
    "funding", "investment", "venture capital", "startup", "fintech",
    "saas", "software", "technology", "innovation", "market analysis",
    "business plan", "strategy", "growth", "scaling", "partnership",
)
MAX_TOPICS = 10
SUMMARY_EVERY = 5
SUMMARY_WINDOW = 10
SUMMARY_SNIPPET = 100
# Minimum seconds between store-wide expiry sweeps
SWEEP_INTERVAL_SECONDS = 60


class ChatSessionManager:
    """Keyed store of conversation sessions.

    Only the append to a single session is serialized (one lock per
    session id); there is no store-wide lock.

    Usage:
        sessions = ChatSessionManager(max_session_messages=50, session_ttl_seconds=3600)

        # Created lazily on first access
        session = sessions.get_session("s1")

        await sessions.add_message("s1", ChatMessage(role="user", content="Hi"))
        history = sessions.get_history("s1", limit=10)
    """

    def __init__(
        self,
        max_session_messages: int = 50,
        session_ttl_seconds: Optional[int] = 3600,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """Initialize the session manager.

        Args:
            max_session_messages: FIFO cap on messages per session
            session_ttl_seconds: Idle time before eviction; None disables expiry
            clock: Time source, replaceable in tests
        """
        if max_session_messages < 1:
            raise ValueError("max_session_messages must be at least 1")
        self.max_session_messages = max_session_messages
        self.session_ttl_seconds = session_ttl_seconds
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_sweep = clock()

    # =========================================
    # Lifecycle
    # =========================================

    def create_session(
        self,
        session_id: str,
        user_id: str = "anonymous",
        metadata: Optional[dict[str, Any]] = None,
    ) -> Session:
        """Create a session, replacing any existing one with the same id."""
        now = self._clock()
        session = Session(
            id=session_id,
            user_id=user_id,
            created_at=now,
            last_active_at=now,
            metadata=dict(metadata or {}),
        )
        self._sessions[session_id] = session
        logger.debug(f"Created session {session_id} for user {user_id}")
        return session

    def _is_expired(self, session: Session, now: datetime) -> bool:
        if not self.session_ttl_seconds:
            return False
        return now - session.last_active_at > timedelta(seconds=self.session_ttl_seconds)

    def get_or_create(
        self,
        session_id: str,
        user_id: str = "anonymous",
        metadata: Optional[dict[str, Any]] = None,
    ) -> Session:
        """Return the live session for ``session_id``, creating it if needed.

        An expired session is discarded and replaced by a fresh one. At most
        once per SWEEP_INTERVAL_SECONDS the whole store is swept as well, so
        ids that never come back do not accumulate.
        """
        now = self._clock()
        self._maybe_sweep(now)
        session = self._sessions.get(session_id)
        if session is not None and self._is_expired(session, now):
            logger.info(f"Session {session_id} expired, starting a new one")
            self._drop(session_id)
            session = None
        if session is None:
            session = self.create_session(session_id, user_id, metadata)
        elif metadata:
            session.metadata.update(metadata)
        return session

    def get_session(self, session_id: str) -> Session:
        """Return the session, creating it lazily. Never raises for unknown ids."""
        return self.get_or_create(session_id)

    def has_session(self, session_id: str) -> bool:
        session = self._sessions.get(session_id)
        return session is not None and not self._is_expired(session, self._clock())

    def clear_session(self, session_id: str) -> bool:
        """Remove a session. Returns True if it existed."""
        existed = session_id in self._sessions
        self._drop(session_id)
        return existed

    def _drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        lock = self._locks.get(session_id)
        # A held lock still guards an append in progress
        if lock is not None and not lock.locked():
            del self._locks[session_id]

    def _maybe_sweep(self, now: datetime) -> None:
        if not self.session_ttl_seconds:
            return
        if now - self._last_sweep >= timedelta(seconds=SWEEP_INTERVAL_SECONDS):
            self.evict_expired()

    def evict_expired(self) -> int:
        """Drop every session idle for longer than the TTL."""
        now = self._clock()
        self._last_sweep = now
        expired = [sid for sid, s in self._sessions.items() if self._is_expired(s, now)]
        for session_id in expired:
            self._drop(session_id)
        if expired:
            logger.info(f"Evicted {len(expired)} expired session(s)")
        return len(expired)

    # =========================================
    # Messages
    # =========================================

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    async def add_message(self, session_id: str, message: ChatMessage) -> Session:
        """Append a message, evicting the oldest past the cap.

        Returns:
            The session the message was appended to
        """
        async with self._lock_for(session_id):
            session = self.get_or_create(session_id)
            session.messages.append(message)
            overflow = len(session.messages) - self.max_session_messages
            if overflow > 0:
                del session.messages[:overflow]
            session.last_active_at = self._clock()
            self._update_context(session, message)
        return session

    def get_history(self, session_id: str, limit: Optional[int] = None) -> list[ChatMessage]:
        """Return a copy of the session's messages, most recent ``limit`` only."""
        messages = list(self.get_session(session_id).messages)
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return messages

    # =========================================
    # Context extraction
    # =========================================

    def _update_context(self, session: Session, message: ChatMessage) -> None:
        if message.role == MessageRole.USER:
            text = message.content.lower()
            for topic in TOPIC_KEYWORDS:
                if topic not in session.key_topics and re.search(rf"\b{re.escape(topic)}\b", text):
                    session.key_topics.append(topic)
            del session.key_topics[:-MAX_TOPICS]

        if len(session.messages) % SUMMARY_EVERY == 0:
            session.summary = "\n".join(
                f"{m.role.value}: {m.content[:SUMMARY_SNIPPET]}"
                for m in session.messages[-SUMMARY_WINDOW:]
                if m.role != MessageRole.SYSTEM
            )

    # =========================================
    # Introspection
    # =========================================

    def list_sessions(self, user_id: Optional[str] = None) -> list[Session]:
        sessions = list(self._sessions.values())
        if user_id is not None:
            sessions = [s for s in sessions if s.user_id == user_id]
        return sessions

    def export_session(self, session_id: str) -> Optional[dict[str, Any]]:
        """Serialize a session without creating one."""
        session = self._sessions.get(session_id)
        return session.to_dict() if session else None

    def get_stats(self) -> dict[str, Any]:
        sessions = list(self._sessions.values())
        total = sum(len(s.messages) for s in sessions)
        return {
            "active_sessions": len(sessions),
            "total_messages": total,
            "avg_messages_per_session": round(total / len(sessions), 2) if sessions else 0.0,
        }
