"""In-memory conversation session storage."""

from .session_manager import ChatSessionManager

__all__ = ["ChatSessionManager"]
