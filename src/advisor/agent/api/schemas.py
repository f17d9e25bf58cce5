"""
Pydantic schemas for the agent API.

Defines request/response models for the chat endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

# =============================================================================
# Constants
# =============================================================================

MAX_MESSAGE_LENGTH = 2000


# =============================================================================
# Chat Schemas
# =============================================================================


class ChatRequest(BaseModel):
    """Request to send a chat message."""

    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH)
    session_id: str = Field(..., min_length=1, max_length=128)
    user_id: str = Field("anonymous", max_length=128)
    metadata: dict[str, Any] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "message": "I need help with market research for a fintech startup",
                "session_id": "s1",
                "user_id": "founder-42",
            }
        }


class ChatResponse(BaseModel):
    """Reply produced by the selected agent."""

    content: str
    agent_id: str
    timestamp: datetime
    confidence: float
    success: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "content": "The fintech market is valued at $162B...",
                "agent_id": "meta3-research",
                "timestamp": "2024-01-01T12:00:00",
                "confidence": 0.85,
                "success": True,
                "metadata": {"provider": "ollama"},
            }
        }


# =============================================================================
# Session Schemas
# =============================================================================


class SessionMessage(BaseModel):
    role: str
    content: str
    agent_id: Optional[str] = None
    timestamp: Optional[datetime] = None


class SessionResponse(BaseModel):
    """Stored history of one session."""

    id: str
    user_id: str
    messages: list[SessionMessage]
    created_at: datetime
    last_active_at: datetime
    key_topics: list[str] = Field(default_factory=list)
    summary: str = ""


# =============================================================================
# Provider / Tool Schemas
# =============================================================================


class ProviderStatusResponse(BaseModel):
    id: str
    kind: str
    model: str
    is_healthy: Optional[bool] = None
    last_checked_at: Optional[datetime] = None
    avg_latency_ms: float = 0.0
    last_error: Optional[str] = None


class ToolExecuteRequest(BaseModel):
    params: dict[str, Any] = Field(default_factory=dict)


class ToolExecuteResponse(BaseModel):
    tool_id: str
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    errors: dict[str, str] = Field(default_factory=dict)


class RegistryReloadResponse(BaseModel):
    agents: list[str]
