"""Agent API layer.

Provides the FastAPI router for the advisor agents.
"""

from .router import get_advisor, router
from .schemas import (
    ChatRequest,
    ChatResponse,
    ProviderStatusResponse,
    RegistryReloadResponse,
    SessionResponse,
    ToolExecuteRequest,
    ToolExecuteResponse,
)

__all__ = [
    "router",
    "get_advisor",
    "ChatRequest",
    "ChatResponse",
    "ProviderStatusResponse",
    "RegistryReloadResponse",
    "SessionResponse",
    "ToolExecuteRequest",
    "ToolExecuteResponse",
]
