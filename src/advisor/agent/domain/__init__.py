"""Domain entities and port interfaces for the agent module."""

from .entities import (
    AgentCapability,
    AgentContext,
    AgentReply,
    ChatMessage,
    InteractionRecord,
    LLMRequest,
    LLMResponse,
    MessageRole,
    ProviderAdapterType,
    ProviderConfig,
    ProviderKind,
    ProviderStatus,
    Session,
    ToolDefinition,
    ToolResult,
)
from .ports import IAgent, ILLMProvider, IMetricsSink

__all__ = [
    # Entities
    "AgentCapability",
    "AgentContext",
    "AgentReply",
    "ChatMessage",
    "InteractionRecord",
    "LLMRequest",
    "LLMResponse",
    "MessageRole",
    "ProviderAdapterType",
    "ProviderConfig",
    "ProviderKind",
    "ProviderStatus",
    "Session",
    "ToolDefinition",
    "ToolResult",
    # Ports
    "IAgent",
    "ILLMProvider",
    "IMetricsSink",
]
