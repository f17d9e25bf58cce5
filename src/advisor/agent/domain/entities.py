"""
Domain entities for the venture advisor agents.

These are pure domain objects with no infrastructure dependencies.
They define the core data structures shared by providers, the LLM
service, agents, tools, sessions and the orchestrator.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

# ============================================
# Message Types
# ============================================


class MessageRole(str, Enum):
    """Role of a message in a conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass
class ChatMessage:
    """A single message in a conversation or LLM request.

    Attributes:
        role: Message role (user, assistant, system)
        content: Message text content
        agent_id: Agent that produced the message (assistant turns only)
        timestamp: Creation timestamp
    """

    role: MessageRole
    content: str
    agent_id: Optional[str] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if isinstance(self.role, str) and not isinstance(self.role, MessageRole):
            self.role = MessageRole(self.role)
        if self.timestamp is None:
            self.timestamp = datetime.utcnow()

    def to_api(self) -> dict[str, str]:
        """Return the ``{role, content}`` shape every provider accepts."""
        return {"role": self.role.value, "content": self.content}

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "content": self.content,
            "agent_id": self.agent_id,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


# ============================================
# Providers
# ============================================


class ProviderKind(str, Enum):
    """Where a provider runs."""

    LOCAL = "local"
    CLOUD = "cloud"
    SYNTHETIC = "synthetic"


class ProviderAdapterType(str, Enum):
    """Wire protocol spoken by a provider adapter."""

    OLLAMA = "ollama"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    FALLBACK = "fallback"


@dataclass
class ProviderConfig:
    """Static configuration of one inference backend.

    Attributes:
        id: Unique provider identifier (e.g. 'ollama', 'groq')
        adapter: Wire protocol used to talk to the backend
        kind: local, cloud or synthetic
        model: Default model name
        base_url: Endpoint root, if not the adapter default
        api_key: Credential for cloud backends
        enabled: Disabled providers are never candidates
        timeout: Request timeout in seconds
        extra: Adapter-specific options
    """

    id: str
    adapter: ProviderAdapterType
    kind: ProviderKind
    model: str
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    enabled: bool = True
    timeout: float = 30.0
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.adapter, str) and not isinstance(self.adapter, ProviderAdapterType):
            self.adapter = ProviderAdapterType(self.adapter)
        if isinstance(self.kind, str) and not isinstance(self.kind, ProviderKind):
            self.kind = ProviderKind(self.kind)


@dataclass(frozen=True)
class ProviderStatus:
    """Point-in-time health of a provider.

    Instances are immutable; probes publish a new object rather than
    mutating the cached one.

    Attributes:
        provider_id: Provider this status describes
        kind: local, cloud or synthetic
        model: Default model name
        is_healthy: None until the first probe or call
        last_checked_at: When health was last observed
        avg_latency_ms: Moving average of successful call latency
        last_error: Message of the most recent failure
    """

    provider_id: str
    kind: ProviderKind
    model: str
    is_healthy: Optional[bool] = None
    last_checked_at: Optional[datetime] = None
    avg_latency_ms: float = 0.0
    last_error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.provider_id,
            "kind": self.kind.value,
            "model": self.model,
            "is_healthy": self.is_healthy,
            "last_checked_at": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "avg_latency_ms": round(self.avg_latency_ms, 2),
            "last_error": self.last_error,
        }


@dataclass
class LLMRequest:
    """Uniform chat request handed to every provider adapter."""

    messages: list[ChatMessage]
    system_prompt: Optional[str] = None
    temperature: float = 0.7
    max_tokens: int = 1000
    model: Optional[str] = None


@dataclass
class LLMResponse:
    """Normalized provider reply.

    Attributes:
        text: Generated text
        provider: Id of the provider that produced it
        model: Model that produced it
        processing_time_ms: Wall time spent on the call
        tokens_used: Token count, when the backend reports one
        finish_reason: Why generation stopped
    """

    text: str
    provider: str
    model: str
    processing_time_ms: float = 0.0
    tokens_used: Optional[int] = None
    finish_reason: str = "stop"

    @property
    def content(self) -> str:
        return self.text

    @property
    def is_fallback(self) -> bool:
        return self.provider == "fallback"


# ============================================
# Agents
# ============================================


@dataclass(frozen=True)
class AgentCapability:
    """Immutable descriptor of what an agent handles.

    Attributes:
        id: Unique agent identifier
        name: Display name
        description: One-line description
        specialties: Multi-word domain phrases matched against messages
        keywords: Single words matched against messages
        priority: Higher wins when several agents match
        tools: Tool ids the agent may invoke
        preferred_provider: Provider tried first for this agent's LLM calls
        model: Model override for this agent's LLM calls
    """

    id: str
    name: str
    description: str = ""
    specialties: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    priority: int = 1
    tools: tuple[str, ...] = ()
    preferred_provider: Optional[str] = None
    model: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "specialties": list(self.specialties),
            "keywords": list(self.keywords),
            "priority": self.priority,
            "tools": list(self.tools),
            "preferred_provider": self.preferred_provider,
            "model": self.model,
        }


@dataclass
class AgentContext:
    """Context handed to an agent for one message.

    Attributes:
        session_id: Session the message belongs to
        user_id: User who sent it
        history: Session messages before this one, oldest first
        timestamp: When the message arrived
        metadata: Caller-supplied metadata
        available_tools: Tool definitions the agent may call
    """

    session_id: str
    user_id: str = "anonymous"
    history: list[ChatMessage] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.utcnow)
    metadata: dict[str, Any] = field(default_factory=dict)
    available_tools: list[ToolDefinition] = field(default_factory=list)


@dataclass
class AgentReply:
    """Response produced by an agent.

    Attributes:
        content: Text shown to the user
        agent_id: Agent that produced it
        confidence: 0.0 - 1.0 self-assessed confidence
        timestamp: When the reply was produced
        success: False when this is a fallback after a failure
        metadata: Provider, model, tool usage and similar details
    """

    content: str
    agent_id: str
    confidence: float = 0.5
    timestamp: datetime = field(default_factory=datetime.utcnow)
    success: bool = True
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": self.content,
            "agent_id": self.agent_id,
            "confidence": self.confidence,
            "timestamp": self.timestamp.isoformat(),
            "success": self.success,
            "metadata": self.metadata,
        }


# ============================================
# Sessions
# ============================================


@dataclass
class Session:
    """Conversation history for one session id.

    Attributes:
        id: Session identifier
        user_id: Owner of the session
        messages: Messages in arrival order
        created_at: Creation timestamp
        last_active_at: Last time a message was appended or read
        metadata: Free-form session metadata
        key_topics: Topics extracted from user messages
        summary: Rolling summary of the conversation
    """

    id: str
    user_id: str = "anonymous"
    messages: list[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)
    last_active_at: datetime = field(default_factory=datetime.utcnow)
    metadata: dict[str, Any] = field(default_factory=dict)
    key_topics: list[str] = field(default_factory=list)
    summary: str = ""

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "messages": [m.to_dict() for m in self.messages],
            "created_at": self.created_at.isoformat(),
            "last_active_at": self.last_active_at.isoformat(),
            "metadata": self.metadata,
            "key_topics": self.key_topics,
            "summary": self.summary,
        }


# ============================================
# Tool System
# ============================================

ToolHandler = Callable[[dict[str, Any]], Union[Any, Awaitable[Any]]]


@dataclass
class ToolDefinition:
    """Definition of a callable tool.

    Attributes:
        id: Unique tool id (e.g. 'valuation-estimator')
        name: Human-readable name
        description: What the tool does
        category: Grouping used in listings
        parameters: JSON Schema for parameters
        handler: Sync or async callable taking the validated params
    """

    id: str
    name: str
    description: str
    parameters: dict[str, Any]
    handler: ToolHandler
    category: str = "general"

    def describe(self) -> str:
        """One-line summary used in agent system prompts."""
        required = self.parameters.get("required", [])
        params = ", ".join(
            f"{name}{'' if name in required else '?'}"
            for name in self.parameters.get("properties", {})
        )
        return f"{self.id}({params}): {self.description}"


@dataclass
class ToolResult:
    """Result from a tool execution.

    Attributes:
        tool_id: Tool that ran
        success: Whether execution succeeded
        data: Result data (if successful)
        error: Error message (if failed)
        errors: Field-level validation messages (if params were invalid)
        latency_ms: Execution time in milliseconds
    """

    tool_id: str
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    errors: dict[str, str] = field(default_factory=dict)
    latency_ms: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"tool_id": self.tool_id, "success": self.success}
        if self.success:
            result["data"] = self.data
        else:
            result["error"] = self.error
            if self.errors:
                result["errors"] = self.errors
        return result


# ============================================
# Metrics
# ============================================


@dataclass(frozen=True)
class InteractionRecord:
    """One handled message, as emitted to the metrics sink.

    Attributes:
        agent_id: Agent that handled the message
        user_id: User who sent it
        message: The user message
        response_time_ms: End-to-end handling time
        success: False when the agent fell back
        tokens_used: Tokens consumed, when known
        provider: Provider that answered, when an LLM was called
        id: Record identifier
        timestamp: When the interaction completed
    """

    agent_id: str
    user_id: str
    message: str
    response_time_ms: float
    success: bool
    tokens_used: Optional[int] = None
    provider: Optional[str] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "agent_id": self.agent_id,
            "user_id": self.user_id,
            "message": self.message,
            "response_time_ms": round(self.response_time_ms, 2),
            "success": self.success,
            "tokens_used": self.tokens_used,
            "provider": self.provider,
        }
