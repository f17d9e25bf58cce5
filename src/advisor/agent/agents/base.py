"""
Base agent.

Implements the capability contract shared by every agent variant:
deterministic keyword routing, LLM delegation with session history and
tool descriptions, inline tool execution, and a canned fallback reply.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC
from typing import Any, Optional

from ...core.exceptions import AdvisorError, ValidationError
from ..domain.entities import (
    AgentCapability,
    AgentContext,
    AgentReply,
    ChatMessage,
    LLMResponse,
    MessageRole,
    ToolDefinition,
)
from ..domain.ports import IAgent
from ..llm.service import LLMService
from ..tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
HISTORY_TURNS = 10

# [TOOL:valuation-estimator:{"industry": "ai", "revenue": 2, "growth": 0.5}]
TOOL_MARKER = re.compile(r"\[TOOL:([a-z0-9][a-z0-9-]*):")
_JSON = json.JSONDecoder()

STOPWORDS = frozenset(
    "about above after again also because been before being below between both "
    "could does doing down during each from further have having here into just "
    "more most must only other over same should some such than that their them "
    "then there these they this those through under until very want were what "
    "when where which while will with would your yours need like".split()
)


def _contains_phrase(text: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase.lower())}\b", text) is not None


def _decode_params(text: str, start: int) -> tuple[Optional[dict[str, Any]], Optional[int]]:
    """Decode the JSON object opening at ``start`` and the closing ``]``.

    Returns the parameters (None if they do not decode to an object) and
    the offset just past the marker, or None for the offset when the marker
    is never closed.
    """
    try:
        params, end = _JSON.raw_decode(text, start)
    except json.JSONDecodeError:
        params, end = None, start
    if isinstance(params, dict) and text.startswith("]", end):
        return params, end + 1
    close = text.find("]", end)
    return None, (close + 1 if close != -1 else None)


class BaseAgent(IAgent, ABC):
    """Base class for agent variants.

    Subclasses set ``SYSTEM_PROMPT`` and ``FALLBACK_RESPONSE`` and may
    override ``build_prompt`` to enrich the user message before it goes to
    the LLM.

    Args:
        capability: Immutable capability descriptor
        llm_service: Service used for completions
        tools: Registry used to run the agent's tools
    """

    SYSTEM_PROMPT = "You are a helpful venture advisor assistant."
    FALLBACK_RESPONSE = (
        "I'm having trouble generating a full answer right now. "
        "Please try again in a moment."
    )

    def __init__(
        self,
        capability: AgentCapability,
        llm_service: LLMService,
        tools: ToolRegistry,
    ):
        self.capability = capability
        self.llm_service = llm_service
        self.tools = tools

    @property
    def agent_id(self) -> str:
        return self.capability.id

    # =========================================
    # Routing
    # =========================================

    def get_capabilities(self) -> AgentCapability:
        return self.capability

    def score(self, message: str) -> int:
        """Count specialties and keywords found in ``message``.

        Matching is case-insensitive on word boundaries. Zero means the
        agent does not handle the message.
        """
        text = message.lower()
        specialties = sum(1 for s in self.capability.specialties if _contains_phrase(text, s))
        keywords = sum(1 for k in self.capability.keywords if _contains_phrase(text, k))
        return specialties + keywords

    def can_handle(self, message: str) -> bool:
        return self.score(message) > 0

    # =========================================
    # Input helpers
    # =========================================

    def validate_input(self, message: str) -> None:
        """Reject empty or oversized messages.

        Raises:
            ValidationError: If the message is blank or too long
        """
        if not message or not message.strip():
            raise ValidationError("Message cannot be empty", field="message")
        if len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message exceeds {MAX_MESSAGE_LENGTH} characters",
                field="message",
            )

    @staticmethod
    def extract_keywords(message: str) -> list[str]:
        """Words longer than three letters, minus stopwords, in order of appearance."""
        seen: list[str] = []
        for word in re.findall(r"[a-z0-9][a-z0-9'-]*", message.lower()):
            if len(word) > 3 and word not in STOPWORDS and word not in seen:
                seen.append(word)
        return seen

    # =========================================
    # LLM delegation
    # =========================================

    def _tool_instructions(self, tools: list[ToolDefinition]) -> str:
        if not tools:
            return ""
        lines = "\n".join(f"- {tool.describe()}" for tool in tools)
        return (
            "\n\nYou can call these tools by writing a marker of the form "
            '[TOOL:tool-id:{"param": value}] on its own line:\n'
            f"{lines}"
        )

    async def generate_llm_response(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        context: Optional[AgentContext] = None,
    ) -> LLMResponse:
        """Ask the LLM service for a completion.

        Recent session history and the agent's tool descriptions are added
        to the request. Uses the agent's preferred provider and model.
        """
        messages: list[ChatMessage] = []
        tools: list[ToolDefinition] = []
        if context is not None:
            messages.extend(
                ChatMessage(role=m.role, content=m.content)
                for m in context.history[-HISTORY_TURNS:]
                if m.role != MessageRole.SYSTEM
            )
            tools = context.available_tools
        messages.append(ChatMessage(role=MessageRole.USER, content=prompt))

        return await self.llm_service.generate_response(
            self.capability.model,
            messages,
            preferred_provider=self.capability.preferred_provider,
            system_prompt=(system_prompt or self.SYSTEM_PROMPT) + self._tool_instructions(tools),
        )

    async def build_prompt(self, message: str, context: AgentContext) -> str:
        """Return the prompt sent to the LLM. Subclasses may add tool output."""
        return message

    async def run_tool_markers(self, text: str) -> tuple[str, list[str]]:
        """Execute tool markers in LLM output and splice in their results.

        Parameters are decoded as one JSON object, so nested objects and
        arrays are allowed. A marker whose parameters do not decode is
        replaced up to the next ``]``.

        Returns:
            The rewritten text and the ids of tools that ran successfully
        """
        used: list[str] = []
        parts: list[str] = []
        last = 0
        match = TOOL_MARKER.search(text)
        while match:
            tool_id = match.group(1)
            params, end = _decode_params(text, match.end())
            if end is None:
                break
            parts.append(text[last:match.start()])
            last = end
            match = TOOL_MARKER.search(text, end)
            if params is None:
                parts.append(f"(could not parse parameters for {tool_id})")
                continue
            result = await self.tools.execute_tool_for_agent(self.agent_id, tool_id, params)
            if result.success:
                used.append(tool_id)
                parts.append(f"{tool_id} result:\n{json.dumps(result.data, indent=2)}")
            else:
                parts.append(f"({tool_id} failed: {result.error})")
        parts.append(text[last:])
        return "".join(parts).strip(), used

    @staticmethod
    def estimate_confidence(response: LLMResponse) -> float:
        if response.is_fallback:
            return 0.4
        if response.finish_reason == "length":
            return 0.6
        return round(min(0.95, 0.7 + len(response.text) / 2000), 2)

    async def process_message(self, message: str, context: AgentContext) -> AgentReply:
        """Answer one message.

        LLM and tool failures never escape: they produce the agent's
        fallback reply instead.
        """
        self.validate_input(message)
        try:
            prompt = await self.build_prompt(message, context)
            response = await self.generate_llm_response(prompt, context=context)
            content, tools_used = await self.run_tool_markers(response.text)
        except AdvisorError as e:
            logger.warning(f"Agent {self.agent_id} falling back: {e}")
            return self.get_fallback_response(message)

        return AgentReply(
            content=content,
            agent_id=self.agent_id,
            confidence=self.estimate_confidence(response),
            metadata={
                "provider": response.provider,
                "model": response.model,
                "tokens_used": response.tokens_used,
                "llm_time_ms": round(response.processing_time_ms, 2),
                "tools_used": tools_used,
            },
        )

    def get_fallback_response(self, message: str) -> AgentReply:
        return AgentReply(
            content=self.FALLBACK_RESPONSE,
            agent_id=self.agent_id,
            confidence=0.3,
            success=False,
            metadata={"fallback": True},
        )

    async def _run_tool_quietly(self, tool_id: str, params: dict[str, Any]) -> Optional[Any]:
        """Run a declared tool and return its data, or None on any failure."""
        result = await self.tools.execute_tool_for_agent(self.agent_id, tool_id, params)
        return result.data if result.success else None

    async def _knowledge_context(self, message: str) -> str:
        """Knowledge base excerpts relevant to ``message``, or an empty string."""
        keywords = self.extract_keywords(message)
        if not keywords:
            return ""
        data = await self._run_tool_quietly(
            "knowledge-base-search", {"query": " ".join(keywords[:5]), "topK": 2}
        )
        if not data or not data.get("results"):
            return ""
        excerpts = "\n".join(f"- {r['title']}: {r['content']}" for r in data["results"])
        return f"\n\nRelevant knowledge:\n{excerpts}"

    @staticmethod
    def _mentioned_industry(message: str, industries: list[str]) -> Optional[str]:
        text = message.lower()
        return next((i for i in industries if _contains_phrase(text, i)), None)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.agent_id!r}, priority={self.capability.priority})"
