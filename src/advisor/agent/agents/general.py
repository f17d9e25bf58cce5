"""General conversation agent, the default route for unmatched messages."""

from __future__ import annotations

from ..domain.entities import AgentCapability, AgentContext
from .base import BaseAgent

GENERAL_CAPABILITY = AgentCapability(
    id="general-conversation",
    name="General Assistant",
    description="Answers general questions about the fund, AI and startups",
    specialties=("general questions",),
    keywords=("hello", "hi", "hey", "help", "question", "thanks"),
    priority=1,
    tools=("knowledge-base-search",),
)


class GeneralAgent(BaseAgent):
    """Friendly generalist used when no specialist matches."""

    SYSTEM_PROMPT = (
        "You are the venture advisor's general assistant. Answer clearly and "
        "briefly. Point founders to the research, financial or launch "
        "specialists when their question is specific to one of those areas."
    )
    FALLBACK_RESPONSE = (
        "Thanks for reaching out! I can't reach my language model right now, "
        "but I can still point you to our investment criteria, funding stage "
        "guides and market notes. What are you working on?"
    )

    async def build_prompt(self, message: str, context: AgentContext) -> str:
        return message + await self._knowledge_context(message)
