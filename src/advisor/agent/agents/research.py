"""Market research agent."""

from __future__ import annotations

import json

from ..domain.entities import AgentCapability, AgentContext
from ..tools.business import MARKET_DATA
from .base import BaseAgent

RESEARCH_CAPABILITY = AgentCapability(
    id="meta3-research",
    name="Research Analyst",
    description="Market sizing, industry trends and competitive analysis",
    specialties=("market research", "competitive analysis", "industry trends", "market size"),
    keywords=("research", "competitor", "competitors", "trends", "tam"),
    priority=5,
    tools=("market-analysis", "knowledge-base-search"),
)


class ResearchAgent(BaseAgent):
    """Grounds answers in market data for any industry the user names."""

    SYSTEM_PROMPT = (
        "You are a venture research analyst. Use concrete market figures, cite "
        "the data you were given, and separate facts from your own estimates."
    )
    FALLBACK_RESPONSE = (
        "I can't run a full research pass right now. Tell me the industry you "
        "care about (for example ai, fintech or healthcare) and I'll share the "
        "market size and growth figures I have on hand."
    )

    async def build_prompt(self, message: str, context: AgentContext) -> str:
        prompt = message
        industry = self._mentioned_industry(message, list(MARKET_DATA))
        if industry:
            data = await self._run_tool_quietly("market-analysis", {"industry": industry})
            if data:
                prompt += f"\n\nMarket data for {industry}:\n{json.dumps(data, indent=2)}"
        return prompt + await self._knowledge_context(message)
