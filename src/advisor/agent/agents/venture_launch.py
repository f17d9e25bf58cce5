"""Venture launch agent: business plans, pitch decks and go-to-market."""

from __future__ import annotations

import json

from ..domain.entities import AgentCapability, AgentContext
from ..tools.business import MARKET_DATA
from .base import BaseAgent

VENTURE_LAUNCH_CAPABILITY = AgentCapability(
    id="venture-launch",
    name="Venture Launch Builder",
    description="Turns an idea into a business plan, pitch deck and launch plan",
    specialties=("business plan", "pitch deck", "go-to-market", "launch plan"),
    keywords=("launch", "pitch", "deck", "mvp", "idea", "startup"),
    priority=3,
    tools=("business-plan-generator", "pitch-deck-generator", "market-analysis"),
)


class VentureLaunchAgent(BaseAgent):
    SYSTEM_PROMPT = (
        "You help founders go from idea to launch. Structure answers as "
        "concrete next steps. Use the business plan and pitch deck tools when "
        "the user names a company, industry and product."
    )
    FALLBACK_RESPONSE = (
        "I can't build the full plan right now. Send me your company name, "
        "industry and product and I'll put together a business plan outline "
        "and a seven-slide pitch deck structure."
    )

    async def build_prompt(self, message: str, context: AgentContext) -> str:
        industry = self._mentioned_industry(message, list(MARKET_DATA))
        if not industry:
            return message
        data = await self._run_tool_quietly("market-analysis", {"industry": industry})
        if not data:
            return message
        return f"{message}\n\nMarket context for {industry}:\n{json.dumps(data, indent=2)}"
