"""Financial advisor agent: valuations, KPIs and fundraising."""

from __future__ import annotations

from ..domain.entities import AgentCapability, AgentContext
from .base import BaseAgent

FINANCIAL_CAPABILITY = AgentCapability(
    id="meta3-financial",
    name="Financial Advisor",
    description="Valuation estimates, KPI reviews and fundraising strategy",
    specialties=("financial model", "unit economics", "fundraising strategy"),
    keywords=("valuation", "valuations", "revenue", "kpi", "kpis", "churn", "cac", "runway", "arr", "financial"),
    priority=4,
    tools=("valuation-estimator", "kpi-dashboard", "knowledge-base-search"),
)


class FinancialAgent(BaseAgent):
    SYSTEM_PROMPT = (
        "You are a startup financial advisor. When the user gives revenue, "
        "growth or KPI figures, call the valuation or KPI tools instead of "
        "estimating by hand. State every assumption."
    )
    FALLBACK_RESPONSE = (
        "I can't complete the financial analysis right now. If you share your "
        "industry, annual revenue and growth rate I can still run a quick "
        "valuation estimate, or review ARR, churn, CAC and runway."
    )

    async def build_prompt(self, message: str, context: AgentContext) -> str:
        return message + await self._knowledge_context(message)
