"""
Built-in venture tools.

Small deterministic calculators over embedded reference data. Figures are
USD billions for market sizes and USD millions for company revenue.
"""

from __future__ import annotations

import logging
from typing import Any

from ...core.exceptions import ToolExecutionError
from ..domain.entities import ToolDefinition

logger = logging.getLogger(__name__)

# ============================================
# Reference data
# ============================================

MARKET_DATA: dict[str, dict[str, Any]] = {
    "ai": {"size": 207, "growth": 0.2, "currency": "USD"},
    "fintech": {"size": 162, "growth": 0.16, "currency": "USD"},
    "healthcare": {"size": 125, "growth": 0.12, "currency": "USD"},
    "gaming": {"size": 185, "growth": 0.09, "currency": "USD"},
    "blockchain": {"size": 19, "growth": 0.58, "currency": "USD"},
    "saas": {"size": 195, "growth": 0.18, "currency": "USD"},
    "cybersecurity": {"size": 155, "growth": 0.13, "currency": "USD"},
    "edtech": {"size": 89, "growth": 0.15, "currency": "USD"},
}

VALUATION_MULTIPLES: dict[str, float] = {
    "ai": 10,
    "fintech": 12,
    "healthcare": 8,
    "gaming": 7,
    "blockchain": 15,
    "saas": 11,
    "cybersecurity": 9,
    "edtech": 8,
}
DEFAULT_MULTIPLE = 8

STAGE_MULTIPLIERS: dict[str, float] = {
    "seed": 0.6,
    "series-a": 1.0,
    "series-b": 1.2,
    "series-c": 1.4,
    "growth": 1.1,
}

PROBLEM_STATEMENTS: dict[str, str] = {
    "ai": "Current AI solutions are fragmented, expensive and hard for small businesses to adopt.",
    "fintech": "Traditional financial services are slow, expensive and exclude underserved populations.",
    "healthcare": "Healthcare systems are inefficient, costly and rarely patient-centric.",
    "saas": "Businesses struggle with complex, expensive software that does not integrate well.",
}
DEFAULT_PROBLEM = "Existing solutions in the market are inadequate, expensive or difficult to use."

BUSINESS_MODELS: dict[str, str] = {
    "ai": "Subscription SaaS with usage-based pricing tiers.",
    "fintech": "Transaction-based revenue with premium features.",
    "healthcare": "B2B subscription with per-patient pricing.",
    "saas": "Monthly or annual subscription with tiered feature access.",
}
DEFAULT_BUSINESS_MODEL = "Revenue model based on value delivered to customers."


def _industry_key(params: dict[str, Any]) -> str:
    return str(params["industry"]).strip().lower()


# ============================================
# Handlers
# ============================================


def market_analysis(params: dict[str, Any]) -> dict[str, Any]:
    """Market size, growth and a five-year projection for one industry."""
    industry = _industry_key(params)
    data = MARKET_DATA.get(industry)
    if data is None:
        raise ToolExecutionError(
            f"No market data for industry '{industry}'. "
            f"Available: {', '.join(sorted(MARKET_DATA))}",
            tool_id="market-analysis",
        )

    growth = data["growth"]
    insights = []
    if growth > 0.2:
        insights.append("High growth sector with significant investment opportunities")
    if data["size"] > 100:
        insights.append("Large market size indicates strong demand and competition")

    if growth > 0.2:
        trend = "High Growth"
    elif growth > 0.1:
        trend = "Moderate Growth"
    else:
        trend = "Stable"

    return {
        "industry": industry,
        "region": params.get("region", "global"),
        "current_size": data["size"],
        "growth_rate": growth,
        "currency": data["currency"],
        "projected_size_5y": round(data["size"] * (1 + growth) ** 5),
        "market_trend": trend,
        "key_insights": insights,
    }


def valuation_estimator(params: dict[str, Any]) -> dict[str, Any]:
    """Revenue-multiple valuation with a +/-20% range.

    The industry multiple is scaled by ``1 + growth`` and by the stage
    multiplier (series-a is 1.0).
    """
    industry = _industry_key(params)
    revenue = float(params["revenue"])
    growth = float(params["growth"])
    stage = str(params.get("stage", "series-a")).lower()

    multiple = VALUATION_MULTIPLES.get(industry, DEFAULT_MULTIPLE)
    stage_multiplier = STAGE_MULTIPLIERS.get(stage, 1.0)
    final_multiple = multiple * (1 + growth) * stage_multiplier
    base = revenue * final_multiple

    return {
        "industry": industry,
        "revenue": revenue,
        "growth": growth,
        "stage": stage,
        "base_valuation": round(base, 2),
        "low": round(base * 0.8, 2),
        "high": round(base * 1.2, 2),
        "methodology": {
            "industry_multiple": multiple,
            "growth_adjustment": growth,
            "stage_adjustment": stage_multiplier,
            "final_multiple": round(final_multiple, 4),
        },
    }


def business_plan_generator(params: dict[str, Any]) -> dict[str, Any]:
    company = params["company"]
    industry = _industry_key(params)
    product = params["product"]
    stage = params.get("stage", "early")
    market = MARKET_DATA.get(industry)
    market_text = (
        f"The {industry} market is valued at ${market['size']}B with "
        f"{round(market['growth'] * 100)}% annual growth."
        if market
        else "The target market shows significant growth potential with increasing demand."
    )
    return {
        "executive_summary": (
            f"{company} is an innovative {industry} startup focused on delivering "
            f"{product} to its target market. We are in the {stage} stage and seeking "
            "strategic partnerships and funding to accelerate growth."
        ),
        "problem": PROBLEM_STATEMENTS.get(industry, DEFAULT_PROBLEM),
        "solution": (
            f"{product} addresses these challenges with a more efficient, cost-effective "
            f"and user-friendly alternative built for the {industry} market."
        ),
        "market_analysis": market_text,
        "business_model": BUSINESS_MODELS.get(industry, DEFAULT_BUSINESS_MODEL),
        "go_to_market": "Start with a focused beachhead segment, prove retention, then expand channels.",
        "financial_plan": "Reach default-alive within 18 months; raise to extend runway past 24 months.",
    }


def pitch_deck_generator(params: dict[str, Any]) -> dict[str, Any]:
    company = params["company"]
    industry = _industry_key(params)
    product = params["product"]
    traction = params.get("traction") or "Early pilots with design partners"
    market = MARKET_DATA.get(industry)
    market_point = (
        f"${market['size']}B market growing {round(market['growth'] * 100)}% per year"
        if market
        else "Large and growing addressable market"
    )
    slides = [
        {"title": f"{company}: Introduction", "points": [f"{product} for {industry}"]},
        {"title": "Problem & Solution", "points": [PROBLEM_STATEMENTS.get(industry, DEFAULT_PROBLEM), product]},
        {"title": "Market Opportunity", "points": [market_point]},
        {"title": "Traction & Validation", "points": [traction]},
        {"title": "Business Model", "points": [BUSINESS_MODELS.get(industry, DEFAULT_BUSINESS_MODEL)]},
        {"title": "Team", "points": ["Founders with domain and technical depth"]},
        {"title": "Financials & Ask", "points": ["Use of funds: product, go-to-market, hiring"]},
    ]
    return {"company": company, "slide_count": len(slides), "slides": slides}


def kpi_dashboard(params: dict[str, Any]) -> dict[str, Any]:
    """Commentary on ARR, growth, churn, CAC and runway."""
    growth = float(params["growth"])
    churn = float(params["churn"])
    cac = float(params["cac"])
    runway = float(params["runway"])

    commentary = []
    if growth < 0.1:
        commentary.append("Growth is below typical startup benchmarks; revisit marketing and product-market fit.")
    elif growth > 0.3:
        commentary.append("Growth is strong; make sure infrastructure and team can scale.")
    else:
        commentary.append("Growth is healthy for the current stage.")

    if churn > 0.2:
        commentary.append("Churn is high; invest in customer success and product improvements.")
    else:
        commentary.append("Churn is within an acceptable range; keep monitoring it.")

    if cac > 5000:
        commentary.append("CAC is high; revisit acquisition channels and conversion funnels.")
    else:
        commentary.append("CAC is reasonable; focus on scaling efficient channels.")

    if runway < 6:
        commentary.append("Runway is short; prioritize fundraising or cost reduction now.")
    elif runway < 12:
        commentary.append("Runway is adequate; start planning the next round.")
    else:
        commentary.append("Runway is healthy; focus on growth and efficiency.")

    return {
        "metrics": {
            "arr": float(params["arr"]),
            "growth": growth,
            "churn": churn,
            "cac": cac,
            "runway": runway,
        },
        "commentary": commentary,
    }


# ============================================
# Tool definitions
# ============================================

_INDUSTRY = {"type": "string", "minLength": 1, "description": "Industry (e.g. ai, fintech)"}


def build_business_tools() -> list[ToolDefinition]:
    """Return definitions for every built-in business tool."""
    return [
        ToolDefinition(
            id="market-analysis",
            name="Market Analysis",
            description="Estimated market size and growth for an industry",
            category="analysis",
            parameters={
                "type": "object",
                "properties": {
                    "industry": _INDUSTRY,
                    "region": {"type": "string"},
                },
                "required": ["industry"],
            },
            handler=market_analysis,
        ),
        ToolDefinition(
            id="valuation-estimator",
            name="Valuation Estimator",
            description="Valuation range from revenue (USD millions), growth and industry multiples",
            category="finance",
            parameters={
                "type": "object",
                "properties": {
                    "industry": _INDUSTRY,
                    "revenue": {"type": "number", "minimum": 0},
                    "growth": {"type": "number", "minimum": -1},
                    "stage": {"type": "string", "enum": sorted(STAGE_MULTIPLIERS)},
                },
                "required": ["industry", "revenue", "growth"],
            },
            handler=valuation_estimator,
        ),
        ToolDefinition(
            id="business-plan-generator",
            name="Business Plan Generator",
            description="Outline of a business plan for a company and product",
            category="planning",
            parameters={
                "type": "object",
                "properties": {
                    "company": {"type": "string", "minLength": 1},
                    "industry": _INDUSTRY,
                    "product": {"type": "string", "minLength": 1},
                    "stage": {"type": "string"},
                },
                "required": ["company", "industry", "product"],
            },
            handler=business_plan_generator,
        ),
        ToolDefinition(
            id="pitch-deck-generator",
            name="Pitch Deck Generator",
            description="Seven-slide pitch deck outline",
            category="planning",
            parameters={
                "type": "object",
                "properties": {
                    "company": {"type": "string", "minLength": 1},
                    "industry": _INDUSTRY,
                    "product": {"type": "string", "minLength": 1},
                    "traction": {"type": "string"},
                },
                "required": ["company", "industry", "product"],
            },
            handler=pitch_deck_generator,
        ),
        ToolDefinition(
            id="kpi-dashboard",
            name="KPI Dashboard",
            description="Commentary on ARR, growth, churn, CAC and runway (months)",
            category="finance",
            parameters={
                "type": "object",
                "properties": {
                    "arr": {"type": "number", "minimum": 0},
                    "growth": {"type": "number"},
                    "churn": {"type": "number", "minimum": 0, "maximum": 1},
                    "cac": {"type": "number", "minimum": 0},
                    "runway": {"type": "number", "minimum": 0},
                },
                "required": ["arr", "growth", "churn", "cac", "runway"],
            },
            handler=kpi_dashboard,
        ),
    ]
