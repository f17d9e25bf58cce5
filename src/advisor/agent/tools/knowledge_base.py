"""
In-memory knowledge base and its search tool.

Scoring is substring based: a title hit is worth 10, a content hit 5, and
each matching tag 3. Results are ordered by score, highest first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Optional

from ..domain.entities import ToolDefinition

logger = logging.getLogger(__name__)

TITLE_WEIGHT = 10
CONTENT_WEIGHT = 5
TAG_WEIGHT = 3


@dataclass
class KnowledgeItem:
    """One knowledge base entry."""

    id: str
    title: str
    content: str
    category: str
    tags: list[str] = field(default_factory=list)
    last_updated: datetime = field(default_factory=datetime.utcnow)

    def score(self, query: str) -> int:
        query = query.lower()
        score = 0
        if query in self.title.lower():
            score += TITLE_WEIGHT
        if query in self.content.lower():
            score += CONTENT_WEIGHT
        score += TAG_WEIGHT * sum(1 for tag in self.tags if query in tag.lower())
        return score


DEFAULT_KNOWLEDGE: list[KnowledgeItem] = [
    KnowledgeItem(
        id="investment-criteria",
        title="Investment Criteria",
        content=(
            "Early-stage investments in AI, blockchain and emerging technologies. "
            "Investment range $100K - $2M, pre-seed to Series A. Sectors: AI/ML, "
            "blockchain, fintech, SaaS, healthtech. Key criteria: strong technical "
            "team, scalable technology, $1B+ TAM, defensible moat, early traction. "
            "Process: screening (2 weeks), due diligence (4-6 weeks), investment "
            "committee (1 week), term sheet and closing (2-3 weeks)."
        ),
        category="investment",
        tags=["criteria", "process", "requirements"],
    ),
    KnowledgeItem(
        id="ai-market-trends",
        title="AI Market Trends",
        content=(
            "Generative AI enterprise adoption is accelerating, with most enterprises "
            "piloting solutions. AI infrastructure spending exceeds $50B and edge AI "
            "deployment grows about 40% a year. Vertical AI markets: healthcare $45B, "
            "financial services $35B, manufacturing $28B. Regulation is maturing with "
            "the EU AI Act."
        ),
        category="market-research",
        tags=["ai", "trends", "market"],
    ),
    KnowledgeItem(
        id="startup-funding-stages",
        title="Startup Funding Stages Guide",
        content=(
            "Pre-seed ($50K - $500K): validate the problem and build an MVP; angels and "
            "micro-VCs; 10-20% equity. Seed ($500K - $3M): initial revenue, scale the "
            "team; 15-25% equity. Series A ($3M - $15M): strong revenue growth and "
            "market validation; 20-30% equity. Series B ($15M - $50M): proven model "
            "and expansion. Seed metrics: $10K+ MRR with 20% monthly growth."
        ),
        category="funding",
        tags=["funding", "stages", "investment", "startup"],
    ),
]


class KnowledgeBase:
    """Keyword-searchable collection of knowledge items."""

    def __init__(self, items: Optional[Iterable[KnowledgeItem]] = None):
        self._items: dict[str, KnowledgeItem] = {}
        for item in DEFAULT_KNOWLEDGE if items is None else items:
            self.add(item)

    def add(self, item: KnowledgeItem) -> None:
        self._items[item.id] = item

    def categories(self) -> list[str]:
        return sorted({item.category for item in self._items.values()})

    def search(
        self, query: str, category: Optional[str] = None, top_k: int = 3
    ) -> list[dict[str, Any]]:
        """Return the best-scoring items for ``query``.

        Multi-word queries are scored word by word and summed, so a query
        does not need to appear verbatim.
        """
        terms = [t for t in query.lower().split() if len(t) > 2] or [query.lower()]
        scored = []
        for item in self._items.values():
            if category and item.category != category:
                continue
            score = sum(item.score(term) for term in terms)
            if score > 0:
                scored.append((score, item))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [
            {
                "id": item.id,
                "title": item.title,
                "category": item.category,
                "content": item.content,
                "relevance_score": score,
            }
            for score, item in scored[:top_k]
        ]

    def as_tool(self) -> ToolDefinition:
        """Expose ``search`` as the knowledge-base-search tool."""

        def handler(params: dict[str, Any]) -> dict[str, Any]:
            results = self.search(
                params["query"],
                category=params.get("category"),
                top_k=params.get("topK", 3),
            )
            return {"query": params["query"], "results": results}

        return ToolDefinition(
            id="knowledge-base-search",
            name="Knowledge Base Search",
            description="Search investment criteria, market trends and funding guides",
            category="knowledge",
            parameters={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "minLength": 1},
                    "category": {"type": "string"},
                    "topK": {"type": "integer", "minimum": 1, "maximum": 10},
                },
                "required": ["query"],
            },
            handler=handler,
        )
