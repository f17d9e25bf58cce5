"""Tool registry and built-in tools."""

from typing import Optional

from .business import build_business_tools
from .knowledge_base import KnowledgeBase, KnowledgeItem
from .registry import ToolRegistry


def build_default_registry(knowledge_base: Optional[KnowledgeBase] = None) -> ToolRegistry:
    """Registry preloaded with the business tools and knowledge search."""
    registry = ToolRegistry(build_business_tools())
    registry.register_tool((knowledge_base or KnowledgeBase()).as_tool())
    return registry


__all__ = [
    "KnowledgeBase",
    "KnowledgeItem",
    "ToolRegistry",
    "build_business_tools",
    "build_default_registry",
]
