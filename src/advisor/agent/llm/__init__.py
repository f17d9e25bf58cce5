"""LLM service: provider selection, failover and token budgeting."""

from .service import LLMService
from .token_budget import estimate_tokens, truncate_to_budget

__all__ = ["LLMService", "estimate_tokens", "truncate_to_budget"]
