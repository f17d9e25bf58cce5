"""
Token budgeting for LLM requests.

Token counts are estimated from character length (about four characters
per token plus a small per-message overhead), which is close enough to
keep requests under a backend's context window without a tokenizer.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from ..domain.entities import ChatMessage

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4
MESSAGE_OVERHEAD_TOKENS = 4


def estimate_tokens(text: Optional[str]) -> int:
    """Estimate the token count of a string."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_message_tokens(message: ChatMessage) -> int:
    return estimate_tokens(message.content) + MESSAGE_OVERHEAD_TOKENS


def truncate_to_budget(
    messages: list[ChatMessage],
    max_tokens: int,
    system_prompt: Optional[str] = None,
) -> list[ChatMessage]:
    """Drop the oldest messages until the request fits ``max_tokens``.

    The most recent message is always kept, even when it alone exceeds
    the budget.

    Args:
        messages: Messages in chronological order
        max_tokens: Budget for system prompt plus messages
        system_prompt: System prompt that will accompany the messages

    Returns:
        A new list holding the most recent messages that fit
    """
    if not messages:
        return []

    budget = max_tokens - estimate_tokens(system_prompt)
    kept: list[ChatMessage] = []
    used = 0
    for message in reversed(messages):
        cost = estimate_message_tokens(message)
        if kept and used + cost > budget:
            break
        kept.append(message)
        used += cost

    kept.reverse()
    dropped = len(messages) - len(kept)
    if dropped:
        logger.debug(f"Truncated {dropped} oldest message(s) to fit {max_tokens} tokens")
    return kept
