"""
Synthetic fallback provider.

Answers from static, context-aware templates without touching the network.
It is registered like any other provider and always sits last in the
failover order, so ``LLMService.generate_response`` never runs out of
candidates.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Optional

from ..domain.entities import (
    LLMRequest,
    LLMResponse,
    MessageRole,
    ProviderAdapterType,
    ProviderConfig,
    ProviderKind,
)
from .base import BaseProvider

logger = logging.getLogger(__name__)

FALLBACK_PROVIDER_ID = "fallback"
FALLBACK_MODEL = "fallback-agent"

# Checked in order against the last user message; first match wins
FALLBACK_TEMPLATES: list[tuple[tuple[str, ...], str]] = [
    (
        ("hello", "hi", "hey"),
        "Hello! I'm the venture advisor assistant. I'm running in fallback mode "
        "while the language model backends are unavailable, but I can still help "
        "with questions about our investment focus and how we support founders. "
        "What would you like to know?",
    ),
    (
        ("investment", "funding", "invest", "raise"),
        "We focus on AI and deep tech, typically investing $100K-$2M in seed to "
        "Series A rounds for teams with strong technical foundations. Would you "
        "like to hear more about our investment criteria or how to apply?",
    ),
    (
        ("ai", "artificial intelligence", "machine learning"),
        "We back companies building the next generation of AI, from foundational "
        "models to applied products in computer vision, language and robotics. "
        "Which area of AI are you working on?",
    ),
    (
        ("startup", "company", "founder"),
        "Building a company is a long road. Beyond capital we offer strategic "
        "support, technical guidance and access to a network of operators. What "
        "stage is your startup at?",
    ),
    (
        ("help", "support"),
        "I'm here to help. I can answer questions about our investment process, "
        "AI technology and startup strategy. What do you need help with?",
    ),
    (
        ("contact", "reach", "email"),
        "You can reach the team through the contact form on our website, or "
        "apply directly through the application portal if you are raising. How "
        "else can I help?",
    ),
]

DEFAULT_FALLBACK_RESPONSE = (
    "Thanks for your message! I'm running in fallback mode while the language "
    "model backends are being configured. I can still help with questions about "
    "our investment focus, AI technology and startup guidance. Could you tell me "
    "a bit more about what you're looking for?"
)


def _matches(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


def select_fallback_text(message: str) -> str:
    """Return the template matching ``message``, or the default reply."""
    lowered = message.lower()
    for keywords, response in FALLBACK_TEMPLATES:
        if any(_matches(lowered, keyword) for keyword in keywords):
            return response
    return DEFAULT_FALLBACK_RESPONSE


class FallbackProvider(BaseProvider):
    """Always-available provider built from canned templates.

    ``chat`` cannot fail: it never performs I/O and degrades to the
    default template for any input, including an empty message list.
    """

    def __init__(self, config: Optional[ProviderConfig] = None):
        super().__init__(
            config
            or ProviderConfig(
                id=FALLBACK_PROVIDER_ID,
                adapter=ProviderAdapterType.FALLBACK,
                kind=ProviderKind.SYNTHETIC,
                model=FALLBACK_MODEL,
            )
        )

    async def health_check(self) -> bool:
        return True

    async def chat(self, request: LLMRequest) -> LLMResponse:
        started = time.perf_counter()
        last_user = next(
            (m.content for m in reversed(request.messages) if m.role == MessageRole.USER),
            "",
        )
        text = select_fallback_text(last_user)
        prompt_chars = sum(len(m.content) for m in request.messages)
        logger.info(f"Serving fallback response for {len(request.messages)} message(s)")
        return self._build_response(
            text,
            started,
            tokens_used=(prompt_chars + len(text)) // 4,
            finish_reason="stop",
        )
