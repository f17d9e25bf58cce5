"""
Tests for provider construction and the synthetic fallback provider.

Tests cover:
- Adapter selection by config
- Duplicate and disabled provider handling
- Fallback templates and the never-fails contract
"""

import pytest

from src.advisor.agent.domain.entities import (
    ChatMessage,
    LLMRequest,
    ProviderConfig,
    ProviderKind,
)
from src.advisor.agent.providers import FallbackProvider, create_provider, create_providers
from src.advisor.agent.providers.fallback import (
    DEFAULT_FALLBACK_RESPONSE,
    FALLBACK_PROVIDER_ID,
    select_fallback_text,
)
from src.advisor.core.exceptions import ConfigurationError

pytest.importorskip("httpx")


def ollama(id="ollama", enabled=True):
    return ProviderConfig(
        id=id, adapter="ollama", kind="local", model="llama3.1:8b", enabled=enabled
    )


# =============================================================================
# Factory
# =============================================================================


class TestCreateProvider:
    """Tests for create_provider."""

    def test_builds_ollama_adapter(self):
        """Ollama configs produce an OllamaProvider."""
        from src.advisor.agent.providers.ollama import OllamaProvider

        provider = create_provider(ollama())

        assert isinstance(provider, OllamaProvider)
        assert provider.provider_id == "ollama"
        assert provider.kind == ProviderKind.LOCAL

    def test_builds_openai_compatible_adapter(self):
        """OpenAI adapter covers OpenAI-compatible backends."""
        pytest.importorskip("openai")
        from src.advisor.agent.providers.openai import OpenAIProvider

        provider = create_provider(
            ProviderConfig(
                id="vllm",
                adapter="openai",
                kind="local",
                model="llama",
                base_url="http://localhost:8001/v1",
            )
        )

        assert isinstance(provider, OpenAIProvider)

    def test_builds_fallback_adapter(self):
        """Fallback configs produce a synthetic provider."""
        provider = create_provider(
            ProviderConfig(id="canned", adapter="fallback", kind="synthetic", model="t")
        )

        assert isinstance(provider, FallbackProvider)
        assert provider.is_synthetic


class TestCreateProviders:
    """Tests for create_providers."""

    def test_duplicate_ids_rejected(self):
        """Two configs with the same id are a configuration error."""
        with pytest.raises(ConfigurationError):
            create_providers([ollama(), ollama()])

    def test_disabled_providers_skipped(self):
        """Disabled configs are not instantiated."""
        providers = create_providers([ollama(), ollama(id="backup", enabled=False)])

        assert [p.provider_id for p in providers] == ["ollama"]


# =============================================================================
# Fallback provider
# =============================================================================


class TestFallbackTemplates:
    """Tests for keyword template selection."""

    @pytest.mark.parametrize(
        "message,expected_word",
        [
            ("Hello there", "Hello!"),
            ("How do I raise a seed round?", "investing"),
            ("We build machine learning tools", "AI"),
            ("I am a founder", "company"),
            ("Can you email me?", "contact form"),
        ],
    )
    def test_keyword_templates(self, message, expected_word):
        """Messages select the template of their first matching group."""
        assert expected_word in select_fallback_text(message)

    def test_keywords_match_whole_words(self):
        """'ai' inside 'maintain' does not select the AI template."""
        assert select_fallback_text("We maintain spreadsheets") == DEFAULT_FALLBACK_RESPONSE

    def test_default_response(self):
        assert select_fallback_text("What is the weather?") == DEFAULT_FALLBACK_RESPONSE


class TestFallbackProvider:
    """Tests for the always-available provider."""

    @pytest.mark.asyncio
    async def test_always_healthy(self):
        assert await FallbackProvider().health_check() is True

    @pytest.mark.asyncio
    async def test_chat_uses_last_user_message(self):
        """The template is chosen from the most recent user turn."""
        provider = FallbackProvider()
        request = LLMRequest(
            messages=[
                ChatMessage(role="user", content="Hello"),
                ChatMessage(role="assistant", content="Hi!"),
                ChatMessage(role="user", content="How much funding do you invest?"),
            ]
        )

        response = await provider.chat(request)

        assert response.provider == FALLBACK_PROVIDER_ID
        assert response.is_fallback
        assert "investing" in response.text
        assert response.tokens_used > 0

    @pytest.mark.asyncio
    async def test_chat_with_no_messages_never_fails(self):
        """An empty request still produces the default reply."""
        response = await FallbackProvider().chat(LLMRequest(messages=[]))

        assert response.text == DEFAULT_FALLBACK_RESPONSE
