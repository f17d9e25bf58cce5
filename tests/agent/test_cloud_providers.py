"""
Unit tests for the OpenAI-compatible and Anthropic providers.

SDK clients are replaced with mocks; tests check request shaping,
response normalization and error mapping.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.advisor.agent.domain.entities import ChatMessage, LLMRequest, ProviderConfig
from src.advisor.agent.providers.anthropic import ANTHROPIC_AVAILABLE, AnthropicProvider
from src.advisor.agent.providers.openai import OPENAI_AVAILABLE, OpenAIProvider
from src.advisor.core.exceptions import ProviderTimeoutError, ProviderUnavailableError

httpx = pytest.importorskip("httpx")


def make_request(*contents, system_prompt=None):
    roles = ["user", "assistant"]
    return LLMRequest(
        messages=[ChatMessage(role=roles[i % 2], content=c) for i, c in enumerate(contents)],
        system_prompt=system_prompt,
        max_tokens=64,
    )


# =============================================================================
# OpenAI-compatible
# =============================================================================


@pytest.fixture
def groq_config():
    return ProviderConfig(
        id="groq",
        adapter="openai",
        kind="cloud",
        model="llama-3.1-8b-instant",
        base_url="https://api.groq.com/openai/v1",
        api_key="gsk-test",
    )


@pytest.fixture
def openai_client():
    """Mock AsyncOpenAI client."""
    client = MagicMock()
    client.models.list = AsyncMock(return_value=SimpleNamespace(data=[]))
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            model="llama-3.1-8b-instant",
            choices=[
                SimpleNamespace(
                    message=SimpleNamespace(content="Focus on net revenue retention."),
                    finish_reason="stop",
                )
            ],
            usage=SimpleNamespace(total_tokens=57),
        )
    )
    client.close = AsyncMock()
    return client


@pytest.mark.skipif(not OPENAI_AVAILABLE, reason="openai package not installed")
class TestOpenAIProvider:
    """Tests for the OpenAI-compatible adapter."""

    @pytest.mark.asyncio
    async def test_health_check_lists_models(self, groq_config, openai_client):
        """Health check succeeds when the models endpoint answers."""
        provider = OpenAIProvider(groq_config, client=openai_client)

        assert await provider.health_check() is True
        openai_client.models.list.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_health_check_without_key_is_unhealthy(self, groq_config, openai_client):
        """A provider with no key is never probed."""
        groq_config.api_key = None
        provider = OpenAIProvider(groq_config, client=openai_client)

        assert await provider.health_check() is False
        openai_client.models.list.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_health_check_swallows_errors(self, groq_config, openai_client):
        """Probe errors report unhealthy instead of raising."""
        openai_client.models.list.side_effect = RuntimeError("network down")
        provider = OpenAIProvider(groq_config, client=openai_client)

        assert await provider.health_check() is False

    @pytest.mark.asyncio
    async def test_chat_normalizes_response(self, groq_config, openai_client):
        """Completion is mapped onto LLMResponse."""
        provider = OpenAIProvider(groq_config, client=openai_client)

        response = await provider.chat(make_request("What KPIs matter?", system_prompt="Be brief."))

        kwargs = openai_client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "llama-3.1-8b-instant"
        assert kwargs["messages"][0] == {"role": "system", "content": "Be brief."}
        assert kwargs["max_tokens"] == 64
        assert response.text == "Focus on net revenue retention."
        assert response.provider == "groq"
        assert response.tokens_used == 57

    @pytest.mark.asyncio
    async def test_status_error_maps_to_unavailable(self, groq_config, openai_client):
        """HTTP status errors become ProviderUnavailableError."""
        import openai

        request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
        openai_client.chat.completions.create.side_effect = openai.APIStatusError(
            "rate limited",
            response=httpx.Response(429, request=request),
            body=None,
        )
        provider = OpenAIProvider(groq_config, client=openai_client)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await provider.chat(make_request("hi"))

        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_timeout_maps_to_provider_timeout(self, groq_config, openai_client):
        """SDK timeouts become ProviderTimeoutError."""
        import openai

        request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
        openai_client.chat.completions.create.side_effect = openai.APITimeoutError(request=request)
        provider = OpenAIProvider(groq_config, client=openai_client)

        with pytest.raises(ProviderTimeoutError):
            await provider.chat(make_request("hi"))

    @pytest.mark.asyncio
    async def test_empty_choices_raise_unavailable(self, groq_config, openai_client):
        """A completion with no choices is a provider failure."""
        openai_client.chat.completions.create.return_value = SimpleNamespace(
            model="x", choices=[], usage=None
        )
        provider = OpenAIProvider(groq_config, client=openai_client)

        with pytest.raises(ProviderUnavailableError):
            await provider.chat(make_request("hi"))

    @pytest.mark.asyncio
    async def test_aclose_closes_client(self, groq_config, openai_client):
        provider = OpenAIProvider(groq_config, client=openai_client)

        await provider.aclose()

        openai_client.close.assert_awaited_once()


# =============================================================================
# Anthropic
# =============================================================================


@pytest.fixture
def anthropic_config():
    return ProviderConfig(
        id="anthropic",
        adapter="anthropic",
        kind="cloud",
        model="claude-3-5-haiku-latest",
        api_key="sk-ant-test",
    )


@pytest.fixture
def anthropic_client():
    """Mock AsyncAnthropic client."""
    client = MagicMock()
    client.models.list = AsyncMock(return_value=SimpleNamespace(data=[]))
    client.messages.create = AsyncMock(
        return_value=SimpleNamespace(
            model="claude-3-5-haiku-latest",
            content=[
                SimpleNamespace(type="text", text="Start with a "),
                SimpleNamespace(type="text", text="problem statement."),
            ],
            stop_reason="end_turn",
            usage=SimpleNamespace(input_tokens=20, output_tokens=8),
        )
    )
    client.close = AsyncMock()
    return client


@pytest.mark.skipif(not ANTHROPIC_AVAILABLE, reason="anthropic package not installed")
class TestAnthropicProvider:
    """Tests for the Anthropic adapter."""

    @pytest.mark.asyncio
    async def test_chat_passes_system_separately(self, anthropic_config, anthropic_client):
        """System prompt goes in the system field, not the message list."""
        provider = AnthropicProvider(anthropic_config, client=anthropic_client)

        response = await provider.chat(make_request("Draft a plan", system_prompt="Be concise."))

        kwargs = anthropic_client.messages.create.await_args.kwargs
        assert kwargs["system"] == "Be concise."
        assert all(m["role"] != "system" for m in kwargs["messages"])
        assert response.text == "Start with a problem statement."
        assert response.tokens_used == 28
        assert response.finish_reason == "end_turn"

    @pytest.mark.asyncio
    async def test_consecutive_user_turns_are_merged(self, anthropic_config, anthropic_client):
        """Consecutive same-role messages are merged into one turn."""
        provider = AnthropicProvider(anthropic_config, client=anthropic_client)
        request = LLMRequest(
            messages=[
                ChatMessage(role="user", content="First"),
                ChatMessage(role="user", content="Second"),
                ChatMessage(role="assistant", content="Reply"),
            ]
        )

        await provider.chat(request)

        messages = anthropic_client.messages.create.await_args.kwargs["messages"]
        assert messages == [
            {"role": "user", "content": "First\n\nSecond"},
            {"role": "assistant", "content": "Reply"},
        ]

    @pytest.mark.asyncio
    async def test_no_text_raises_unavailable(self, anthropic_config, anthropic_client):
        """A reply without text blocks is a provider failure."""
        anthropic_client.messages.create.return_value = SimpleNamespace(
            model="m", content=[], stop_reason="end_turn", usage=None
        )
        provider = AnthropicProvider(anthropic_config, client=anthropic_client)

        with pytest.raises(ProviderUnavailableError):
            await provider.chat(make_request("hi"))

    @pytest.mark.asyncio
    async def test_status_error_maps_to_unavailable(self, anthropic_config, anthropic_client):
        """HTTP status errors become ProviderUnavailableError."""
        import anthropic

        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        anthropic_client.messages.create.side_effect = anthropic.APIStatusError(
            "overloaded",
            response=httpx.Response(529, request=request),
            body=None,
        )
        provider = AnthropicProvider(anthropic_config, client=anthropic_client)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await provider.chat(make_request("hi"))

        assert exc_info.value.status_code == 529

    @pytest.mark.asyncio
    async def test_health_check_without_key_is_unhealthy(self, anthropic_config, anthropic_client):
        anthropic_config.api_key = None
        provider = AnthropicProvider(anthropic_config, client=anthropic_client)

        assert await provider.health_check() is False
