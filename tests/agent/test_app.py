"""
Tests for the application root.

Tests cover:
- Registry reload swapping agents and providers together
- Rejected registry files leaving the running configuration untouched
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.advisor.agent import app as app_module
from src.advisor.agent.app import AdvisorApp
from src.advisor.agent.providers.fallback import FallbackProvider
from src.advisor.core.config import AdvisorSettings
from src.advisor.core.exceptions import ConfigurationError

AGENTS_ONLY_YAML = """
agents:
  - id: meta3-research
    kind: research
  - id: general-conversation
    kind: general
"""

WITH_PROVIDERS_YAML = """
providers:
  - id: ollama
    adapter: ollama
    kind: local
    model: llama3.1:8b
    base_url: http://localhost:11434
  - id: ollama-gpu
    adapter: ollama
    kind: local
    model: qwen2.5:14b
    base_url: http://gpu-box:11434

agents:
  - id: meta3-research
    kind: research
  - id: meta3-financial
    kind: financial
  - id: general-conversation
    kind: general
"""

SINGLE_PROVIDER_YAML = """
providers:
  - id: ollama
    adapter: ollama
    kind: local
    model: llama3.1:8b
    base_url: http://localhost:11434

agents:
  - id: general-conversation
    kind: general
"""

NO_DEFAULT_AGENT_YAML = """
providers:
  - id: ollama
    adapter: ollama
    kind: local
    model: llama3.1:8b
    base_url: http://localhost:11434

agents:
  - id: meta3-research
    kind: research
"""


@pytest.fixture
def registry_file(tmp_path):
    path = tmp_path / "registry.yaml"
    path.write_text(AGENTS_ONLY_YAML)
    return path


@pytest.fixture
def advisor(registry_file):
    settings = AdvisorSettings(
        preferred_provider=None,
        priority_order=[],
        registry_path=str(registry_file),
    )
    return AdvisorApp.create(settings, providers=[FallbackProvider()])


def agent_ids(advisor):
    return [a["id"] for a in advisor.orchestrator.get_agent_list()]


class TestRegistryReload:
    """Tests for AdvisorApp.reload_registry."""

    @pytest.mark.asyncio
    async def test_reload_swaps_agents_and_providers(self, advisor, registry_file):
        fallback = advisor.llm_service.fallback_provider
        registry_file.write_text(WITH_PROVIDERS_YAML)

        agents = await advisor.reload_registry()

        assert agents == ["meta3-research", "meta3-financial", "general-conversation"]
        assert advisor.llm_service.provider_ids == ["ollama", "ollama-gpu"]
        assert advisor.llm_service.fallback_provider is fallback
        assert [s.provider_id for s in advisor.llm_service.get_provider_status()] == [
            "ollama",
            "ollama-gpu",
            "fallback",
        ]
        assert len(advisor.registry.snapshot.providers) == 2
        await advisor.aclose()

    @pytest.mark.asyncio
    async def test_replaced_providers_are_closed(self, advisor, registry_file):
        registry_file.write_text(WITH_PROVIDERS_YAML)
        await advisor.reload_registry()
        old = advisor.llm_service.get_provider("ollama-gpu")
        old.aclose = AsyncMock()

        registry_file.write_text(SINGLE_PROVIDER_YAML)
        await advisor.reload_registry()

        old.aclose.assert_awaited_once()
        assert advisor.llm_service.provider_ids == ["ollama"]
        assert advisor.llm_service.get_provider("ollama") is not old
        await advisor.aclose()

    @pytest.mark.asyncio
    async def test_rejected_file_keeps_running_configuration(
        self, advisor, registry_file, monkeypatch
    ):
        """A registry without the default agent changes nothing at all."""
        previous = advisor.registry.snapshot
        previous_agents = agent_ids(advisor)
        built = MagicMock()
        built.provider_id = "ollama"
        built.is_synthetic = False
        built.aclose = AsyncMock()
        monkeypatch.setattr(app_module, "create_providers", lambda configs: [built])
        registry_file.write_text(NO_DEFAULT_AGENT_YAML)

        with pytest.raises(ConfigurationError):
            await advisor.reload_registry()

        assert advisor.registry.snapshot is previous
        assert [a.id for a in advisor.registry.snapshot.agents] == [
            "meta3-research",
            "general-conversation",
        ]
        assert agent_ids(advisor) == previous_agents
        assert advisor.llm_service.provider_ids == []
        built.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_agents_only_file_keeps_providers(self, advisor, registry_file):
        provider_ids = advisor.llm_service.provider_ids
        registry_file.write_text(AGENTS_ONLY_YAML.replace("kind: research", "kind: financial"))

        await advisor.reload_registry()

        assert advisor.llm_service.provider_ids == provider_ids
        assert advisor.registry.snapshot.agents[0].kind.value == "financial"

    @pytest.mark.asyncio
    async def test_reload_without_registry_file(self):
        settings = AdvisorSettings(preferred_provider=None, priority_order=[], registry_path=None)
        advisor = AdvisorApp.create(settings, providers=[FallbackProvider()])

        agents = await advisor.reload_registry()

        assert len(agents) == 4
