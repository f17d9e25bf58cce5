"""
Tests for the YAML agent/provider registry.
"""

import pytest
import yaml

from src.advisor.agent.admin import (
    RegistryLoader,
    load_registry,
    save_registry,
    update_agent,
)
from src.advisor.agent.agents import AgentKind
from src.advisor.agent.domain.entities import ProviderAdapterType, ProviderKind
from src.advisor.core.exceptions import ConfigurationError

REGISTRY_YAML = """
providers:
  - id: ollama
    adapter: ollama
    kind: local
    model: llama3.1:8b
    base_url: http://localhost:11434
  - id: groq
    adapter: openai
    kind: cloud
    model: llama-3.1-8b-instant
    base_url: https://api.groq.com/openai/v1
    api_key_env: TEST_GROQ_KEY
    timeout: 15

agents:
  - id: meta3-research
    kind: research
    priority: 5
  - id: venture-launch
    kind: venture_launch
    preferred_provider: groq
    keywords: [launch, mvp]
  - id: general-conversation
    kind: general
    enabled: false
"""


@pytest.fixture
def registry_file(tmp_path):
    path = tmp_path / "registry.yaml"
    path.write_text(REGISTRY_YAML)
    return path


class TestLoadRegistry:
    """Tests for reading registry files."""

    def test_load(self, registry_file, monkeypatch):
        monkeypatch.setenv("TEST_GROQ_KEY", "gsk-test")

        snapshot = load_registry(registry_file)

        assert [a.id for a in snapshot.agents] == [
            "meta3-research",
            "venture-launch",
            "general-conversation",
        ]
        assert [a.id for a in snapshot.enabled_agents()] == ["meta3-research", "venture-launch"]
        assert snapshot.agents[1].kind == AgentKind.VENTURE_LAUNCH
        assert snapshot.source == str(registry_file)

        configs = snapshot.provider_configs()
        assert configs[0].adapter == ProviderAdapterType.OLLAMA
        assert configs[0].api_key is None
        assert configs[1].kind == ProviderKind.CLOUD
        assert configs[1].api_key == "gsk-test"
        assert configs[1].timeout == 15

    def test_capability_overrides_only_set_fields(self, registry_file):
        entry = load_registry(registry_file).get_agent("venture-launch")

        assert entry.capability_overrides() == {
            "id": "venture-launch",
            "keywords": ["launch", "mvp"],
            "preferred_provider": "groq",
        }

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        snapshot = load_registry(path)

        assert snapshot.agents == ()
        assert snapshot.providers == ()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_registry(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("agents: [unclosed")

        with pytest.raises(ConfigurationError, match="not valid YAML"):
            load_registry(path)

    def test_unknown_agent_kind(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("agents:\n  - id: oracle\n    kind: psychic\n")

        with pytest.raises(ConfigurationError, match="Invalid registry file"):
            load_registry(path)

    def test_duplicate_agent_ids(self, tmp_path):
        path = tmp_path / "dupes.yaml"
        path.write_text(
            "agents:\n"
            "  - {id: general-conversation, kind: general}\n"
            "  - {id: general-conversation, kind: research}\n"
        )

        with pytest.raises(ConfigurationError, match="Duplicate agent ids"):
            load_registry(path)


class TestEditing:
    """Tests for admin edits and persistence."""

    def test_update_agent_returns_new_snapshot(self, registry_file):
        snapshot = load_registry(registry_file)

        updated = update_agent(snapshot, "meta3-research", {"priority": 8, "model": "llama-70b"})

        assert updated.get_agent("meta3-research").priority == 8
        assert updated.get_agent("meta3-research").model == "llama-70b"
        assert snapshot.get_agent("meta3-research").priority == 5

    def test_update_cannot_rename(self, registry_file):
        snapshot = load_registry(registry_file)

        updated = update_agent(snapshot, "meta3-research", {"id": "renamed"})

        assert updated.get_agent("meta3-research") is not None
        assert updated.get_agent("renamed") is None

    def test_update_unknown_agent(self, registry_file):
        with pytest.raises(ConfigurationError):
            update_agent(load_registry(registry_file), "nobody", {"priority": 1})

    def test_update_invalid_value(self, registry_file):
        with pytest.raises(ConfigurationError):
            update_agent(load_registry(registry_file), "meta3-research", {"priority": 500})

    def test_save_round_trips(self, registry_file, tmp_path):
        snapshot = load_registry(registry_file)
        out = tmp_path / "saved.yaml"

        save_registry(out, snapshot)

        raw = yaml.safe_load(out.read_text())
        assert raw["providers"][1]["api_key_env"] == "TEST_GROQ_KEY"
        assert raw["agents"][1]["kind"] == "venture_launch"
        assert [a.id for a in load_registry(out).agents] == [a.id for a in snapshot.agents]


class TestRegistryLoader:
    """Tests for the snapshot holder."""

    def test_snapshot_loaded_once(self, registry_file):
        loader = RegistryLoader(registry_file)

        first = loader.snapshot
        registry_file.write_text("agents: []\n")

        assert loader.snapshot is first
        assert loader.load().agents == ()

    def test_failed_load_keeps_previous_snapshot(self, registry_file):
        loader = RegistryLoader(registry_file)
        first = loader.snapshot
        registry_file.write_text("agents: [unclosed")

        with pytest.raises(ConfigurationError):
            loader.load()

        assert loader.snapshot is first

    def test_load_does_not_replace_snapshot(self, registry_file):
        """A read candidate only becomes current once committed."""
        loader = RegistryLoader(registry_file)
        first = loader.snapshot
        registry_file.write_text("agents:\n  - id: meta3-research\n    kind: research\n")

        candidate = loader.load()

        assert [a.id for a in candidate.agents] == ["meta3-research"]
        assert loader.snapshot is first

        loader.commit(candidate)

        assert loader.snapshot is candidate

    def test_update_agent_persists(self, registry_file):
        loader = RegistryLoader(registry_file)

        loader.update_agent("general-conversation", {"enabled": True})

        assert len(load_registry(registry_file).enabled_agents()) == 3
        assert len(loader.snapshot.enabled_agents()) == 3
