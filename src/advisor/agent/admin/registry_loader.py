"""
Agent and provider registry file.

Reads the static agent/provider configuration from YAML, validates it with
pydantic, and exposes it as an immutable snapshot. Admin edits go through
``update_agent`` + ``save_registry``; running services pick them up only
on an explicit ``reload``.

File shape:

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
        api_key_env: GROQ_API_KEY

    agents:
      - id: meta3-research
        kind: research
        priority: 5
        specialties: [market research]
        preferred_provider: groq
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from ...core.exceptions import ConfigurationError
from ..agents import AgentKind
from ..domain.entities import ProviderAdapterType, ProviderConfig, ProviderKind

logger = logging.getLogger(__name__)


# ============================================
# File schema
# ============================================


class AgentEntry(BaseModel):
    """One agent in the registry file."""

    id: str = Field(..., pattern=r"^[a-z][a-z0-9-]*$")
    kind: AgentKind
    name: Optional[str] = None
    description: Optional[str] = None
    specialties: Optional[list[str]] = None
    keywords: Optional[list[str]] = None
    priority: Optional[int] = Field(None, ge=0, le=100)
    tools: Optional[list[str]] = None
    preferred_provider: Optional[str] = None
    model: Optional[str] = None
    enabled: bool = True

    def capability_overrides(self) -> dict[str, Any]:
        """AgentCapability fields set in the file."""
        return self.model_dump(exclude={"kind", "enabled"}, exclude_none=True)


class ProviderEntry(BaseModel):
    """One provider in the registry file."""

    id: str = Field(..., min_length=1)
    adapter: ProviderAdapterType
    kind: ProviderKind
    model: str
    base_url: Optional[str] = None
    api_key_env: Optional[str] = Field(
        None, description="Environment variable holding the API key"
    )
    enabled: bool = True
    timeout: float = Field(30.0, gt=0)

    def to_config(self) -> ProviderConfig:
        api_key = os.getenv(self.api_key_env) if self.api_key_env else None
        return ProviderConfig(
            id=self.id,
            adapter=self.adapter,
            kind=self.kind,
            model=self.model,
            base_url=self.base_url,
            api_key=api_key,
            enabled=self.enabled,
            timeout=self.timeout,
        )


class RegistryFile(BaseModel):
    agents: list[AgentEntry] = Field(default_factory=list)
    providers: list[ProviderEntry] = Field(default_factory=list)


# ============================================
# Snapshot
# ============================================


@dataclass(frozen=True)
class RegistrySnapshot:
    """Immutable view of one registry file load.

    Attributes:
        agents: Agent entries in file order
        providers: Provider entries in file order
        source: File the snapshot was read from
        loaded_at: When it was read
    """

    agents: tuple[AgentEntry, ...] = ()
    providers: tuple[ProviderEntry, ...] = ()
    source: Optional[str] = None
    loaded_at: datetime = field(default_factory=datetime.utcnow)

    def enabled_agents(self) -> list[AgentEntry]:
        return [a for a in self.agents if a.enabled]

    def provider_configs(self) -> list[ProviderConfig]:
        return [p.to_config() for p in self.providers]

    def get_agent(self, agent_id: str) -> Optional[AgentEntry]:
        return next((a for a in self.agents if a.id == agent_id), None)


def _validate(raw: Any, source: str) -> RegistryFile:
    try:
        registry = RegistryFile.model_validate(raw or {})
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid registry file {source}: {e}", cause=e)

    for label, entries in (("agent", registry.agents), ("provider", registry.providers)):
        ids = [entry.id for entry in entries]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate {label} ids in {source}: {duplicates}")
    return registry


def load_registry(path: Union[str, Path]) -> RegistrySnapshot:
    """Read and validate a registry file.

    Raises:
        ConfigurationError: Missing file, bad YAML, or invalid entries
    """
    path = Path(path)
    try:
        with open(path) as f:
            raw = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Registry file not found: {path}", cause=e)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Registry file {path} is not valid YAML", cause=e)

    registry = _validate(raw, str(path))
    logger.info(
        f"Loaded registry {path}: {len(registry.agents)} agent(s), "
        f"{len(registry.providers)} provider(s)"
    )
    return RegistrySnapshot(
        agents=tuple(registry.agents),
        providers=tuple(registry.providers),
        source=str(path),
    )


def save_registry(path: Union[str, Path], snapshot: RegistrySnapshot) -> None:
    """Write a snapshot back to YAML."""
    data = {
        "providers": [p.model_dump(mode="json", exclude_none=True) for p in snapshot.providers],
        "agents": [a.model_dump(mode="json", exclude_none=True) for a in snapshot.agents],
    }
    with open(path, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    logger.info(f"Saved registry to {path}")


def update_agent(
    snapshot: RegistrySnapshot, agent_id: str, changes: dict[str, Any]
) -> RegistrySnapshot:
    """Return a new snapshot with one agent entry changed.

    Raises:
        ConfigurationError: Unknown agent id or invalid changes
    """
    current = snapshot.get_agent(agent_id)
    if current is None:
        raise ConfigurationError(f"Agent not found in registry: {agent_id}")

    merged = {**current.model_dump(), **changes, "id": agent_id}
    try:
        updated = AgentEntry.model_validate(merged)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid update for agent {agent_id}: {e}", cause=e)

    agents = tuple(updated if a.id == agent_id else a for a in snapshot.agents)
    return RegistrySnapshot(agents=agents, providers=snapshot.providers, source=snapshot.source)


class RegistryLoader:
    """Holds the current snapshot of a registry file.

    Usage:
        loader = RegistryLoader("config/registry.yaml")
        snapshot = loader.snapshot          # loaded on first access
        candidate = loader.load()           # read without replacing
        loader.commit(candidate)            # once the new agents are live
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._snapshot: Optional[RegistrySnapshot] = None

    @property
    def snapshot(self) -> RegistrySnapshot:
        if self._snapshot is None:
            self._snapshot = load_registry(self.path)
        return self._snapshot

    def load(self) -> RegistrySnapshot:
        """Read the file without replacing the current snapshot."""
        return load_registry(self.path)

    def commit(self, snapshot: RegistrySnapshot) -> None:
        """Make ``snapshot`` current, once whatever depends on it has accepted it."""
        self._snapshot = snapshot

    def update_agent(self, agent_id: str, changes: dict[str, Any]) -> RegistrySnapshot:
        """Apply changes to one agent and persist them to the file."""
        updated = update_agent(self.snapshot, agent_id, changes)
        save_registry(self.path, updated)
        self._snapshot = updated
        return updated
