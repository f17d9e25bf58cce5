"""Admin collaborators: metrics sink and registry file loader."""

from .metrics_logger import MetricsLogger
from .registry_loader import (
    AgentEntry,
    ProviderEntry,
    RegistryLoader,
    RegistrySnapshot,
    load_registry,
    save_registry,
    update_agent,
)

__all__ = [
    "AgentEntry",
    "MetricsLogger",
    "ProviderEntry",
    "RegistryLoader",
    "RegistrySnapshot",
    "load_registry",
    "save_registry",
    "update_agent",
]
