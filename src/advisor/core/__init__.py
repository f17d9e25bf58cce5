"""Shared configuration, exceptions and resilience helpers."""

from .config import AdvisorSettings, providers_from_env
from .error_sanitizer import ErrorSanitizer, sanitize_error_message
from .exceptions import (
    AdvisorError,
    AgentProcessingError,
    AllProvidersExhaustedError,
    ConfigurationError,
    EmptyInputError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ValidationError,
)

__all__ = [
    "AdvisorSettings",
    "providers_from_env",
    "ErrorSanitizer",
    "sanitize_error_message",
    "AdvisorError",
    "AgentProcessingError",
    "AllProvidersExhaustedError",
    "ConfigurationError",
    "EmptyInputError",
    "ProviderError",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "ToolError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ValidationError",
]
