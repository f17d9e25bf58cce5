#!/usr/bin/env python3
"""Exception Hierarchy for the Venture Advisor agent platform.

This module provides a structured exception hierarchy for handling errors
across provider adapters, the LLM service, the tool registry, and agents.

Design Principles:
    - All exceptions inherit from AdvisorError base class
    - Exceptions preserve context (original error, timestamps, details)
    - Exceptions are categorized by recoverability
    - Only configuration errors are fatal; they are raised at startup

Exception Hierarchy:
    AdvisorError (base)
    ├── ConfigurationError (unrecoverable - fix config)
    ├── ProviderError (recoverable - fail over)
    │   ├── ProviderUnavailableError
    │   ├── ProviderTimeoutError
    │   └── AllProvidersExhaustedError
    ├── EmptyInputError
    ├── ValidationError (tool parameters / user input)
    ├── ToolError
    │   ├── ToolNotFoundError
    │   └── ToolExecutionError
    └── AgentProcessingError
"""
from datetime import datetime
from typing import Any, Optional

# ============================================
# Base Exception
# ============================================

class AdvisorError(Exception):
    """Base exception for all advisor platform errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "PROVIDER_UNAVAILABLE")
        details: Additional context as a dictionary
        timestamp: When the error occurred
        cause: The original exception that caused this error
        recoverable: Whether the caller can recover (fail over, fall back)
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        self.timestamp = datetime.utcnow()
        self.cause = cause
        self.recoverable = recoverable

        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [f"[{self.code}]", self.message]
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================
# Configuration Errors (Fatal at startup)
# ============================================

class ConfigurationError(AdvisorError):
    """Raised when configuration is missing or invalid.

    Duplicate tool or agent ids and an empty provider set end up here.
    """

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )


# ============================================
# Provider Errors (Recovered by failover)
# ============================================

class ProviderError(AdvisorError):
    """Base class for LLM provider failures."""

    def __init__(self, message: str, provider: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if provider:
            details["provider"] = provider
        kwargs.setdefault("recoverable", True)
        self.provider = provider
        super().__init__(message, details=details, **kwargs)


class ProviderUnavailableError(ProviderError):
    """Raised when a provider's health probe or chat call fails."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if status_code is not None:
            details["status_code"] = status_code
        self.status_code = status_code
        super().__init__(
            message,
            provider=provider,
            code="PROVIDER_UNAVAILABLE",
            details=details,
            **kwargs,
        )


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its time budget."""

    def __init__(
        self,
        message: str = "Provider call timed out",
        provider: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout_seconds is not None:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message,
            provider=provider,
            code="PROVIDER_TIMEOUT",
            details=details,
            **kwargs,
        )


class AllProvidersExhaustedError(ProviderError):
    """Raised when every real provider failed for one request.

    The LLM service resolves this through the synthetic fallback provider,
    so callers of ``generate_response`` never see it.
    """

    def __init__(
        self,
        message: str = "All providers failed",
        attempted: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["attempted"] = attempted or []
        super().__init__(
            message,
            code="ALL_PROVIDERS_EXHAUSTED",
            details=details,
            **kwargs,
        )


# ============================================
# Input Errors
# ============================================

class EmptyInputError(AdvisorError):
    """Raised when a request carries no messages to send."""

    def __init__(self, message: str = "Message list is empty", **kwargs):
        super().__init__(message, code="EMPTY_INPUT", recoverable=False, **kwargs)


class ValidationError(AdvisorError):
    """Raised when tool parameters or user input fail validation.

    Attributes:
        field: First offending field, if any
        errors: Field-level messages keyed by parameter name
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[dict[str, str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if errors:
            details["errors"] = errors
        self.field = field
        self.errors = errors or {}
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )


# ============================================
# Tool Errors
# ============================================

class ToolError(AdvisorError):
    """Base class for tool registry errors."""

    def __init__(self, message: str, tool_id: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if tool_id:
            details["tool_id"] = tool_id
        self.tool_id = tool_id
        super().__init__(message, details=details, **kwargs)


class ToolNotFoundError(ToolError):
    """Raised when a tool id is not registered."""

    def __init__(self, tool_id: str, **kwargs):
        super().__init__(
            f"Tool not found: {tool_id}",
            tool_id=tool_id,
            code="TOOL_NOT_FOUND",
            **kwargs,
        )


class ToolExecutionError(ToolError):
    """Raised when a tool fails while executing."""

    def __init__(self, message: str, tool_id: Optional[str] = None, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(
            message,
            tool_id=tool_id,
            code="TOOL_EXECUTION_ERROR",
            **kwargs,
        )


# ============================================
# Agent Errors
# ============================================

class AgentProcessingError(AdvisorError):
    """Raised when a concrete agent fails to process a message.

    Caught at the orchestrator boundary and turned into the same agent's
    fallback response.
    """

    def __init__(self, message: str, agent_id: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if agent_id:
            details["agent_id"] = agent_id
        self.agent_id = agent_id
        kwargs.setdefault("recoverable", True)
        super().__init__(
            message,
            code="AGENT_PROCESSING_ERROR",
            details=details,
            **kwargs,
        )


__all__ = [
    "AdvisorError",
    "ConfigurationError",
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderTimeoutError",
    "AllProvidersExhaustedError",
    "EmptyInputError",
    "ValidationError",
    "ToolError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "AgentProcessingError",
]
