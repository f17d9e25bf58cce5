"""
Error Message Sanitization for API Responses.

Provider errors routinely echo request details back: API keys in headers,
base URLs with embedded credentials, environment variable names from
configuration errors. Everything returned to a client goes through this
module first; the original message is only ever logged server-side.

Usage:
    from src.advisor.core.error_sanitizer import sanitize_error_message

    try:
        await provider.chat(request)
    except ProviderError as e:
        logger.error(f"Provider failed: {e}")
        detail = sanitize_error_message(e.message, "Provider error")
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional


@dataclass
class SanitizationResult:
    """Result of error message sanitization.

    Attributes:
        sanitized_message: Message safe to return to a client
        redaction_count: Number of redactions made
        original_length: Length of the original message
    """

    sanitized_message: str
    redaction_count: int
    original_length: int

    @property
    def was_sanitized(self) -> bool:
        return self.redaction_count > 0


class ErrorSanitizer:
    """Redacts credentials, URLs with secrets, paths and stack traces.

    Attributes:
        patterns: List of (regex_pattern, replacement) tuples
        max_message_length: Maximum length of sanitized messages
    """

    # Order matters - more specific patterns come first
    DEFAULT_PATTERNS: list[tuple[str, str]] = [
        # URLs carrying credentials in the userinfo part
        (r'[a-z][a-z0-9+.-]*://[^\s/:@]+:[^\s/@]+@[^\s]+', '[CREDENTIAL_URL]'),

        # Provider API keys
        (r'\bsk-ant-[A-Za-z0-9_\-]{8,}', '[API_KEY]'),
        (r'\bsk-[A-Za-z0-9_\-]{16,}', '[API_KEY]'),
        (r'\bgsk_[A-Za-z0-9]{16,}', '[API_KEY]'),

        # Authentication headers and key/value secrets
        (r'bearer\s+[A-Za-z0-9_\-\.]+', 'Bearer [REDACTED]'),
        (r'x-api-key[:\s]+[^\s,;]+', 'x-api-key: [REDACTED]'),
        (r'api[-_]?key[=:\s]+[^\s,;]+', 'api_key=[REDACTED]'),
        (r'password[=:\s]+[^\s,;]+', 'password=[REDACTED]'),
        (r'secret[=:\s]+[^\s,;]+', 'secret=[REDACTED]'),

        # Environment variable names used for credentials
        (r'\b(OPENAI_API_KEY|ANTHROPIC_API_KEY|GROQ_API_KEY|DEEPSEEK_API_KEY|VLLM_API_KEY)\b', '[ENV_VAR]'),

        # File paths
        (r'/(?:home|root|usr|var|etc|opt|mnt|tmp)/[^\s,;"]+', '[FILE_PATH]'),
        (r'[A-Z]:\\[^\s,;"]+', '[FILE_PATH]'),

        # Python stack traces
        (r'Traceback \(most recent call last\):[\s\S]*?(?=\n\n|\n[A-Z]|\Z)', '[STACK_TRACE]'),
        (r'File "([^"]+)", line \d+', 'File "[REDACTED]", line [REDACTED]'),

        # IPv4 addresses
        (r'\b(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\b', '[IP_ADDRESS]'),

        # JWT tokens
        (r'\beyJ[A-Za-z0-9_-]*\.eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\b', '[JWT_REDACTED]'),
    ]

    def __init__(
        self,
        patterns: Optional[list[tuple[str, str]]] = None,
        max_message_length: int = 500,
    ):
        """Initialize the sanitizer.

        Args:
            patterns: Custom patterns to use (defaults to DEFAULT_PATTERNS)
            max_message_length: Maximum length of sanitized message
        """
        self.patterns = list(patterns or self.DEFAULT_PATTERNS)
        self.max_message_length = max_message_length
        self._compiled_patterns = [
            (re.compile(pattern, re.IGNORECASE), replacement)
            for pattern, replacement in self.patterns
        ]

    def sanitize(self, message: str, error_type: Optional[str] = None) -> SanitizationResult:
        """Sanitize an error message for client exposure.

        Args:
            message: Raw error message
            error_type: Optional prefix giving the error category

        Returns:
            SanitizationResult with the sanitized message
        """
        if not message:
            return SanitizationResult("An error occurred", 0, 0)

        sanitized = message
        redaction_count = 0
        for pattern, replacement in self._compiled_patterns:
            sanitized, count = pattern.subn(replacement, sanitized)
            redaction_count += count

        if len(sanitized) > self.max_message_length:
            sanitized = sanitized[: self.max_message_length] + "... [TRUNCATED]"

        if not sanitized.strip():
            sanitized = "An error occurred"

        if error_type and not sanitized.startswith(error_type):
            sanitized = f"{error_type}: {sanitized}"

        return SanitizationResult(
            sanitized_message=sanitized,
            redaction_count=redaction_count,
            original_length=len(message),
        )

    def add_pattern(self, pattern: str, replacement: str) -> None:
        self.patterns.append((pattern, replacement))
        self._compiled_patterns.append((re.compile(pattern, re.IGNORECASE), replacement))

    def is_safe(self, message: str) -> bool:
        """True if no pattern would redact anything in ``message``."""
        return not any(pattern.search(message) for pattern, _ in self._compiled_patterns)


_default_sanitizer: Optional[ErrorSanitizer] = None


def get_sanitizer() -> ErrorSanitizer:
    """Get the default error sanitizer instance."""
    global _default_sanitizer
    if _default_sanitizer is None:
        _default_sanitizer = ErrorSanitizer()
    return _default_sanitizer


def sanitize_error_message(message: str, error_type: Optional[str] = None) -> str:
    """Convenience function returning only the sanitized text.

    Example:
        >>> sanitize_error_message("401 for api_key=sk-abcdefghijklmnopqrstu", "Provider error")
        'Provider error: 401 for api_key=[REDACTED]'
    """
    return get_sanitizer().sanitize(message, error_type).sanitized_message
