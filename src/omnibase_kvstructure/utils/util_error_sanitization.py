# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Error message sanitization utilities.

Errors raised while talking to Consul can echo request details back
(headers, URLs with query strings). Messages are sanitized before they are
logged, in particular when a decoder has no error queue and logging is the
only place a failure shows up.

Example:
    >>> sanitize_error_string("403 for ?token=abc123")
    '[REDACTED - potentially sensitive data]'
"""

from __future__ import annotations

# Checked case-insensitively; any match redacts the whole message.
SENSITIVE_PATTERNS: tuple[str, ...] = (
    "password",
    "passwd",
    "secret",
    "token",
    "x-consul-token",
    "api_key",
    "apikey",
    "credential",
    "bearer",
    "authorization",
    "private_key",
    "-----begin",
)


def sanitize_error_string(error_str: str, max_length: int = 500) -> str:
    """Sanitize a raw error string for safe inclusion in logs.

    Args:
        error_str: The error string to sanitize
        max_length: Maximum length of the sanitized message (default 500)

    Returns:
        The string, truncated to ``max_length``, or a redaction marker when a
        sensitive pattern is present.
    """
    if not error_str:
        return ""

    error_lower = error_str.lower()
    for pattern in SENSITIVE_PATTERNS:
        if pattern in error_lower:
            return "[REDACTED - potentially sensitive data]"

    if len(error_str) > max_length:
        return error_str[:max_length] + "... [truncated]"

    return error_str


def sanitize_error_message(exception: BaseException, max_length: int = 500) -> str:
    """Sanitize an exception as ``"{ExceptionType}: {message}"``.

    Example:
        >>> sanitize_error_message(ValueError("bad value"))
        'ValueError: bad value'
    """
    exception_type = type(exception).__name__
    return f"{exception_type}: {sanitize_error_string(str(exception), max_length)}"


__all__: list[str] = [
    "SENSITIVE_PATTERNS",
    "sanitize_error_message",
    "sanitize_error_string",
]
