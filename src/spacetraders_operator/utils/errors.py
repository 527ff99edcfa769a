"""Error classification and sanitization utilities."""

from __future__ import annotations

import re
from typing import Any

from ..constants import REASON_API_REJECTED, REASON_INFRASTRUCTURE_ERROR
from ..services.spacetraders.errors import SpaceTradersApiError

# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"(bearer)\s+[A-Za-z0-9\-_\.=]+",
    r"(eyJ)[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+",
    r"([a-zA-Z0-9_.+\-]+)@[a-zA-Z0-9\-]+\.[a-zA-Z0-9\-.]+",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "access-token",
    "access_token",
    "token",
    "email",
    "password",
    "secret",
    "authorization",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with tokens and emails redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized, flags=re.IGNORECASE)

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\b{re.escape(field)}[\"']?\s*[:=]\s*[\"']?([^\s,;\)\"']+)",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Sanitize dictionary by redacting sensitive fields.

    Args:
        data: Dictionary to sanitize
        sensitive_keys: Additional keys to redact (merged with SENSITIVE_FIELDS)

    Returns:
        Sanitized dictionary with sensitive values redacted
    """
    all_sensitive = SENSITIVE_FIELDS | (sensitive_keys or set())
    sanitized: dict[str, Any] = {}

    for key, value in data.items():
        key_lower = key.lower()
        if any(sensitive in key_lower for sensitive in all_sensitive):
            sanitized[key] = "[REDACTED]"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_dict(value, sensitive_keys)
        elif isinstance(value, str):
            sanitized[key] = sanitize_error_message(value)
        else:
            sanitized[key] = value

    return sanitized


def as_api_rejection(error: BaseException) -> tuple[int, str] | None:
    """Extract the structured rejection carried by an error.

    Args:
        error: Error raised by a registration attempt

    Returns:
        (status_code, message) if the SpaceTraders API refused the request,
        None if the error is an infrastructure failure. Undecodable error
        bodies are raised as SpaceTradersResponseError and land in the
        second group.
    """
    if isinstance(error, SpaceTradersApiError):
        return error.status_code, error.message
    return None


def condition_reason_for(error: BaseException) -> tuple[str, str]:
    """Map an error to the reason and message of a False condition."""
    rejection = as_api_rejection(error)
    if rejection is not None:
        _, message = rejection
        return REASON_API_REJECTED, message
    return REASON_INFRASTRUCTURE_ERROR, sanitize_exception(error)
