"""Errors raised by the SpaceTraders API client."""

from __future__ import annotations

import json
from typing import Any


class SpaceTradersError(Exception):
    """Base class for SpaceTraders client errors."""


class SpaceTradersApiError(SpaceTradersError):
    """The API refused a request with a structured error body."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: int | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code
        self.data = data or {}

    def __str__(self) -> str:
        return self.message


class SpaceTradersResponseError(SpaceTradersError):
    """The API answered with a body that could not be decoded."""

    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(f"unexpected response from SpaceTraders API (HTTP {status_code}): {detail}")
        self.status_code = status_code


class SpaceTradersTransportError(SpaceTradersError):
    """The request never produced an HTTP response (DNS, TLS, timeout, ...)."""


def api_error_from_response(status_code: int, body: bytes) -> SpaceTradersError:
    """Build the error for a non-success response.

    The API wraps errors as ``{"error": {"message", "code", "data"}}``; a flat
    ``{"message": ...}`` body is accepted too. Anything else is returned as a
    SpaceTradersResponseError rather than a rejection.

    Args:
        status_code: HTTP status code of the response
        body: Raw response body

    Returns:
        SpaceTradersApiError, or SpaceTradersResponseError if the body is not an error envelope
    """
    try:
        payload = json.loads(body)
    except (TypeError, ValueError, UnicodeDecodeError) as e:
        return SpaceTradersResponseError(status_code, f"invalid JSON error body: {e}")

    if not isinstance(payload, dict):
        return SpaceTradersResponseError(status_code, "error body is not an object")

    envelope = payload.get("error", payload)
    if not isinstance(envelope, dict):
        return SpaceTradersResponseError(status_code, "error envelope is not an object")

    message = envelope.get("message")
    if not isinstance(message, str) or not message:
        return SpaceTradersResponseError(status_code, "error body has no message")

    code = envelope.get("code")
    data = envelope.get("data")
    return SpaceTradersApiError(
        status_code,
        message,
        code=code if isinstance(code, int) else None,
        data=data if isinstance(data, dict) else None,
    )
