"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_AGENT_REGISTERED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_REGISTRATION_FAILED,
    EVENT_REASON_SECRET_CREATED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource the event refers to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_secret_created(body: dict[str, Any], secret_name: str) -> None:
    """Emit access token secret created event."""
    emit_event(body, EVENT_REASON_SECRET_CREATED, f"Access token stored in secret {secret_name}")


def emit_agent_registered(body: dict[str, Any], symbol: str) -> None:
    """Emit agent registered event."""
    emit_event(body, EVENT_REASON_AGENT_REGISTERED, f"Agent {symbol} registered")


def emit_registration_failed(body: dict[str, Any], message: str) -> None:
    """Emit registration failed event."""
    emit_event(body, EVENT_REASON_REGISTRATION_FAILED, message, type_="Warning")
