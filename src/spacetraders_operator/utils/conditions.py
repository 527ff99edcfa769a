"""Utilities for managing Kubernetes conditions.

Conditions are treated as immutable: every function here returns a new list
and never edits the list or dicts it was given.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import (
    COND_REGISTERED,
    REASON_RECONCILING,
    REASON_REGISTERED,
    STATUS_FALSE,
    STATUS_TRUE,
    STATUS_UNKNOWN,
)

VALID_STATUSES = (STATUS_TRUE, STATUS_FALSE, STATUS_UNKNOWN)


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def get_condition(conditions: list[dict[str, Any]] | None, condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, or None."""
    for cond in conditions or []:
        if cond.get("type") == condition_type:
            return cond
    return None


def is_condition_true(conditions: list[dict[str, Any]] | None, condition_type: str) -> bool:
    cond = get_condition(conditions, condition_type)
    return cond is not None and cond.get("status") == STATUS_TRUE


def project_condition(
    conditions: list[dict[str, Any]] | None,
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
    now: str | None = None,
) -> tuple[list[dict[str, Any]], bool]:
    """Compute the condition list with one condition set.

    Args:
        conditions: Current conditions (not modified)
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed
        now: Timestamp to use for a transition (defaults to current UTC time)

    Returns:
        (next_conditions, changed). changed is False when the condition was
        already present with identical fields, in which case the caller
        should skip the status write. lastTransitionTime only moves when
        status or reason differ from the existing condition.

    Raises:
        ValueError: If status is not one of True, False, Unknown
    """
    if status not in VALID_STATUSES:
        raise ValueError(f"Invalid condition status {status!r}")

    existing = get_condition(conditions, condition_type)
    duplicated = sum(1 for cond in conditions or [] if cond.get("type") == condition_type) > 1

    new_condition: dict[str, Any] = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
    }
    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing is not None and existing.get("status") == status and existing.get("reason") == reason:
        new_condition["lastTransitionTime"] = existing.get("lastTransitionTime") or now or _now()
        if observed_generation is None and "observedGeneration" in existing:
            new_condition["observedGeneration"] = existing["observedGeneration"]
        if new_condition == existing and not duplicated:
            return [dict(cond) for cond in conditions or []], False
    else:
        new_condition["lastTransitionTime"] = now or _now()

    # Keep the condition at its original position so the list order is stable
    result: list[dict[str, Any]] = []
    inserted = False
    for cond in conditions or []:
        if cond.get("type") == condition_type:
            if not inserted:
                result.append(new_condition)
                inserted = True
        else:
            result.append(dict(cond))
    if not inserted:
        result.append(new_condition)

    return result, True


def registered_reconciling(
    conditions: list[dict[str, Any]] | None,
    observed_generation: int | None = None,
) -> tuple[list[dict[str, Any]], bool]:
    """Set Registered=Unknown while the first reconciliation is running."""
    return project_condition(
        conditions,
        COND_REGISTERED,
        STATUS_UNKNOWN,
        REASON_RECONCILING,
        "Starting to reconcile Agent",
        observed_generation,
    )


def registered_true(
    conditions: list[dict[str, Any]] | None,
    message: str,
    observed_generation: int | None = None,
) -> tuple[list[dict[str, Any]], bool]:
    """Set Registered=True."""
    return project_condition(
        conditions,
        COND_REGISTERED,
        STATUS_TRUE,
        REASON_REGISTERED,
        message,
        observed_generation,
    )


def registered_false(
    conditions: list[dict[str, Any]] | None,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> tuple[list[dict[str, Any]], bool]:
    """Set Registered=False with the given reason."""
    return project_condition(
        conditions,
        COND_REGISTERED,
        STATUS_FALSE,
        reason,
        message,
        observed_generation,
    )
