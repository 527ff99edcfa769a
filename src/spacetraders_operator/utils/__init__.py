"""Utility functions for the SpaceTraders Operator."""

from .conditions import (
    get_condition,
    is_condition_true,
    project_condition,
    registered_false,
    registered_reconciling,
    registered_true,
)
from .errors import as_api_rejection, condition_reason_for, sanitize_exception
from .events import emit_event
from .rate_limit import configure_spacetraders_rate_limit, rate_limit_spacetraders

__all__ = [
    "project_condition",
    "get_condition",
    "is_condition_true",
    "registered_reconciling",
    "registered_true",
    "registered_false",
    "as_api_rejection",
    "condition_reason_for",
    "sanitize_exception",
    "emit_event",
    "configure_spacetraders_rate_limit",
    "rate_limit_spacetraders",
]
