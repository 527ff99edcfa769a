"""JSON logging for the SpaceTraders Operator.

Every record about an Agent is one JSON object, so log pipelines can filter
on resource, reason or event without parsing free text.
"""

import json
import logging
import sys
from typing import Any, Mapping

CONTROLLER_NAME = "spacetraders-operator"

REDACTED = "***REDACTED***"

# Keys whose values are credentials or personal data
REDACTED_FIELDS = frozenset({"token", "access_token", "email", "account_email"})

# HTTP clients that log every request
_QUIET_LOGGERS = ("urllib3", "kubernetes.client.rest")


def setup_structured_logging(level: int | str = logging.INFO) -> None:
    """Route operator records to stdout as bare JSON lines.

    kopf installs its own root handler before startup handlers run; in that
    case basicConfig leaves it alone and only the levels below apply.
    """
    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    logging.getLogger(__name__.rpartition(".")[0]).setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def resource_context(meta: Mapping[str, Any]) -> dict[str, Any]:
    """Identify a resource by its metadata."""
    return {
        "name": meta.get("name", "unknown"),
        "namespace": meta.get("namespace", "default"),
        "uid": meta.get("uid", "unknown"),
    }


def redact_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    return {key: REDACTED if key.lower() in REDACTED_FIELDS else value for key, value in fields.items()}


def log_resource_event(
    logger: logging.Logger,
    kind: str,
    meta: Mapping[str, Any],
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Log one JSON record about a resource.

    Args:
        logger: Logger to write to
        kind: Resource kind, e.g. "Agent"
        meta: Resource metadata (name, namespace and uid are used)
        event: Short event type ("info", "warning", "error")
        reason: CamelCase reason, matching the event reasons where one exists
        message: Human-readable message
        level: Logging level
        **fields: Extra fields; credential fields are redacted
    """
    record: dict[str, Any] = {
        "controller": CONTROLLER_NAME,
        "resource": kind,
        **resource_context(meta),
        "event": event,
        "reason": reason,
        "message": message,
    }
    record.update(redact_fields(fields))
    logger.log(level, json.dumps(record, default=str))
