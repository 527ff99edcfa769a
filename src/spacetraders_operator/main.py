"""Main entry point for the SpaceTraders Operator."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import kopf
from kubernetes import client

from . import health
from . import logging as structured_logging
from .config import OperatorConfig
from .constants import (
    ANNOTATION_RECONCILE_REQUESTED_AT,
    API_GROUP_VERSION,
    KIND_AGENT,
    LABEL_NAME,
    OPERATOR_NAME,
)
from .handlers.agent import AgentReconciler, InvalidAgentSpecError, ReconcileResult
from .services.k8s.stores import AgentStore, SecretStore, get_k8s_api_client
from .services.spacetraders.client import SpaceTradersClient
from .services.spacetraders.errors import SpaceTradersError
from .tracing import initialize_tracing
from .utils.errors import sanitize_exception
from .utils.rate_limit import configure_spacetraders_rate_limit

logger = logging.getLogger(__name__)

# Exponential backoff for failed passes: 1s, 2s, 4s, ... capped at 60s
MIN_RETRY_DELAY = 1.0
MAX_RETRY_DELAY = 60.0
RETRY_BACKOFF = 2.0

_reconciler: AgentReconciler | None = None


def get_reconciler() -> AgentReconciler:
    """Return the reconciler built at startup."""
    if _reconciler is None:
        raise kopf.TemporaryError("Operator is still starting up", delay=5)
    return _reconciler


def build_reconciler(config: OperatorConfig) -> AgentReconciler:
    """Wire the reconciler to the Kubernetes and SpaceTraders APIs."""
    configure_spacetraders_rate_limit(config.spacetraders_rate_limit)
    api_client = get_k8s_api_client()
    return AgentReconciler(
        agents=AgentStore(client.CustomObjectsApi(api_client), request_timeout=config.request_timeout),
        secrets=SecretStore(client.CoreV1Api(api_client), request_timeout=config.request_timeout),
        spacetraders=SpaceTradersClient(config.api_url, timeout=config.request_timeout),
        config=config,
    )


def controlling_agent(meta: kopf.Meta | dict[str, Any]) -> dict[str, Any] | None:
    """Return the controller owner reference to an Agent, if the object has one."""
    for ref in meta.get("ownerReferences") or []:
        if ref.get("kind") == KIND_AGENT and ref.get("apiVersion") == API_GROUP_VERSION and ref.get("controller"):
            return ref
    return None


def retry_delay(retry: int) -> float:
    """Delay before the next attempt after `retry` failed attempts."""
    return min(MAX_RETRY_DELAY, MIN_RETRY_DELAY * RETRY_BACKOFF ** max(retry, 0))


def run_reconcile(
    reconciler: AgentReconciler,
    body: dict[str, Any],
    namespace: str,
    name: str,
    retry: int = 0,
) -> None:
    """Run one pass and translate its outcome for kopf.

    Raises:
        kopf.TemporaryError: The pass asked to be requeued or failed
        kopf.PermanentError: The Agent spec is invalid; retrying cannot help
    """
    try:
        result: ReconcileResult = reconciler.reconcile_with_metrics(
            body, lambda: reconciler.reconcile(namespace, name)
        )
    except InvalidAgentSpecError as e:
        raise kopf.PermanentError(str(e)) from e
    except Exception as e:
        raise kopf.TemporaryError(sanitize_exception(e), delay=retry_delay(retry)) from e

    if result.requeue:
        delay = result.requeue_after if result.requeue_after is not None else reconciler.config.requeue_delay
        raise kopf.TemporaryError(f"Agent {namespace}/{name} requeued", delay=delay)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    config = OperatorConfig.from_env()
    structured_logging.setup_structured_logging(config.log_level)

    # Use AnnotationsProgressStorage to avoid conflicts with status updates
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = config.request_timeout
    settings.execution.max_workers = 4

    initialize_tracing()

    # Metrics and health endpoints share one port
    health.start_metrics_server(config.metrics_port)


@kopf.on.startup()
def connect(**_: Any) -> None:
    """Build the reconciler once the SpaceTraders API answers.

    Retried by kopf until the status check succeeds; /readyz reports 503
    until then.
    """
    global _reconciler

    config = OperatorConfig.from_env()
    reconciler = build_reconciler(config)

    try:
        status = reconciler.spacetraders.get_status()
    except SpaceTradersError as e:
        health.set_ready(False)
        raise kopf.TemporaryError(f"SpaceTraders API unavailable: {sanitize_exception(e)}", delay=10) from e

    logger.info(
        f"Connected to SpaceTraders API {config.api_url}: status={status.status} "
        f"version={status.version} resetDate={status.reset_date}"
    )
    _reconciler = reconciler
    health.set_ready(True)


@kopf.on.create(API_GROUP_VERSION, KIND_AGENT)
@kopf.on.update(API_GROUP_VERSION, KIND_AGENT)
@kopf.on.resume(API_GROUP_VERSION, KIND_AGENT)
def handle_agent(
    body: kopf.Body,
    meta: kopf.Meta,
    retry: int,
    **kwargs: Any,
) -> None:
    """Handle Agent resource reconciliation."""
    reconciler = get_reconciler()
    run_reconcile(
        reconciler,
        body,
        meta.get("namespace", "default"),
        meta.get("name"),
        retry=retry,
    )


@kopf.on.event("v1", "secrets", labels={LABEL_NAME: OPERATOR_NAME})
def handle_secret_event(
    event: kopf.RawEvent,
    meta: kopf.Meta,
    **kwargs: Any,
) -> None:
    """Request a new pass for the Agent whose access token secret was deleted.

    The secret has no finalizer, so its deletion is only visible as a raw
    DELETED watch event. The Agent is annotated rather than reconciled here,
    so the pass runs in the Agent's own handler with its retries and requeue.
    """
    if event.get("type") != "DELETED":
        return

    owner = controlling_agent(meta)
    if owner is None:
        return

    namespace = meta.get("namespace", "default")
    reconciler = get_reconciler()
    agent = reconciler.agents.get(namespace, owner["name"])
    if agent is None:
        return

    agent_meta = agent.get("metadata", {})
    if agent_meta.get("deletionTimestamp"):
        # Removed by the garbage collector together with its Agent
        return
    if agent_meta.get("uid") != owner.get("uid"):
        # A newer Agent with the same name; the secret was not its own
        return

    logger.info(f"Secret {namespace}/{meta.get('name')} deleted, requesting reconciliation of Agent {owner['name']}")
    requested_at = datetime.now(timezone.utc).isoformat()
    reconciler.agents.annotate(namespace, owner["name"], {ANNOTATION_RECONCILE_REQUESTED_AT: requested_at})
