"""Handler for Agent CRD.

One reconciliation pass registers the Agent with SpaceTraders (at most once)
and stores the issued token in a secret owned by the Agent. The secret's
existence, not the status condition, decides whether registration is still
needed: once the secret exists, registration is never attempted again.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from kubernetes import client

from .. import metrics
from ..builders.secret import OwnerReferenceError, access_token_secret_name, build_access_token_secret
from ..config import OperatorConfig
from ..constants import (
    ANNOTATION_ACCOUNT_ID,
    ANNOTATION_STARTING_FACTION,
    COND_REGISTERED,
    FACTIONS,
    KIND_AGENT,
    REASON_INFRASTRUCTURE_ERROR,
    REASON_INVALID_SPEC,
    SYMBOL_MAX_LENGTH,
    SYMBOL_MIN_LENGTH,
)
from ..services.k8s.stores import AgentStore, ConflictError, SecretStore
from ..services.spacetraders.client import SpaceTradersClient
from ..services.spacetraders.models import Registration
from ..tracing import agent_span, set_span_attribute
from ..utils.conditions import (
    get_condition,
    is_condition_true,
    registered_false,
    registered_reconciling,
    registered_true,
)
from ..utils.errors import as_api_rejection, condition_reason_for, sanitize_exception
from ..utils.events import emit_agent_registered, emit_registration_failed, emit_secret_created
from .base import BaseHandler


class InvalidAgentSpecError(ValueError):
    """The Agent spec cannot be sent to the registration endpoint."""


@dataclass
class ReconcileResult:
    """Outcome of a reconciliation pass that did not raise."""

    requeue: bool = False
    requeue_after: float | None = None


def validate_agent_spec(spec: dict[str, Any]) -> list[str]:
    """Return a list of problems with an Agent spec (empty if valid)."""
    problems = []
    symbol = agent_symbol(spec)
    faction = spec.get("faction")

    if not symbol:
        problems.append("spec.symbol is required")
    elif not SYMBOL_MIN_LENGTH <= len(symbol) <= SYMBOL_MAX_LENGTH:
        problems.append(f"spec.symbol must be {SYMBOL_MIN_LENGTH}-{SYMBOL_MAX_LENGTH} characters long")

    if not faction:
        problems.append("spec.faction is required")
    elif faction not in FACTIONS:
        problems.append(f"spec.faction {faction!r} is not a known faction")

    return problems


def agent_symbol(spec: dict[str, Any]) -> str | None:
    # Older manifests carry the symbol under its JSON name "callsign"
    return spec.get("symbol") or spec.get("callsign")


class AgentReconciler(BaseHandler):
    """Handler for Agent resources."""

    def __init__(
        self,
        agents: AgentStore,
        secrets: SecretStore,
        spacetraders: SpaceTradersClient,
        config: OperatorConfig,
    ) -> None:
        """Initialize agent handler.

        Args:
            agents: Store for Agent resources
            secrets: Store for access token secrets
            spacetraders: SpaceTraders API client used for registration
            config: Operator configuration (account email, requeue delay)
        """
        super().__init__(KIND_AGENT)
        self.agents = agents
        self.secrets = secrets
        self.spacetraders = spacetraders
        self.config = config

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """Run one reconciliation pass for an Agent.

        Args:
            namespace: Namespace of the Agent
            name: Name of the Agent

        Returns:
            Whether (and when) the caller should run another pass

        Raises:
            InvalidAgentSpecError: The spec cannot be registered as written
            Exception: Any registration or store failure, after it has been
                recorded in the Registered condition
        """
        with agent_span("reconcile", namespace, name):
            try:
                return self._reconcile(namespace, name)
            except ConflictError as e:
                # Someone else wrote the Agent since we read it; start over from a fresh read
                self.log_warning(
                    {"name": name, "namespace": namespace},
                    "Agent changed during reconciliation, requeueing",
                    reason="Conflict",
                    error=sanitize_exception(e),
                )
                return ReconcileResult(requeue=True, requeue_after=self.config.requeue_delay)

    def _reconcile(self, namespace: str, name: str) -> ReconcileResult:
        agent = self.agents.get(namespace, name)
        if agent is None:
            self.log_info(
                {"name": name, "namespace": namespace},
                "Agent resource not found. Ignoring since object must be deleted",
                reason="NotFound",
            )
            return ReconcileResult()

        meta = agent.get("metadata", {})
        if meta.get("deletionTimestamp"):
            # The garbage collector may already be removing the secret; do not register again
            self.log_info(meta, "Agent is being deleted, skipping reconciliation", reason="Deleting")
            return ReconcileResult()

        conditions = (agent.get("status") or {}).get("conditions") or []

        if get_condition(conditions, COND_REGISTERED) is None:
            conditions, _ = registered_reconciling(conditions, meta.get("generation"))
            self._write_status(agent, conditions=conditions)

            # Continue from the stored object so later writes carry its resourceVersion
            agent = self.agents.get(namespace, name)
            if agent is None:
                self.log_info(meta, "Agent deleted during reconciliation", reason="NotFound")
                return ReconcileResult()
            meta = agent.get("metadata", {})
            conditions = (agent.get("status") or {}).get("conditions") or []

        secret_name = access_token_secret_name(agent)
        try:
            secret = self.secrets.get(namespace, secret_name)
        except Exception as e:
            self.log_error(meta, f"Failed to look up Secret {secret_name}", error=e, reason="SecretLookupFailed")
            self._record_failure(agent, conditions, e)
            raise

        if secret is None:
            return self._register(agent, conditions)

        return self._mark_registered(agent, conditions, secret)

    def _register(self, agent: dict[str, Any], conditions: list[dict[str, Any]]) -> ReconcileResult:
        meta = agent.get("metadata", {})
        spec = agent.get("spec", {})

        problems = validate_agent_spec(spec)
        if problems:
            error = InvalidAgentSpecError("; ".join(problems))
            self.log_error(meta, "Agent spec is invalid", error=error, reason="ValidationFailed")
            conditions, changed = registered_false(
                conditions, REASON_INVALID_SPEC, str(error), meta.get("generation")
            )
            if changed:
                self._write_status(agent, conditions=conditions)
            raise error

        symbol = agent_symbol(spec)
        faction = spec["faction"]

        with agent_span("register", meta.get("namespace", "default"), meta.get("name", ""), symbol=symbol, faction=faction):
            try:
                registration = self.spacetraders.register(symbol, faction, self.config.account_email)
            except Exception as e:
                rejected = as_api_rejection(e) is not None
                metrics.registration_total.labels(result="rejected" if rejected else "error").inc()
                _, message = condition_reason_for(e)
                self.log_error(
                    meta,
                    f"Failed to register agent {symbol}",
                    error=e,
                    reason="RegistrationFailed",
                    symbol=symbol,
                    faction=faction,
                )
                emit_registration_failed(agent, f"Failed to register agent {symbol}: {message}")
                self._record_failure(agent, conditions, e)
                raise
            metrics.registration_total.labels(result="success").inc()
            set_span_attribute("account_id", registration.account_id)

        emit_agent_registered(agent, symbol)
        self.log_info(meta, f"Registered agent {symbol}", reason="Registered", symbol=symbol, faction=faction)

        self._store_token(agent, conditions, registration)
        return ReconcileResult(requeue=True, requeue_after=self.config.requeue_delay)

    def _store_token(
        self,
        agent: dict[str, Any],
        conditions: list[dict[str, Any]],
        registration: Registration,
    ) -> None:
        meta = agent.get("metadata", {})
        try:
            secret = build_access_token_secret(agent, registration.token, registration)
        except OwnerReferenceError as e:
            self.log_error(meta, "Failed to build access token Secret", error=e, reason="SecretBuildFailed")
            self._record_failure(agent, conditions, e)
            raise

        secret_name = secret.metadata.name
        self.log_info(meta, "Creating a new Secret", reason="SecretCreating", secret_name=secret_name)
        try:
            self.secrets.create(secret)
        except Exception as e:
            # The token only exists in memory now; it is lost when this pass ends
            self.log_error(
                meta,
                "Failed to create new Secret",
                error=e,
                reason="SecretCreateFailed",
                secret_name=secret_name,
            )
            self._record_failure(agent, conditions, e)
            raise

        emit_secret_created(agent, secret_name)

    def _mark_registered(
        self,
        agent: dict[str, Any],
        conditions: list[dict[str, Any]],
        secret: client.V1Secret,
    ) -> ReconcileResult:
        meta = agent.get("metadata", {})
        if is_condition_true(conditions, COND_REGISTERED):
            metrics.resource_status_total.labels(kind=self.kind, status="ready").inc()
            return ReconcileResult()

        spec = agent.get("spec", {})
        symbol = agent_symbol(spec)
        conditions, changed = registered_true(
            conditions, f"Agent {symbol} is registered", meta.get("generation")
        )
        if changed:
            secret_meta = secret.metadata
            annotations = (secret_meta.annotations if secret_meta is not None else None) or {}
            fields: dict[str, Any] = {"conditions": conditions}
            account_id = annotations.get(ANNOTATION_ACCOUNT_ID)
            if account_id:
                fields["accountId"] = account_id
            starting_faction = annotations.get(ANNOTATION_STARTING_FACTION) or spec.get("faction")
            if starting_faction:
                fields["startingFaction"] = starting_faction
            self._write_status(agent, **fields)
            self.log_info(meta, f"Agent {symbol} is registered", reason="Registered")

        metrics.resource_status_total.labels(kind=self.kind, status="ready").inc()
        return ReconcileResult()

    def _write_status(self, agent: dict[str, Any], **fields: Any) -> dict[str, Any]:
        """Persist status fields on top of the Agent's current status.

        Raises:
            ConflictError: The Agent changed since it was read
            Exception: Any other store failure, after a best-effort attempt to
                record it in the Registered condition
        """
        body = self._with_status(agent, **fields)
        try:
            updated = self.agents.update_status(body)
        except ConflictError:
            metrics.status_update_total.labels(result="conflict").inc()
            raise
        except Exception as e:
            metrics.status_update_total.labels(result="error").inc()
            self.log_error(agent.get("metadata", {}), "Failed to update Agent status", error=e, reason="StatusUpdateFailed")
            self._record_status_failure(agent, e)
            raise
        metrics.status_update_total.labels(result="success").inc()
        return updated

    def _record_failure(
        self,
        agent: dict[str, Any],
        conditions: list[dict[str, Any]],
        error: BaseException,
    ) -> None:
        """Project Registered=False for an error and persist it if it changed anything."""
        reason, message = condition_reason_for(error)
        conditions, changed = registered_false(
            conditions, reason, message, agent.get("metadata", {}).get("generation")
        )
        if changed:
            self._write_status(agent, conditions=conditions)
        metrics.resource_status_total.labels(kind=self.kind, status="not_ready").inc()

    def _record_status_failure(self, agent: dict[str, Any], error: BaseException) -> None:
        """Best effort: record a failed status write in the Registered condition.

        A second failure is logged and dropped; the caller re-raises the first.
        """
        meta = agent.get("metadata", {})
        conditions = (agent.get("status") or {}).get("conditions") or []
        conditions, changed = registered_false(
            conditions,
            REASON_INFRASTRUCTURE_ERROR,
            f"Failed to update Agent status: {sanitize_exception(error)}",
            meta.get("generation"),
        )
        if not changed:
            return
        try:
            self.agents.update_status(self._with_status(agent, conditions=conditions))
        except Exception as e:
            self.log_warning(
                meta,
                "Could not record status update failure",
                reason="StatusUpdateFailed",
                error=sanitize_exception(e),
            )

    @staticmethod
    def _with_status(agent: dict[str, Any], **fields: Any) -> dict[str, Any]:
        body = copy.deepcopy(agent)
        status = dict(body.get("status") or {})
        status.update(fields)
        generation = body.get("metadata", {}).get("generation")
        if generation is not None:
            status["observedGeneration"] = generation
        body["status"] = status
        return body
