"""Stores for Agent resources and their credential secrets."""

from __future__ import annotations

import time
from typing import Any

from kubernetes import client

from ... import metrics
from ...constants import API_GROUP, API_VERSION, FIELD_MANAGER, PLURAL_AGENTS


class StoreError(Exception):
    """A Kubernetes API call failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ConflictError(StoreError):
    """The stored object changed since it was read (HTTP 409 on update)."""


class AlreadyExistsError(StoreError):
    """An object with the same name already exists (HTTP 409 on create)."""


def get_k8s_api_client() -> client.ApiClient:
    """Load in-cluster or kubeconfig credentials and return an API client."""
    from kubernetes import config

    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return client.ApiClient()


def _observe(operation: str, result: str, start_time: float) -> None:
    metrics.api_call_total.labels(api_type="k8s", operation=operation, result=result).inc()
    metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(time.time() - start_time)


class AgentStore:
    """Reads Agent resources and writes their status subresource."""

    def __init__(self, api: client.CustomObjectsApi, request_timeout: float = 30.0) -> None:
        self.api = api
        self.request_timeout = request_timeout

    def get(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Get an Agent.

        Returns:
            The Agent object, or None if it does not exist

        Raises:
            StoreError: On any API failure other than 404
        """
        start_time = time.time()
        try:
            agent = self.api.get_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURAL_AGENTS,
                name=name,
                _request_timeout=self.request_timeout,
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                _observe("get_agent", "not_found", start_time)
                return None
            _observe("get_agent", "error", start_time)
            raise StoreError(f"Failed to get Agent {namespace}/{name}: {e.reason}", status=e.status) from e
        _observe("get_agent", "success", start_time)
        return agent

    def update_status(self, agent: dict[str, Any]) -> dict[str, Any]:
        """Replace the status subresource of an Agent.

        The write carries the agent's metadata.resourceVersion, so the API
        server refuses it if the object changed since it was read.

        Args:
            agent: Agent object as returned by get(), with the new status set

        Returns:
            The updated Agent (with its new resourceVersion)

        Raises:
            ConflictError: The Agent changed since it was read
            StoreError: On any other API failure
        """
        meta = agent.get("metadata", {})
        namespace = meta.get("namespace", "default")
        name = meta.get("name")

        start_time = time.time()
        try:
            updated = self.api.replace_namespaced_custom_object_status(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURAL_AGENTS,
                name=name,
                body=agent,
                field_manager=FIELD_MANAGER,
                _request_timeout=self.request_timeout,
            )
        except client.exceptions.ApiException as e:
            if e.status == 409:
                _observe("update_agent_status", "conflict", start_time)
                raise ConflictError(
                    f"Agent {namespace}/{name} was modified concurrently", status=e.status
                ) from e
            _observe("update_agent_status", "error", start_time)
            raise StoreError(
                f"Failed to update status of Agent {namespace}/{name}: {e.reason}", status=e.status
            ) from e
        _observe("update_agent_status", "success", start_time)
        return updated

    def annotate(self, namespace: str, name: str, annotations: dict[str, str]) -> dict[str, Any] | None:
        """Merge-patch annotations onto an Agent.

        Changing an annotation is a change of the Agent itself, so kopf runs
        the update handler for it.

        Returns:
            The patched Agent, or None if it does not exist

        Raises:
            StoreError: On any API failure other than 404
        """
        start_time = time.time()
        try:
            patched = self.api.patch_namespaced_custom_object(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=PLURAL_AGENTS,
                name=name,
                body={"metadata": {"annotations": annotations}},
                field_manager=FIELD_MANAGER,
                _request_timeout=self.request_timeout,
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                _observe("annotate_agent", "not_found", start_time)
                return None
            _observe("annotate_agent", "error", start_time)
            raise StoreError(f"Failed to annotate Agent {namespace}/{name}: {e.reason}", status=e.status) from e
        _observe("annotate_agent", "success", start_time)
        return patched


class SecretStore:
    """Reads and creates credential secrets."""

    def __init__(self, api: client.CoreV1Api, request_timeout: float = 30.0) -> None:
        self.api = api
        self.request_timeout = request_timeout

    def get(self, namespace: str, name: str) -> client.V1Secret | None:
        """Get a secret.

        Returns:
            The secret, or None if it does not exist

        Raises:
            StoreError: On any API failure other than 404
        """
        start_time = time.time()
        try:
            secret = self.api.read_namespaced_secret(
                name=name,
                namespace=namespace,
                _request_timeout=self.request_timeout,
            )
        except client.exceptions.ApiException as e:
            if e.status == 404:
                _observe("get_secret", "not_found", start_time)
                return None
            _observe("get_secret", "error", start_time)
            raise StoreError(f"Failed to get Secret {namespace}/{name}: {e.reason}", status=e.status) from e
        _observe("get_secret", "success", start_time)
        return secret

    def create(self, secret: client.V1Secret) -> client.V1Secret:
        """Create a secret.

        Raises:
            AlreadyExistsError: A secret with the same name exists
            StoreError: On any other API failure
        """
        namespace = secret.metadata.namespace
        name = secret.metadata.name

        start_time = time.time()
        try:
            created = self.api.create_namespaced_secret(
                namespace=namespace,
                body=secret,
                field_manager=FIELD_MANAGER,
                _request_timeout=self.request_timeout,
            )
        except client.exceptions.ApiException as e:
            if e.status == 409:
                _observe("create_secret", "already_exists", start_time)
                raise AlreadyExistsError(f"Secret {namespace}/{name} already exists", status=e.status) from e
            _observe("create_secret", "error", start_time)
            raise StoreError(f"Failed to create Secret {namespace}/{name}: {e.reason}", status=e.status) from e
        _observe("create_secret", "success", start_time)
        return created
