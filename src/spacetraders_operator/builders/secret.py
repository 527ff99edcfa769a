"""Builder for agent access token secrets."""

from __future__ import annotations

from typing import Any

from kubernetes import client

from ..constants import (
    ANNOTATION_ACCOUNT_ID,
    ANNOTATION_STARTING_FACTION,
    API_GROUP_VERSION,
    CREATED_BY,
    KIND_AGENT,
    LABEL_CREATED_BY,
    LABEL_INSTANCE,
    LABEL_NAME,
    LABEL_PART_OF,
    OPERATOR_NAME,
    SECRET_KEY_ACCESS_TOKEN,
)
from ..services.spacetraders.models import Registration


class OwnerReferenceError(ValueError):
    """The owner reference for a secret cannot be built from its parent."""


def labels_for_access_token_secret(name: str) -> dict[str, str]:
    return {
        LABEL_NAME: OPERATOR_NAME,
        LABEL_INSTANCE: name,
        LABEL_PART_OF: OPERATOR_NAME,
        LABEL_CREATED_BY: CREATED_BY,
    }


def access_token_secret_name(agent: dict[str, Any]) -> str:
    """The access token secret shares its Agent's name."""
    return agent.get("metadata", {}).get("name", "")


def build_owner_reference(agent: dict[str, Any]) -> client.V1OwnerReference:
    """Build a controller owner reference pointing at an Agent.

    Deleting the Agent then lets the Kubernetes garbage collector delete every
    object that carries this reference.

    Args:
        agent: Agent object

    Returns:
        Owner reference with controller and blockOwnerDeletion set

    Raises:
        OwnerReferenceError: If the object is not an Agent or lacks name/uid
    """
    meta = agent.get("metadata", {})
    api_version = agent.get("apiVersion", API_GROUP_VERSION)
    kind = agent.get("kind", KIND_AGENT)

    if api_version != API_GROUP_VERSION or kind != KIND_AGENT:
        raise OwnerReferenceError(f"Cannot own a secret with {api_version}/{kind}, expected {API_GROUP_VERSION}/{KIND_AGENT}")
    if not meta.get("name") or not meta.get("uid"):
        raise OwnerReferenceError("Owner reference requires metadata.name and metadata.uid")

    return client.V1OwnerReference(
        api_version=api_version,
        kind=kind,
        name=meta["name"],
        uid=meta["uid"],
        controller=True,
        block_owner_deletion=True,
    )


def build_access_token_secret(
    agent: dict[str, Any],
    token: str,
    registration: Registration | None = None,
) -> client.V1Secret:
    """Build the immutable secret holding an Agent's access token.

    Args:
        agent: Agent object (name, namespace and uid are used)
        token: Access token issued by the registration
        registration: Optional registration result; its account id and
            starting faction are kept as annotations for the status mirror

    Returns:
        Secret ready to be created

    Raises:
        OwnerReferenceError: If the owner reference cannot be built
    """
    meta = agent.get("metadata", {})
    name = access_token_secret_name(agent)

    annotations: dict[str, str] = {}
    if registration is not None:
        if registration.account_id:
            annotations[ANNOTATION_ACCOUNT_ID] = registration.account_id
        if registration.starting_faction:
            annotations[ANNOTATION_STARTING_FACTION] = registration.starting_faction

    return client.V1Secret(
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=meta.get("namespace", "default"),
            labels=labels_for_access_token_secret(name),
            annotations=annotations or None,
            owner_references=[build_owner_reference(agent)],
        ),
        type="Opaque",
        string_data={SECRET_KEY_ACCESS_TOKEN: token},
        immutable=True,
    )
