"""Kubernetes-backed stores for agents and their secrets."""

from .stores import AgentStore, AlreadyExistsError, ConflictError, SecretStore, StoreError

__all__ = [
    "AgentStore",
    "SecretStore",
    "StoreError",
    "ConflictError",
    "AlreadyExistsError",
]
