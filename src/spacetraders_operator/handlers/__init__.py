"""Handler modules for CRD resources."""

from .agent import AgentReconciler, InvalidAgentSpecError, ReconcileResult
from .base import BaseHandler

__all__ = [
    "AgentReconciler",
    "BaseHandler",
    "InvalidAgentSpecError",
    "ReconcileResult",
]
