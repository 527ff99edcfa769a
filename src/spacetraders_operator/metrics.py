"""Prometheus metrics for the SpaceTraders Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "spacetraders_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "spacetraders_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "spacetraders_operator_errors_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "spacetraders_operator_resource_status_total",
    "Observed resource status after reconciliation",
    ["kind", "status"],
)

# Registration metrics
registration_total = Counter(
    "spacetraders_operator_registration_total",
    "Total number of agent registration attempts",
    ["result"],
)

status_update_total = Counter(
    "spacetraders_operator_status_update_total",
    "Total number of status writes",
    ["result"],
)

# API call metrics
api_call_total = Counter(
    "spacetraders_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "spacetraders_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "spacetraders_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
