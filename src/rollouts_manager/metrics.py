"""Prometheus metrics for the Argo Rollouts Manager."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "argo_rollouts_manager_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "argo_rollouts_manager_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Owned object metrics
resource_operations_total = Counter(
    "argo_rollouts_manager_resource_operations_total",
    "Total number of owned object writes",
    ["kind", "operation"],
)

# Configuration drift detection metrics
drift_detected_total = Counter(
    "argo_rollouts_manager_drift_detected_total",
    "Total number of configuration drift detections",
    ["kind", "field"],
)

consistency_check_failures_total = Counter(
    "argo_rollouts_manager_consistency_check_failures_total",
    "Synthesizer/normalizer self-consistency check failures",
    ["kind"],
)

scope_violations_total = Counter(
    "argo_rollouts_manager_scope_violations_total",
    "RolloutManager scope invariant violations",
    ["verdict"],
)

phase_total = Counter(
    "argo_rollouts_manager_phase_total",
    "Status phases computed for RolloutManager resources",
    ["phase"],
)

error_total = Counter(
    "argo_rollouts_manager_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

# API call metrics
api_call_total = Counter(
    "argo_rollouts_manager_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "argo_rollouts_manager_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)
