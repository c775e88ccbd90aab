"""Prometheus metrics for the MinIO Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "minio_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "minio_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

state_transitions_total = Counter(
    "minio_operator_state_transitions_total",
    "Total number of status state transitions",
    ["kind", "state"],
)

error_total = Counter(
    "minio_operator_error_total",
    "Total number of reconcile errors",
    ["kind", "error_type"],
)

# Configuration drift detection metrics
drift_detected_total = Counter(
    "minio_operator_drift_detected_total",
    "Total number of configuration drift detections",
    ["kind"],
)

# Remote API call metrics
api_call_total = Counter(
    "minio_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "minio_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

# Record store metrics
record_conflicts_total = Counter(
    "minio_operator_record_conflicts_total",
    "Total number of resource record write conflicts",
    ["kind"],
)

# Drain metrics
drained_objects_total = Counter(
    "minio_operator_drained_objects_total",
    "Total number of object versions removed while draining buckets",
)
