"""Prometheus metrics for the Cloud Service Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "cloud_service_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "cloud_service_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 60.0, 600.0],
)

# Deletion metrics
delete_total = Counter(
    "cloud_service_operator_delete_total",
    "Total number of deletions",
    ["kind", "result"],
)

# Provider API call metrics
api_call_total = Counter(
    "cloud_service_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "cloud_service_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "cloud_service_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)

# Error metrics
error_total = Counter(
    "cloud_service_operator_error_total",
    "Total number of errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "cloud_service_operator_resource_status_total",
    "Resource status observations",
    ["kind", "status"],
)
