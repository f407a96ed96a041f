"""Prometheus metrics for the IAM ServiceAccount Controller."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "iam_sa_controller_reconcile_total",
    "Total number of reconciliations",
    ["result"],
)

reconcile_duration_seconds = Histogram(
    "iam_sa_controller_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# IAM role operation metrics
role_operations_total = Counter(
    "iam_sa_controller_role_operations_total",
    "Total number of IAM role operations",
    ["operation", "result"],
)

# API call metrics
api_call_duration_seconds = Histogram(
    "iam_sa_controller_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

error_total = Counter(
    "iam_sa_controller_error_total",
    "Total number of reconciliation errors",
    ["error_type"],
)

# Work queue metrics
workqueue_adds_total = Counter(
    "iam_sa_controller_workqueue_adds_total",
    "Total number of keys added to the work queue",
)

workqueue_retries_total = Counter(
    "iam_sa_controller_workqueue_retries_total",
    "Total number of rate limited requeues",
)

workqueue_depth = Gauge(
    "iam_sa_controller_workqueue_depth",
    "Number of keys waiting in the work queue",
)

admission_total = Counter(
    "iam_sa_controller_admission_total",
    "ServiceAccount notifications by admission decision",
    ["decision"],
)
