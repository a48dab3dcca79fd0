# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metrics: single source of truth for all metric objects.
Imported by services, stores and middleware. Never instantiated in controllers.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "scheduling_requests_total",
    "Total HTTP requests to the scheduling service",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "scheduling_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "scheduling_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Store Metrics (updated by repositories) ──
STORE_REQUEST_LATENCY = Histogram(
    "scheduling_store_request_duration_seconds",
    "Latency of calls to the external scheduling store",
    ["backend", "operation"],
)
STORE_ERRORS = Counter(
    "scheduling_store_errors_total",
    "Failed calls to the external scheduling store",
    ["backend", "operation"],
)

# ── Business Metrics (updated by service layer only) ──
PREVIEWS_GENERATED = Counter(
    "scheduling_previews_generated_total",
    "Total rotation previews computed",
    ["date_mode"],
)
BATCHES_COMMITTED = Counter(
    "scheduling_batches_committed_total",
    "Total batches successfully committed",
)
ASSIGNMENTS_CREATED = Counter(
    "scheduling_assignments_created_total",
    "Total assignment rows created through batch commits",
)
BATCH_FAILURES = Counter(
    "scheduling_batch_failures_total",
    "Total batch commits that did not land",
    ["reason"],
)
COMMITS_IN_FLIGHT = Gauge(
    "scheduling_commits_in_flight",
    "Number of batch commits currently being submitted",
)
