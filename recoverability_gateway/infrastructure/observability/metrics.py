"""Prometheus metrics for report volume, cache effectiveness and ledger health"""

from prometheus_client import Counter, Histogram

# Report metrics
report_counter = Counter(
    "recoverability_report_total",
    "Recoverability reports served",
    ["mode", "source"],  # mode: fiscal | custom; source: raw | aggregate | cache
)

report_client_count_histogram = Histogram(
    "recoverability_report_clients",
    "Clients shown per generated report",
    buckets=[0, 1, 5, 10, 25, 50, 100, 250, 500],
)

report_build_duration_histogram = Histogram(
    "recoverability_report_build_seconds",
    "Time to compute a report on cache miss",
    ["source"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# Cache metrics
cache_lookup_counter = Counter(
    "recoverability_cache_lookups_total",
    "Report cache lookups",
    ["result"],  # hit | miss
)

prewarm_counter = Counter(
    "recoverability_prewarm_total",
    "Background pre-warm outcomes per fiscal year",
    ["outcome"],  # cached | skipped | failed
)

# Upstream metrics
ledger_fetch_failures_counter = Counter(
    "ledger_fetch_failures_total",
    "Failed ledger source reads",
    ["source"],
)

reference_fetch_failures_counter = Counter(
    "reference_fetch_failures_total",
    "Failed service line reference lookups",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_report(mode: str, source: str, client_count: int | None = None) -> None:
    """Count a served report; client count is only observed for freshly built reports"""
    report_counter.labels(mode=mode, source=source).inc()
    if client_count is not None:
        report_client_count_histogram.observe(client_count)
