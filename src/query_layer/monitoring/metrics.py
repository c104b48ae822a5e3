"""Custom Prometheus metrics for the Query Layer.

These metrics live in the default prometheus_client registry; the host
application decides how to expose them. Alert rules should be configured for:
- request_failures_total (high terminal failure rate)
- auth_episodes_total (sessions expiring unexpectedly often)
- retries_total (unstable data source)
"""

from prometheus_client import Counter, Histogram

# === Cache Metrics ===

cache_lookups_total = Counter(
    "query_cache_lookups_total",
    "Total cache lookups by outcome",
    ["outcome"],
)
"""
Cache lookups counter.

Labels:
- outcome: hit (fresh value served), miss (fetch started), join (attached to an in-flight fetch)

A high join ratio means deduplication is absorbing concurrent callers.
"""

# === Fetch Metrics ===

fetch_attempts_total = Counter(
    "query_fetch_attempts_total",
    "Total fetcher invocations by operation kind",
    ["kind"],
)

retries_total = Counter(
    "query_retries_total",
    "Total retries by operation kind",
    ["kind"],
)
"""
Retries counter.

Labels:
- kind: query, mutation

Alert thresholds:
- WARN: retries > 10% of fetch attempts
- CRITICAL: retries > 30% of fetch attempts
"""

request_failures_total = Counter(
    "query_request_failures_total",
    "Total fetches that settled with a failure, by kind and classification",
    ["kind", "classification"],
)
"""
Terminal failures counter.

Labels:
- kind: query, mutation
- classification: transient (budget exhausted), auth_failure, permanent
"""

fetch_latency_seconds = Histogram(
    "query_fetch_latency_seconds",
    "Latency of a logical fetch including retries and backoff",
    ["kind", "success"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

# === Session Metrics ===

auth_episodes_total = Counter(
    "query_auth_episodes_total",
    "Session-expiry episodes that triggered logout and redirect",
)
"""
Session-expiry episodes counter.

Incremented once per episode, however many requests failed with an
authentication error inside it.
"""
