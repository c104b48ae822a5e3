"""Monitoring and metrics instrumentation for the Query Layer.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from query_layer.monitoring.metrics import (
    auth_episodes_total,
    cache_lookups_total,
    fetch_attempts_total,
    fetch_latency_seconds,
    request_failures_total,
    retries_total,
)

__all__ = [
    "cache_lookups_total",
    "fetch_attempts_total",
    "retries_total",
    "request_failures_total",
    "fetch_latency_seconds",
    "auth_episodes_total",
]
