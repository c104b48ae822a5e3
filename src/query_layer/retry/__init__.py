"""
Retry handling for fetch failures.

Failures are classified as TRANSIENT, AUTH_FAILURE or PERMANENT. Only
TRANSIENT failures are retried, up to a per-kind budget (queries 3,
mutations 2), with capped exponential backoff between attempts.

Main Components:
    - ErrorClassifier: Maps any exception onto the classification taxonomy
    - RetryPolicy: Pure retry decision and backoff schedule
    - RetryEngine: Attempt loop for one logical fetch
    - RetryMetadata: Immutable history of a settled fetch
    - RequestFailed: Exception surfaced to callers when a fetch stops

Usage:
    >>> from query_layer.retry import ErrorClassifier, RetryEngine, RetryPolicy
    >>> engine = RetryEngine(ErrorClassifier(), RetryPolicy())
    >>> value, metadata = await engine.execute(fetcher, OperationKind.QUERY)
"""

from query_layer.retry.classifier import ErrorClassifier
from query_layer.retry.engine import RetryEngine
from query_layer.retry.exceptions import RequestFailed
from query_layer.retry.metadata import RetryMetadata, RetryState
from query_layer.retry.policy import RetryPolicy

__all__ = [
    "ErrorClassifier",
    "RetryEngine",
    "RetryMetadata",
    "RetryPolicy",
    "RetryState",
    "RequestFailed",
]
