"""
Unit tests for RetryPolicy.

Tests the retry decision per classification and kind, and the backoff
schedule.
"""

import pytest

from query_layer.config import Settings
from query_layer.models.enums import ErrorClassification, OperationKind
from query_layer.retry.policy import RetryPolicy


# ============================================================================
# should_retry
# ============================================================================


@pytest.mark.parametrize("kind", [OperationKind.QUERY, OperationKind.MUTATION])
@pytest.mark.parametrize(
    "classification", [ErrorClassification.AUTH_FAILURE, ErrorClassification.PERMANENT]
)
def test_non_retryable_classifications_never_retry(kind, classification):
    policy = RetryPolicy()

    assert policy.should_retry(kind, classification, attempt=0) is False


@pytest.mark.parametrize(
    "attempt,expected", [(0, True), (1, True), (2, True), (3, False), (4, False)]
)
def test_query_transient_budget(attempt, expected):
    policy = RetryPolicy()

    assert policy.should_retry(OperationKind.QUERY, ErrorClassification.TRANSIENT, attempt) is expected


@pytest.mark.parametrize("attempt,expected", [(0, True), (1, True), (2, False)])
def test_mutation_transient_budget(attempt, expected):
    policy = RetryPolicy()

    assert (
        policy.should_retry(OperationKind.MUTATION, ErrorClassification.TRANSIENT, attempt)
        is expected
    )


def test_per_call_override():
    policy = RetryPolicy()

    assert policy.should_retry(
        OperationKind.QUERY, ErrorClassification.TRANSIENT, attempt=0, max_retries=0
    ) is False
    assert policy.should_retry(
        OperationKind.MUTATION, ErrorClassification.TRANSIENT, attempt=4, max_retries=5
    ) is True


def test_from_settings():
    settings = Settings(
        QUERY_MAX_RETRIES=5,
        MUTATION_MAX_RETRIES=1,
        RETRY_BACKOFF_INITIAL_MS=200,
        RETRY_BACKOFF_MAX_MS=1000,
    )
    policy = RetryPolicy.from_settings(settings)

    assert policy.max_retries(OperationKind.QUERY) == 5
    assert policy.max_retries(OperationKind.MUTATION) == 1
    assert policy.backoff_initial_ms == 200
    assert policy.backoff_max_ms == 1000


def test_negative_budget_rejected():
    with pytest.raises(ValueError):
        RetryPolicy(query_max_retries=-1)


# ============================================================================
# Backoff
# ============================================================================


def test_backoff_is_capped_exponential():
    policy = RetryPolicy(backoff_initial_ms=1000, backoff_max_ms=30_000)

    delays = [policy.backoff_seconds(attempt) for attempt in range(1, 8)]

    assert delays == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]


def test_backoff_disabled():
    policy = RetryPolicy(backoff_initial_ms=0)

    assert policy.backoff_seconds(1) == 0.0
    assert policy.backoff_seconds(3) == 0.0
