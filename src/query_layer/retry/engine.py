"""
Retry engine for one logical fetch.

Runs a fetcher, classifies each failure and asks the retry policy whether
to try again. Settles with the fetched value or raises RequestFailed.

Attempt loop:
    1. Invoke fetcher
    2. On failure: classify -> policy.should_retry(kind, classification, attempt)
    3. Retry: attempt += 1, sleep backoff, go to 1
    4. Stop: raise RequestFailed (chained to the last fetcher error)

Usage:
    engine = RetryEngine(classifier, policy)
    value, metadata = await engine.execute(fetcher, OperationKind.QUERY, key=("me",))
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from query_layer.models.enums import ErrorClassification, OperationKind
from query_layer.models.keys import RequestKey
from query_layer.monitoring.metrics import (
    fetch_attempts_total,
    fetch_latency_seconds,
    request_failures_total,
    retries_total,
)
from query_layer.retry.classifier import ErrorClassifier
from query_layer.retry.exceptions import RequestFailed
from query_layer.retry.metadata import RetryMetadata, RetryState
from query_layer.retry.policy import RetryPolicy

T = TypeVar("T")
Fetcher = Callable[[], Awaitable[Any]]

logger = structlog.get_logger(__name__)


class RetryEngine:
    """
    Executes fetchers under the retry policy.

    The engine owns no cache state; it is shared by every fetch started
    through a RequestCache and holds nothing between calls.

    Attributes:
        classifier: Maps fetcher errors to ErrorClassification
        policy: Retry budget and backoff
        sleep: Coroutine used for backoff delays (injectable for tests)
    """

    def __init__(
        self,
        classifier: ErrorClassifier,
        policy: RetryPolicy,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.classifier = classifier
        self.policy = policy
        self.sleep = sleep

        logger.info(
            "RetryEngine initialized",
            query_max_retries=policy.query_max_retries,
            mutation_max_retries=policy.mutation_max_retries,
            backoff_initial_ms=policy.backoff_initial_ms,
            backoff_max_ms=policy.backoff_max_ms,
        )

    async def execute(
        self,
        fetcher: Callable[[], Awaitable[T]],
        kind: OperationKind,
        key: Optional[RequestKey] = None,
        max_retries: Optional[int] = None,
    ) -> tuple[T, RetryMetadata]:
        """
        Run `fetcher` until it succeeds or the policy says stop.

        Args:
            fetcher: Zero-argument coroutine function producing the value
            kind: Query or mutation (selects the retry budget)
            key: Request key, for logging and metadata
            max_retries: Per-call override of the kind's retry budget

        Returns:
            Tuple of (fetched value, retry metadata)

        Raises:
            RequestFailed: Fetch stopped on AUTH_FAILURE, PERMANENT or an
                exhausted TRANSIENT budget
        """
        # Every event logged during the attempts carries the key and kind
        with structlog.contextvars.bound_contextvars(key=key, kind=kind.value):
            return await self._run_attempts(fetcher, kind, key, max_retries)

    async def _run_attempts(
        self,
        fetcher: Callable[[], Awaitable[T]],
        kind: OperationKind,
        key: Optional[RequestKey],
        max_retries: Optional[int],
    ) -> tuple[T, RetryMetadata]:
        state = RetryState(kind=kind)
        failures: list[dict] = []
        start = time.monotonic()

        while True:
            fetch_attempts_total.labels(kind=kind.value).inc()
            try:
                value = await fetcher()
            except Exception as e:
                classification = self.classifier.classify(e)
                failures.append(
                    {
                        "attempt": state.invocations,
                        "classification": classification.value,
                        "error_type": type(e).__name__,
                        "error": str(e),
                    }
                )

                if self.policy.should_retry(kind, classification, state.attempt, max_retries):
                    state.attempt += 1
                    retries_total.labels(kind=kind.value).inc()
                    backoff_seconds = self.policy.backoff_seconds(state.attempt)

                    logger.warning(
                        f"Fetch attempt {state.attempt} failed, retrying",
                        classification=classification.value,
                        error_type=type(e).__name__,
                        backoff_seconds=backoff_seconds,
                    )
                    if backoff_seconds > 0:
                        await self.sleep(backoff_seconds)
                    continue

                metadata = self._build_metadata(state, start, key, failures, classification)
                self._log_failure(metadata, e)
                request_failures_total.labels(
                    kind=kind.value, classification=classification.value
                ).inc()
                fetch_latency_seconds.labels(kind=kind.value, success="false").observe(
                    time.monotonic() - start
                )
                raise RequestFailed(
                    kind=kind,
                    classification=classification,
                    retry_metadata=metadata,
                    last_error=e,
                    key=key,
                ) from e

            metadata = self._build_metadata(state, start, key, failures, None)
            fetch_latency_seconds.labels(kind=kind.value, success="true").observe(
                time.monotonic() - start
            )
            if failures:
                logger.info(
                    "Fetch succeeded after retries",
                    total_attempts=metadata.total_attempts,
                    total_latency_ms=metadata.total_latency_ms,
                )
            return value, metadata

    @staticmethod
    def _build_metadata(
        state: RetryState,
        start: float,
        key: Optional[RequestKey],
        failures: list[dict],
        classification: Optional[ErrorClassification],
    ) -> RetryMetadata:
        return RetryMetadata(
            kind=state.kind,
            total_attempts=state.invocations,
            total_latency_ms=int((time.monotonic() - start) * 1000),
            key=key,
            failures=list(failures),
            final_classification=classification,
        )

    @staticmethod
    def _log_failure(metadata: RetryMetadata, error: Exception) -> None:
        if metadata.final_classification is ErrorClassification.TRANSIENT:
            event = "Retry budget exhausted"
        else:
            event = "Fetch failed with non-retryable error"
        logger.error(
            event,
            classification=metadata.final_classification.value,
            total_attempts=metadata.total_attempts,
            total_latency_ms=metadata.total_latency_ms,
            error_type=type(error).__name__,
        )
