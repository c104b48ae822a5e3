"""
Retry policy: pure decision of whether a failed attempt is retried.

    AUTH_FAILURE -> never retried
    PERMANENT    -> never retried
    TRANSIENT    -> retried while attempt < max_retries(kind)

`attempt` counts retries already performed for the logical fetch, so a
query with the default budget of 3 runs at most 4 times.
"""

from typing import Optional

from query_layer.config import Settings
from query_layer.models.enums import ErrorClassification, OperationKind


class RetryPolicy:
    """
    Per-kind retry budget plus capped exponential backoff.

    Attributes:
        query_max_retries: Retries allowed for reads
        mutation_max_retries: Retries allowed for writes
        backoff_initial_ms: Delay before the first retry (0 disables backoff)
        backoff_max_ms: Upper bound for any single delay
    """

    def __init__(
        self,
        query_max_retries: int = 3,
        mutation_max_retries: int = 2,
        backoff_initial_ms: int = 1000,
        backoff_max_ms: int = 30_000,
    ):
        if query_max_retries < 0 or mutation_max_retries < 0:
            raise ValueError("max retries must be >= 0")
        if backoff_initial_ms < 0 or backoff_max_ms < 0:
            raise ValueError("backoff delays must be >= 0")

        self.query_max_retries = query_max_retries
        self.mutation_max_retries = mutation_max_retries
        self.backoff_initial_ms = backoff_initial_ms
        self.backoff_max_ms = backoff_max_ms

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            query_max_retries=settings.QUERY_MAX_RETRIES,
            mutation_max_retries=settings.MUTATION_MAX_RETRIES,
            backoff_initial_ms=settings.RETRY_BACKOFF_INITIAL_MS,
            backoff_max_ms=settings.RETRY_BACKOFF_MAX_MS,
        )

    def max_retries(self, kind: OperationKind) -> int:
        if kind is OperationKind.MUTATION:
            return self.mutation_max_retries
        return self.query_max_retries

    def should_retry(
        self,
        kind: OperationKind,
        classification: ErrorClassification,
        attempt: int,
        max_retries: Optional[int] = None,
    ) -> bool:
        """
        Decide whether to run another attempt.

        Args:
            kind: Query or mutation
            classification: Classification of the failure just observed
            attempt: Retries already performed (0 after the first failure)
            max_retries: Per-call override of the kind's budget
        """
        if not classification.retryable:
            return False
        budget = self.max_retries(kind) if max_retries is None else max_retries
        return attempt < budget

    def backoff_seconds(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-indexed)."""
        if self.backoff_initial_ms == 0 or attempt < 1:
            return 0.0
        delay_ms = min(self.backoff_initial_ms * 2 ** (attempt - 1), self.backoff_max_ms)
        return delay_ms / 1000
