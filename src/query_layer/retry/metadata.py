"""
Retry state and metadata tracking.

RetryState is the mutable counter for one logical fetch; RetryMetadata is
the frozen record produced when that fetch settles.
"""

from dataclasses import dataclass, field
from typing import Optional

from query_layer.models.enums import ErrorClassification, OperationKind
from query_layer.models.keys import RequestKey


@dataclass
class RetryState:
    """
    Transient retry bookkeeping for one logical fetch.

    Attributes:
        kind: Query or mutation (selects the retry budget)
        attempt: Retries performed so far (0 on the first invocation)
    """

    kind: OperationKind
    attempt: int = 0

    @property
    def invocations(self) -> int:
        return self.attempt + 1


@dataclass(frozen=True)
class RetryMetadata:
    """
    Complete retry history for one settled fetch.

    Attributes:
        kind: Query or mutation
        total_attempts: Number of fetcher invocations
        total_latency_ms: Time from first invocation to settlement (ms)
        key: Request key, when the fetch belongs to a cache entry
        failures: Classification and error type of every failed attempt
        final_classification: Classification of the failure that ended the
            fetch, None when it succeeded
    """

    kind: OperationKind
    total_attempts: int
    total_latency_ms: int
    key: Optional[RequestKey] = None
    failures: list[dict] = field(default_factory=list)
    final_classification: Optional[ErrorClassification] = None

    def __post_init__(self) -> None:
        """Validate metadata invariants."""
        if self.total_attempts < 1:
            raise ValueError("total_attempts must be >= 1")

        if self.total_latency_ms < 0:
            raise ValueError("total_latency_ms must be >= 0")

        if len(self.failures) > self.total_attempts:
            raise ValueError("failures cannot outnumber attempts")

    @property
    def succeeded(self) -> bool:
        return self.final_classification is None
