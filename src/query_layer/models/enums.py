"""
Enumerations for Query Layer data models.

All enums are closed taxonomies - no values outside these sets are permitted.
"""

from enum import Enum


class ErrorClassification(str, Enum):
    """
    Three-way classification of a fetch failure.

    Governs retry eligibility and whether the session-expiry sequence runs.
    """

    TRANSIENT = "transient"
    AUTH_FAILURE = "auth_failure"
    PERMANENT = "permanent"

    @property
    def retryable(self) -> bool:
        return self is ErrorClassification.TRANSIENT


class OperationKind(str, Enum):
    """Read (query) vs write (mutation); each kind has its own retry budget."""

    QUERY = "query"
    MUTATION = "mutation"


class EntryStatus(str, Enum):
    """
    Lifecycle status of a cache entry.

    Allowed transitions:
        EMPTY -> FETCHING -> FRESH | FAILED
        FRESH -> STALE (time-based or explicit invalidation)
        STALE | FAILED -> FETCHING
    """

    EMPTY = "empty"
    FETCHING = "fetching"
    FRESH = "fresh"
    STALE = "stale"
    FAILED = "failed"


class LookupOutcome(str, Enum):
    """How a cache lookup was served (metrics label)."""

    HIT = "hit"
    MISS = "miss"
    JOIN = "join"
