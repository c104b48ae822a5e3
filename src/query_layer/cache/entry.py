"""
Cache entry state.

A CacheEntry is owned by exactly one RequestCache and mutated only from
the event loop thread, between suspension points.
"""

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from query_layer.models.cache_models import CacheSnapshot
from query_layer.models.enums import EntryStatus
from query_layer.models.keys import RequestKey

if TYPE_CHECKING:
    from query_layer.retry.exceptions import RequestFailed


@dataclass
class CacheEntry:
    """
    Cached result for one request key.

    Attributes:
        key: Request key
        stale_after_ms: Staleness window set by the get that started the
            last fetch
        status: Stored status; FRESH entries past their window are reported
            STALE by effective_status()
        value: Last successfully fetched value (meaningful when has_value)
        has_value: True once at least one fetch succeeded
        fetched_at_ms: Clock reading of the last successful fetch
        pending: Task running the in-flight fetch, shared by joined callers
        error: Failure of the last fetch, cleared on success
        invalidated: Set when invalidate() lands during an in-flight fetch
    """

    key: RequestKey
    stale_after_ms: int
    status: EntryStatus = EntryStatus.EMPTY
    value: Any = None
    has_value: bool = False
    fetched_at_ms: Optional[float] = None
    pending: Optional[asyncio.Task] = None
    error: Optional["RequestFailed"] = None
    invalidated: bool = False

    def effective_status(self, now_ms: float) -> EntryStatus:
        if self.status is EntryStatus.FRESH and now_ms - self.fetched_at_ms >= self.stale_after_ms:
            return EntryStatus.STALE
        return self.status

    def is_fresh(self, now_ms: float) -> bool:
        return self.effective_status(now_ms) is EntryStatus.FRESH

    @property
    def in_flight(self) -> bool:
        return self.pending is not None and not self.pending.done()

    def begin_fetch(self, task: asyncio.Task, stale_after_ms: int) -> None:
        self.status = EntryStatus.FETCHING
        self.pending = task
        self.stale_after_ms = stale_after_ms
        self.invalidated = False

    def settle_success(self, value: Any, now_ms: float) -> None:
        self.value = value
        self.has_value = True
        self.fetched_at_ms = now_ms
        self.error = None
        self.pending = None
        self.status = EntryStatus.FRESH
        if self.invalidated:
            # Invalidated mid-flight: the result is stored but already stale
            self.status = EntryStatus.STALE
            self.invalidated = False

    def settle_failure(self, error: "RequestFailed") -> None:
        self.error = error
        self.pending = None
        self.invalidated = False
        self.status = EntryStatus.FAILED

    def abandon_fetch(self) -> None:
        """The fetch task was cancelled before settling."""
        self.pending = None
        self.invalidated = False
        self.status = EntryStatus.STALE if self.has_value else EntryStatus.EMPTY

    def invalidate(self) -> None:
        if self.status is EntryStatus.FETCHING:
            self.invalidated = True
        elif self.status is EntryStatus.FRESH:
            self.status = EntryStatus.STALE

    def store(self, value: Any, now_ms: float) -> None:
        """Write a value directly; an in-flight fetch keeps the entry FETCHING."""
        self.value = value
        self.has_value = True
        self.fetched_at_ms = now_ms
        if self.status is not EntryStatus.FETCHING:
            self.status = EntryStatus.FRESH
            self.error = None

    def snapshot(self, now_ms: float) -> CacheSnapshot:
        return CacheSnapshot(
            key=self.key,
            status=self.effective_status(now_ms),
            has_value=self.has_value,
            value=self.value,
            fetched_at_ms=self.fetched_at_ms,
            stale_after_ms=self.stale_after_ms,
            in_flight=self.in_flight,
            last_error=self.error.classification if self.error is not None else None,
        )
