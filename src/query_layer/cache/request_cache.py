"""
Request cache with in-flight deduplication.

Serves fresh values without fetching, collapses concurrent fetches for the
same key into one task and routes terminal failures to the auth failure
monitor. The cache never navigates or touches the session itself.

Lookup rules for get(key, fetcher):
    - FRESH:                 return the cached value
    - FETCHING:              join the pending task
    - EMPTY / STALE / FAILED: start a fetch and publish its task on the entry

The pending task is published before the first suspension point, so any
caller that runs afterwards sees it and joins instead of fetching.
"""

import asyncio
import functools
import time
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

import structlog

from query_layer.auth.monitor import AuthFailureMonitor
from query_layer.cache.entry import CacheEntry
from query_layer.models.cache_models import CacheSnapshot
from query_layer.models.enums import LookupOutcome, OperationKind
from query_layer.models.keys import KeyLike, RequestKey, key_has_prefix, make_key
from query_layer.monitoring.metrics import cache_lookups_total
from query_layer.retry.engine import RetryEngine
from query_layer.retry.exceptions import RequestFailed

T = TypeVar("T")

logger = structlog.get_logger(__name__)


def monotonic_ms() -> float:
    return time.monotonic() * 1000


def _fetch_done(entry: CacheEntry, task: asyncio.Task) -> None:
    if task.cancelled():
        # A task cancelled before its first step never runs its body
        if entry.pending is task:
            entry.abandon_fetch()
        return
    # Every caller may have walked away; mark the failure as retrieved
    task.exception()


class RequestCache:
    """
    Keyed store of fetch results.

    Attributes:
        engine: Runs fetchers under the retry policy
        monitor: Receives the classification of every terminal failure
        default_stale_after_ms: Staleness window when a get does not set one
        clock: Returns the current time in milliseconds (monotonic)
    """

    def __init__(
        self,
        engine: RetryEngine,
        monitor: AuthFailureMonitor,
        default_stale_after_ms: int = 300_000,
        clock: Callable[[], float] = monotonic_ms,
    ):
        if default_stale_after_ms < 0:
            raise ValueError("default_stale_after_ms must be >= 0")

        self.engine = engine
        self.monitor = monitor
        self.default_stale_after_ms = default_stale_after_ms
        self.clock = clock
        self._entries: dict[RequestKey, CacheEntry] = {}
        # Bumped by clear(); failures of work started earlier are not forwarded
        self._generation = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: KeyLike) -> bool:
        return make_key(key) in self._entries

    async def get(
        self,
        key: KeyLike,
        fetcher: Callable[[], Awaitable[T]],
        stale_after_ms: Optional[int] = None,
        max_retries: Optional[int] = None,
    ) -> T:
        """
        Return the value for `key`, fetching it when missing or stale.

        `stale_after_ms` and `max_retries` only take effect when this call
        starts the fetch; callers that join an in-flight fetch share its
        configuration and its outcome.

        Args:
            key: Request key (str, tuple or list)
            fetcher: Zero-argument coroutine function producing the value
            stale_after_ms: Staleness window for the entry this fetch produces
            max_retries: Override of the query retry budget for this fetch

        Raises:
            RequestFailed: The fetch this caller started or joined failed
        """
        request_key = make_key(key)
        entry = self._entries.get(request_key)
        if entry is None:
            entry = CacheEntry(key=request_key, stale_after_ms=self.default_stale_after_ms)
            self._entries[request_key] = entry

        if entry.in_flight:
            cache_lookups_total.labels(outcome=LookupOutcome.JOIN.value).inc()
            logger.debug("Joining in-flight fetch", key=request_key)
            task = entry.pending
        elif entry.is_fresh(self.clock()):
            cache_lookups_total.labels(outcome=LookupOutcome.HIT.value).inc()
            return entry.value
        else:
            cache_lookups_total.labels(outcome=LookupOutcome.MISS.value).inc()
            task = self._start_fetch(entry, fetcher, stale_after_ms, max_retries)

        # Shielded: a caller that gives up does not cancel the shared fetch
        return await asyncio.shield(task)

    def _start_fetch(
        self,
        entry: CacheEntry,
        fetcher: Callable[[], Awaitable[Any]],
        stale_after_ms: Optional[int],
        max_retries: Optional[int],
    ) -> asyncio.Task:
        window = self.default_stale_after_ms if stale_after_ms is None else stale_after_ms
        if window < 0:
            raise ValueError("stale_after_ms must be >= 0")

        logger.debug(
            "Starting fetch",
            key=entry.key,
            previous_status=entry.status.value,
            stale_after_ms=window,
        )
        task = asyncio.ensure_future(
            self._run_fetch(entry, fetcher, max_retries, self._generation)
        )
        task.add_done_callback(functools.partial(_fetch_done, entry))
        entry.begin_fetch(task, window)
        return task

    async def _run_fetch(
        self,
        entry: CacheEntry,
        fetcher: Callable[[], Awaitable[Any]],
        max_retries: Optional[int],
        generation: int,
    ) -> Any:
        # Cancellation is settled by _fetch_done, which also covers a task
        # cancelled before it started
        try:
            value, _ = await self.engine.execute(
                fetcher,
                OperationKind.QUERY,
                key=entry.key,
                max_retries=max_retries,
            )
        except RequestFailed as e:
            entry.settle_failure(e)
            await self._forward_failure(e, generation)
            raise

        entry.settle_success(value, self.clock())
        return value

    async def _forward_failure(self, failure: RequestFailed, generation: int) -> None:
        if generation != self._generation:
            logger.debug(
                "Failure from before the last clear, not forwarded",
                key=failure.key,
                classification=failure.classification.value,
            )
            return
        await self.monitor.on_classified_failure(failure.classification, key=failure.key)

    async def mutate(
        self,
        fetcher: Callable[[], Awaitable[T]],
        invalidates: Iterable[KeyLike] = (),
        max_retries: Optional[int] = None,
    ) -> T:
        """
        Run a write operation under the mutation retry budget.

        Mutations are neither cached nor deduplicated. On success every key
        prefix in `invalidates` is invalidated so dependent queries refetch.

        Raises:
            RequestFailed: The mutation failed
        """
        prefixes = [make_key(prefix) for prefix in invalidates]
        generation = self._generation
        try:
            value, _ = await self.engine.execute(
                fetcher,
                OperationKind.MUTATION,
                max_retries=max_retries,
            )
        except RequestFailed as e:
            await self._forward_failure(e, generation)
            raise

        for prefix in prefixes:
            self.invalidate_prefix(prefix)
        return value

    def invalidate(self, key: KeyLike) -> bool:
        """
        Force the entry for `key` stale. An in-flight fetch is not cancelled;
        its result lands already stale.

        Returns:
            True if an entry existed for `key`
        """
        request_key = make_key(key)
        entry = self._entries.get(request_key)
        if entry is None:
            return False
        entry.invalidate()
        logger.debug("Invalidated cache entry", key=request_key, status=entry.status.value)
        return True

    def invalidate_prefix(self, prefix: KeyLike) -> int:
        """Invalidate every entry whose key starts with `prefix`."""
        request_prefix = make_key(prefix)
        count = 0
        for key, entry in self._entries.items():
            if key_has_prefix(key, request_prefix):
                entry.invalidate()
                count += 1
        logger.debug("Invalidated cache entries by prefix", prefix=request_prefix, count=count)
        return count

    def set_value(self, key: KeyLike, value: Any) -> None:
        """Store `value` for `key` as if it had just been fetched."""
        request_key = make_key(key)
        entry = self._entries.get(request_key)
        if entry is None:
            entry = CacheEntry(key=request_key, stale_after_ms=self.default_stale_after_ms)
            self._entries[request_key] = entry
        entry.store(value, self.clock())

    def update_value(self, key: KeyLike, updater: Callable[[Any], Any]) -> Any:
        """
        Replace the value for `key` with `updater(current)`.

        `current` is None when nothing has been fetched yet.

        Returns:
            The new value
        """
        request_key = make_key(key)
        entry = self._entries.get(request_key)
        current = entry.value if entry is not None and entry.has_value else None
        value = updater(current)
        self.set_value(request_key, value)
        return value

    def peek(self, key: KeyLike) -> Optional[CacheSnapshot]:
        """Read-only view of the entry for `key`, None if there is none."""
        entry = self._entries.get(make_key(key))
        if entry is None:
            return None
        return entry.snapshot(self.clock())

    def cancel(self, key: KeyLike) -> bool:
        """
        Cancel the in-flight fetch for `key`.

        Callers awaiting it receive CancelledError. The entry goes back to
        STALE, or EMPTY if it never held a value, and the next get fetches.

        Returns:
            True if a fetch was in flight
        """
        entry = self._entries.get(make_key(key))
        if entry is None or not entry.in_flight:
            return False
        entry.pending.cancel()
        # Settle now so a get in the same tick starts a new fetch instead of
        # joining the dying one
        entry.abandon_fetch()
        logger.debug("Cancelled in-flight fetch", key=entry.key, status=entry.status.value)
        return True

    def clear(self) -> None:
        """
        Cancel every in-flight fetch and drop every entry.

        Failures of fetches and mutations started before the clear are
        no longer forwarded to the auth failure monitor.
        """
        cancelled = sum(1 for key in list(self._entries) if self.cancel(key))
        count = len(self._entries)
        self._entries.clear()
        self._generation += 1
        logger.info("Request cache cleared", entries=count, cancelled_fetches=cancelled)
