"""Polling scheduler keeping an in-memory view of a remote dataset fresh.

The scheduler runs on a single asyncio event loop. Every state mutation
happens on that loop and is guarded by two checks: the scheduler must be
alive (not disposed) and the completing fetch must belong to the current
generation. Results of superseded or orphaned fetches are dropped.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Generic, Self, TypeVar

from freshsync.core.backoff import BackoffPolicy, is_retryable
from freshsync.core.exceptions import (
    ConfigurationError,
    FetchError,
    SchedulerStateError,
)
from freshsync.core.models import FetchOutcome, RetryState, SyncPhase, SyncState
from freshsync.core.ports import AlwaysVisible, utc_now
from freshsync.core.retry import RetryExecutor


if TYPE_CHECKING:
    from collections.abc import Coroutine
    from datetime import datetime
    from types import TracebackType

    from freshsync.core.cache_store import CacheStore
    from freshsync.core.ports import (
        Clock,
        FetchFunction,
        Sleep,
        StateListener,
        Unsubscribe,
        VisibilitySignal,
    )

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ERROR_MESSAGE = "Failed to fetch data"


@dataclass(frozen=True, slots=True)
class SyncOptions:
    """Scheduling and retry configuration.

    Attributes:
        refresh_interval: Seconds between auto refreshes, and the age at
            which data counts as stale. 0 disables the timer.
        enable_auto_refresh: Run the periodic refresh timer.
        max_retries: Retries after the initial attempt before giving up.
        retry_delay: Base backoff delay in seconds.
        max_retry_delay: Upper bound on a single backoff delay.
        backoff_factor: Multiplier applied per retry.
    """

    refresh_interval: float = 30.0
    enable_auto_refresh: bool = False
    max_retries: int = 3
    retry_delay: float = 2.0
    max_retry_delay: float = 60.0
    backoff_factor: float = 2.0

    def validate(self) -> None:
        """Check option values.

        Raises:
            ConfigurationError: If any value is out of range.
        """
        if self.refresh_interval < 0:
            raise ConfigurationError("refresh_interval cannot be negative")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative")
        if self.retry_delay < 0:
            raise ConfigurationError("retry_delay cannot be negative")
        if self.max_retry_delay < 0:
            raise ConfigurationError("max_retry_delay cannot be negative")
        if self.backoff_factor < 1:
            raise ConfigurationError("backoff_factor must be at least 1")

    @property
    def backoff_policy(self) -> BackoffPolicy:
        """Backoff policy derived from the retry options."""
        return BackoffPolicy(
            base=self.retry_delay,
            cap=max(self.max_retry_delay, self.retry_delay),
            factor=self.backoff_factor,
        )

    @property
    def stale_after(self) -> timedelta:
        """refresh_interval as a timedelta."""
        return timedelta(seconds=self.refresh_interval)


def error_message(failure: BaseException) -> str:
    """Human-readable message for a terminal failure."""
    if isinstance(failure, FetchError):
        return failure.message or DEFAULT_ERROR_MESSAGE
    return str(failure) or DEFAULT_ERROR_MESSAGE


class SyncScheduler(Generic[T]):
    """Fetches, retries and periodically refreshes a dataset.

    Lifecycle: construct, ``await start(fetch_fn, options)``, call
    ``refresh()`` as needed, then ``dispose()``. The scheduler is also an
    async context manager that disposes itself on exit.

    Example:
        >>> async with SyncScheduler() as scheduler:
        ...     await scheduler.start(fetch_companies, SyncOptions(max_retries=2))
        ...     print(scheduler.state.items)
    """

    def __init__(
        self,
        *,
        visibility: VisibilitySignal | None = None,
        clock: Clock | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        """Initialize an idle scheduler.

        Args:
            visibility: Signal gating the auto-refresh timer. Defaults to a
                surface that is always visible.
            clock: Source of the current time. Defaults to UTC now.
            sleep: Coroutine function used for timer and backoff waits.
                Defaults to asyncio.sleep.
        """
        self._visibility = visibility or AlwaysVisible()
        self._clock = clock or utc_now
        self._sleep = sleep or asyncio.sleep
        self._executor = RetryExecutor(sleep=self._sleep)

        self._state: SyncState[T] = SyncState()
        self._listeners: list[StateListener] = []
        self._fetch_fn: FetchFunction | None = None
        self._options = SyncOptions()

        self._alive = True
        self._started = False
        self._generation = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._timer: asyncio.Task[None] | None = None
        self._pending: set[asyncio.Task[Any]] = set()
        self._unsubscribe_visibility: Unsubscribe | None = None

    async def __aenter__(self) -> Self:
        """Enter context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Dispose the scheduler."""
        self.dispose()

    @property
    def state(self) -> SyncState[T]:
        """The current state snapshot."""
        return self._state

    @property
    def options(self) -> SyncOptions:
        """Options given to start()."""
        return self._options

    @property
    def is_alive(self) -> bool:
        """False once dispose() has been called."""
        return self._alive

    @property
    def generation(self) -> int:
        """Number of refreshes issued so far."""
        return self._generation

    @property
    def is_stale(self) -> bool:
        """True if never updated or last_updated is refresh_interval old."""
        return self._state.is_stale_at(self._clock(), self._options.stale_after)

    @property
    def auto_refresh_active(self) -> bool:
        """True while the periodic refresh timer is scheduled."""
        return self._timer is not None and not self._timer.done()

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """Call listener with every new state.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(
        self, fetch_fn: FetchFunction, options: SyncOptions | None = None
    ) -> SyncState[T]:
        """Begin synchronizing and wait for the initial fetch to settle.

        Args:
            fetch_fn: Zero-argument coroutine function returning FetchOutcome.
            options: Scheduling options. Defaults to SyncOptions().

        Returns:
            The state after the initial fetch settles.

        Raises:
            SchedulerStateError: If already started or disposed.
            ConfigurationError: If options are invalid.
        """
        if not self._alive:
            raise SchedulerStateError("Cannot start a disposed scheduler")
        if self._started:
            raise SchedulerStateError("Scheduler already started")

        options = options or SyncOptions()
        options.validate()

        self._fetch_fn = fetch_fn
        self._options = options
        self._loop = asyncio.get_running_loop()
        self._started = True

        self._before_first_fetch()

        self._unsubscribe_visibility = self._visibility.subscribe(
            self._on_visibility_change
        )
        if self._visibility.is_visible:
            self._start_timer()

        return await self.refresh()

    async def refresh(self) -> SyncState[T]:
        """Fetch now, with retries, and wait for the result to settle.

        Concurrent calls are allowed; only the most recently issued one
        may update the state.

        Returns:
            The state after this refresh settles (or the current state if
            the refresh was superseded or the scheduler disposed).

        Raises:
            SchedulerStateError: If start() has not been called.
        """
        if not self._started:
            raise SchedulerStateError("Call start() before refresh()")
        if not self._alive:
            logger.debug("Ignoring refresh on disposed scheduler")
            return self._state

        self._generation += 1
        generation = self._generation

        def is_current() -> bool:
            return self._alive and generation == self._generation

        def on_retry(retry: RetryState) -> None:
            if is_current():
                self._publish(
                    self._state.evolve(
                        retry_count=retry.attempt, phase=SyncPhase.RETRYING
                    )
                )

        self._publish(
            self._state.evolve(loading=True, error=None, phase=SyncPhase.FETCHING)
        )

        try:
            outcome = await self._executor.execute(
                self._fetch_once,
                max_attempts=self._options.max_retries + 1,
                policy=self._options.backoff_policy,
                on_retry=on_retry,
                should_continue=is_current,
            )
        except Exception as e:
            if not is_current():
                logger.debug("Discarding failure of superseded fetch #%d", generation)
                return self._state
            logger.error("Fetch failed: %s", e)
            retry_count = (
                self._options.max_retries
                if is_retryable(e)
                else self._state.retry_count
            )
            self._publish(
                self._state.evolve(
                    loading=False,
                    error=error_message(e),
                    retry_count=retry_count,
                    phase=SyncPhase.ERROR,
                )
            )
            return self._state

        if not is_current():
            logger.debug("Discarding result of superseded fetch #%d", generation)
            return self._state

        self._on_success(outcome)
        self._publish(
            self._state.evolve(
                items=outcome.items,
                total_count=outcome.total_count,
                last_updated=self._clock(),
                retry_count=0,
                loading=False,
                error=None,
                phase=SyncPhase.SUCCESS,
            )
        )
        return self._state

    def dispose(self) -> None:
        """Stop timers and listeners; later completions are ignored.

        In-flight fetches are not cancelled. Safe to call more than once.
        """
        if not self._alive:
            return
        self._alive = False
        self._stop_timer()
        if self._unsubscribe_visibility is not None:
            self._unsubscribe_visibility()
            self._unsubscribe_visibility = None
        self._listeners.clear()

    async def wait_idle(self) -> None:
        """Wait until background refreshes spawned by timers have settled."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _before_first_fetch(self) -> None:
        """Hook run by start() before the initial fetch."""

    def _on_success(self, outcome: FetchOutcome[T]) -> None:
        """Hook run when the latest fetch succeeds, before its state is published."""

    async def _fetch_once(self) -> FetchOutcome[T]:
        if self._fetch_fn is None:
            raise SchedulerStateError("Call start() before fetching")
        outcome = await self._fetch_fn()
        if not isinstance(outcome, FetchOutcome):
            raise FetchError(
                f"Fetch function returned {type(outcome).__name__}, "
                "expected FetchOutcome",
                code="invalid_format",
            )
        return outcome

    def _publish(self, state: SyncState[T]) -> None:
        if not self._alive:
            return
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener %r failed", listener)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        if self._loop is None:
            raise SchedulerStateError("Call start() before scheduling refreshes")
        task = self._loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _start_timer(self) -> None:
        if not self._options.enable_auto_refresh or self._options.refresh_interval <= 0:
            return
        if self.auto_refresh_active:
            return
        if self._loop is None:
            raise SchedulerStateError("Call start() before scheduling refreshes")
        self._timer = self._loop.create_task(self._run_timer())

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _run_timer(self) -> None:
        interval = self._options.refresh_interval
        while self._alive:
            await self._sleep(interval)
            if not self._alive:
                return
            logger.debug("Auto-refresh tick")
            self._spawn(self.refresh())

    def _on_visibility_change(self, visible: bool) -> None:
        if not self._alive or not self._options.enable_auto_refresh:
            return
        logger.debug("Surface became %s", "visible" if visible else "hidden")
        if not visible:
            self._stop_timer()
            return
        if self.is_stale:
            self._spawn(self.refresh())
        self._start_timer()


class CachedSyncScheduler(SyncScheduler[T]):
    """SyncScheduler that seeds from and writes through to a CacheStore.

    On start, a cached entry for ``cache_key`` (fresh or not) is published
    before the first network attempt. Every successful fetch is written
    back under the same key.
    """

    def __init__(
        self,
        cache: CacheStore,
        cache_key: str,
        *,
        cache_expiry: float = 60.0,
        visibility: VisibilitySignal | None = None,
        clock: Clock | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        """Initialize the cached scheduler.

        Args:
            cache: Store holding last-known-good outcomes.
            cache_key: Key identifying this logical query in the store.
            cache_expiry: Seconds after which a cached entry is not fresh.
            visibility: See SyncScheduler.
            clock: See SyncScheduler.
            sleep: See SyncScheduler.
        """
        if not cache_key:
            raise ConfigurationError("cache_key cannot be empty")
        if cache_expiry < 0:
            raise ConfigurationError("cache_expiry cannot be negative")
        super().__init__(visibility=visibility, clock=clock, sleep=sleep)
        self._cache = cache
        self._cache_key = cache_key
        self._cache_expiry = cache_expiry
        self._seeded_at: datetime | None = None

    @property
    def cache_key(self) -> str:
        """Key this scheduler reads and writes."""
        return self._cache_key

    @property
    def seeded_from_cache(self) -> bool:
        """True if start() published a cached entry."""
        return self._seeded_at is not None

    @property
    def seeded_at(self) -> datetime | None:
        """Timestamp of the cached entry used to seed the state."""
        return self._seeded_at

    def is_cache_fresh(self) -> bool:
        """Check whether the stored entry is younger than cache_expiry."""
        entry = self._cache.read(self._cache_key)
        return entry is not None and self._cache.is_fresh(entry, self._cache_expiry)

    def _before_first_fetch(self) -> None:
        entry = self._cache.read(self._cache_key)
        if entry is None:
            return
        logger.debug(
            "Seeding '%s' from cache entry of %s", self._cache_key, entry.timestamp
        )
        self._seeded_at = entry.timestamp
        self._publish(
            self._state.evolve(
                items=entry.payload.items, total_count=entry.payload.total_count
            )
        )

    def _on_success(self, outcome: FetchOutcome[T]) -> None:
        self._cache.write(self._cache_key, outcome)
