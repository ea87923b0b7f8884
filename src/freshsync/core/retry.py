"""Retry driver for asynchronous operations.

Waits use an injected ``sleep`` coroutine (asyncio.sleep by default), so a
pending retry suspends only its own task and never the event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeVar

from freshsync.core.backoff import BackoffPolicy, is_retryable, is_timeout_error
from freshsync.core.models import RetryState


if TYPE_CHECKING:
    from freshsync.core.ports import RetryListener, Sleep

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """Invoke an operation until it succeeds, fails permanently, or runs out.

    Example:
        >>> executor = RetryExecutor()
        >>> result = await executor.execute(fetch, max_attempts=4,
        ...                                 policy=BackoffPolicy(base=2.0))
    """

    def __init__(self, sleep: Sleep | None = None) -> None:
        """Initialize the executor.

        Args:
            sleep: Coroutine function used to wait between attempts.
                Defaults to asyncio.sleep.
        """
        self._sleep = sleep or asyncio.sleep

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int,
        policy: BackoffPolicy,
        *,
        on_retry: RetryListener | None = None,
        should_continue: Callable[[], bool] | None = None,
    ) -> T:
        """Run operation with retries.

        Args:
            operation: Zero-argument coroutine function to invoke.
            max_attempts: Total attempts allowed, the initial one included.
            policy: Backoff policy giving the delay before each retry.
            on_retry: Called with the RetryState before each delayed retry.
            should_continue: Checked around each wait; returning False
                abandons the operation and re-raises the last failure.

        Returns:
            The operation's result.

        Raises:
            ValueError: If max_attempts is less than 1.
            Exception: The last failure, once it is non-retryable, attempts
                are exhausted, or should_continue returns False.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                if not is_retryable(e):
                    logger.debug("Non-retryable failure, giving up: %s", e)
                    raise
                if attempt + 1 >= max_attempts:
                    logger.error(
                        "Giving up after %d attempt(s): %s", attempt + 1, e
                    )
                    raise
                if should_continue is not None and not should_continue():
                    logger.debug("Retry abandoned by caller after: %s", e)
                    raise

                attempt += 1
                delay = policy.delay_for(attempt)
                logger.warning(
                    "Attempt %d failed%s, retrying in %.2fs: %s",
                    attempt,
                    " (timeout)" if is_timeout_error(e) else "",
                    delay,
                    e,
                )
                if on_retry is not None:
                    on_retry(RetryState(attempt=attempt, last_error=e, delay=delay))
                await self._sleep(delay)
                if should_continue is not None and not should_continue():
                    logger.debug("Retry abandoned by caller after: %s", e)
                    raise


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base: float = 1.0,
    cap: float = 8.0,
    factor: float = 2.0,
    sleep: Sleep | None = None,
) -> T:
    """One-shot helper: retry operation with exponential backoff.

    Defaults give delays of 1s then 2s across three attempts.
    """
    policy = BackoffPolicy(base=base, cap=cap, factor=factor)
    return await RetryExecutor(sleep=sleep).execute(
        operation, max_attempts=max_attempts, policy=policy
    )
