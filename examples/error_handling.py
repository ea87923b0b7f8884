"""Error handling patterns with recovery hints.

This example demonstrates how fetch failures surface: transient errors
are retried, final ones end in the error phase while previous items stay
visible, and library errors carry a recovery_hint.
"""

import asyncio

from freshsync import (
    FetchError,
    FetchOutcome,
    FilesystemSource,
    FreshsyncError,
    SourceFormatError,
    SyncOptions,
    SyncPhase,
    SyncScheduler,
    is_retryable,
)


# Pattern 1: Raise FetchError with a code from your own fetch function
async def fetch_orders() -> FetchOutcome:
    """Fetch function for an API that rejects expired tokens."""
    # Codes like "401" or "42501" are never retried
    raise FetchError("JWT expired", code="401")


# Pattern 2: Inspect the error phase instead of catching exceptions
async def sync_with_error_state() -> None:
    async with SyncScheduler() as scheduler:
        state = await scheduler.start(fetch_orders, SyncOptions(max_retries=3))

    if state.phase is SyncPhase.ERROR:
        print(f"Sync failed: {state.error}")
        print(f"Showing {len(state.items)} previously fetched item(s)")


# Pattern 3: Classify failures yourself
def describe(error: Exception) -> str:
    if is_retryable(error):
        return f"transient: {error}"
    return f"final: {error}"


# Pattern 4: Use recovery hints from source errors
async def fetch_local(path: str) -> None:
    try:
        await FilesystemSource(path)()
    except SourceFormatError as e:
        print(f"Bad data in {e.source}")
        print(f"Hint: {e.recovery_hint}")
    except FreshsyncError as e:
        print(f"Unexpected error: {e}")
        print(f"Hint: {e.recovery_hint}")


if __name__ == "__main__":
    asyncio.run(sync_with_error_state())
    print(describe(FetchError("statement timeout", code="57014")))
    asyncio.run(fetch_local("orders.json"))
