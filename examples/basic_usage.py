"""Basic cached sync example.

This example shows the simplest usage pattern: point a scheduler at a
source, start it, and read its state. The last good result is kept in a
local cache so the next run shows data before the network answers.
"""

import asyncio
from pathlib import Path

from freshsync import (
    CachedSyncScheduler,
    CacheStore,
    FileCacheBackend,
    RichStatusReporter,
    S3Source,
    SyncOptions,
)


async def main() -> None:
    source = S3Source("s3://my-bucket/customers/data.parquet")
    store = CacheStore(FileCacheBackend(Path(".freshsync/cache")))

    options = SyncOptions(refresh_interval=30.0, max_retries=3, retry_delay=1.0)

    async with CachedSyncScheduler(store, "customers") as scheduler:
        # Print one line per phase change (fetching, retrying, success, error)
        scheduler.subscribe(RichStatusReporter(label="customers"))

        state = await scheduler.start(source, options)
        print(f"{len(state.items)} customers, updated {state.last_updated}")

        # Auto refresh is on; keep the data fresh for a few minutes
        await asyncio.sleep(180)
        print(f"still {scheduler.state.total_count} customers")


if __name__ == "__main__":
    asyncio.run(main())
