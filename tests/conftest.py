"""Pytest configuration and shared fixtures.

This module registers custom markers for CI job separation and provides
shared fixtures for the test suite.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from freshsync.core.models import FetchOutcome


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "core: Core models, backoff and exceptions")
    config.addinivalue_line("markers", "cache: Cache store and cache backends")
    config.addinivalue_line("markers", "filter: Filter engine and validation")
    config.addinivalue_line("markers", "scheduler: Sync scheduler lifecycle")
    config.addinivalue_line("markers", "sources: Filesystem and S3 sources")
    config.addinivalue_line("markers", "progress: Rich status display")
    config.addinivalue_line("markers", "cli: CLI tests")
    config.addinivalue_line(
        "markers",
        "tier: Test tier for CI job separation (0=instant, 1=fast, 2=standard, 3=slow)",
    )


@pytest.fixture
def anyio_backend() -> str:
    """Run async tests on asyncio only."""
    return "asyncio"


class FakeClock:
    """Deterministic clock; call it for the current time, advance() to move."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingSleep:
    """Async sleep that records requested delays and returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        import asyncio

        self.delays.append(delay)
        await asyncio.sleep(0)


class ScriptedFetch:
    """Fetch function replaying a script of outcomes and exceptions.

    The last entry repeats once the script is exhausted.
    """

    def __init__(self, *steps: FetchOutcome | BaseException) -> None:
        self.steps = list(steps)
        self.calls = 0

    async def __call__(self) -> FetchOutcome:
        step = self.steps[min(self.calls, len(self.steps) - 1)]
        self.calls += 1
        if isinstance(step, BaseException):
            raise step
        return step


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def memory_backend():
    """Unlimited in-memory cache backend."""
    from freshsync.adapters.cache import MemoryCacheBackend

    return MemoryCacheBackend()


@pytest.fixture
def cache_store(memory_backend, clock: FakeClock):
    """CacheStore over the in-memory backend, on the fake clock."""
    from freshsync.core.cache_store import CacheStore

    return CacheStore(memory_backend, clock=clock)


@pytest.fixture
def scripted_fetch() -> type[ScriptedFetch]:
    """The ScriptedFetch class, for building fetch functions in tests."""
    return ScriptedFetch
