"""Core domain module for freshsync.

This module contains the pure domain: models, ports, retry and backoff,
the sync scheduler and the filter engine. It has no dependency on the
adapters and can be tested in isolation.
"""

from freshsync.core.models import (
    CacheEntry,
    FetchOutcome,
    FilterExpression,
    FilterGroup,
    FilterState,
    SyncPhase,
    SyncState,
)
from freshsync.core.ports import CacheBackend, FetchFunction, VisibilitySignal


__all__ = [
    "CacheBackend",
    "CacheEntry",
    "FetchFunction",
    "FetchOutcome",
    "FilterExpression",
    "FilterGroup",
    "FilterState",
    "SyncPhase",
    "SyncState",
    "VisibilitySignal",
]
