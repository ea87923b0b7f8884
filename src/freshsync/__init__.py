"""freshsync - Keep an in-memory view of a remote dataset fresh.

This library polls a fetch function on a schedule, retries transient
failures with exponential backoff, seeds and writes through a
last-known-good cache, and filters, searches, sorts and pages the
resulting records in memory.

Example:
    >>> from freshsync import FilesystemSource, SyncOptions, SyncScheduler
    >>> async with SyncScheduler() as scheduler:
    ...     await scheduler.start(
    ...         FilesystemSource("orders.json"),
    ...         SyncOptions(max_retries=3, retry_delay=2.0),
    ...     )
    ...     print(scheduler.state.total_count)
"""

from freshsync.adapters.cache import FileCacheBackend, MemoryCacheBackend
from freshsync.adapters.sources import FilesystemSource, S3Source, create_source
from freshsync.adapters.visibility import ManualVisibility
from freshsync.config import Settings, find_project_root, load_settings
from freshsync.core.backoff import (
    BackoffPolicy,
    delay_for,
    is_retryable,
    is_timeout_error,
)
from freshsync.core.cache_store import CacheStore
from freshsync.core.exceptions import (
    CacheCorruptError,
    CacheError,
    CacheQuotaExceededError,
    ConfigurationError,
    FetchError,
    FreshsyncError,
    InvalidFilterError,
    SchedulerStateError,
    SourceAccessError,
    SourceError,
    SourceFormatError,
    SourceNotFoundError,
)
from freshsync.core.filtering import FilterEngine, paginate, validate_filters
from freshsync.core.models import (
    CacheEntry,
    FailureInfo,
    FetchOutcome,
    FieldType,
    FieldValidation,
    FilterExpression,
    FilterField,
    FilterGroup,
    FilterLogic,
    FilterOperator,
    FilterResult,
    FilterState,
    RetryState,
    SearchSummary,
    SortOrder,
    SyncPhase,
    SyncState,
    ValidationResult,
)
from freshsync.core.ports import AlwaysVisible, CacheBackend, VisibilitySignal
from freshsync.core.retry import RetryExecutor, retry_with_backoff
from freshsync.core.scheduler import CachedSyncScheduler, SyncOptions, SyncScheduler
from freshsync.progress import RichStatusReporter


__version__ = "0.1.0"

__all__ = [
    "AlwaysVisible",
    "BackoffPolicy",
    "CacheBackend",
    "CacheCorruptError",
    "CacheEntry",
    "CacheError",
    "CacheQuotaExceededError",
    "CacheStore",
    "CachedSyncScheduler",
    "ConfigurationError",
    "FailureInfo",
    "FetchError",
    "FetchOutcome",
    "FieldType",
    "FieldValidation",
    "FileCacheBackend",
    "FilesystemSource",
    "FilterEngine",
    "FilterExpression",
    "FilterField",
    "FilterGroup",
    "FilterLogic",
    "FilterOperator",
    "FilterResult",
    "FilterState",
    "FreshsyncError",
    "InvalidFilterError",
    "ManualVisibility",
    "MemoryCacheBackend",
    "RetryExecutor",
    "RetryState",
    "RichStatusReporter",
    "S3Source",
    "SchedulerStateError",
    "SearchSummary",
    "Settings",
    "SortOrder",
    "SourceAccessError",
    "SourceError",
    "SourceFormatError",
    "SourceNotFoundError",
    "SyncOptions",
    "SyncPhase",
    "SyncScheduler",
    "SyncState",
    "ValidationResult",
    "VisibilitySignal",
    "__version__",
    "create_source",
    "delay_for",
    "find_project_root",
    "is_retryable",
    "is_timeout_error",
    "load_settings",
    "paginate",
    "retry_with_backoff",
]
