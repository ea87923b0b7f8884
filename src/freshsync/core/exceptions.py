"""Domain exceptions for freshsync.

All library errors inherit from FreshsyncError, allowing users to catch
any library exception with a single except clause. Each exception provides
a recovery_hint property with guidance on resolving the error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from pathlib import Path

    from freshsync.core.models import FailureInfo


class FreshsyncError(Exception):
    """Base class for all freshsync exceptions.

    Catch this to handle any error from the library.
    """

    @property
    def recovery_hint(self) -> str | None:
        """Optional guidance on how to resolve this error."""
        return None


class FetchError(FreshsyncError):
    """Structured failure raised by fetch operations.

    Retry classification looks only at ``code`` and ``message``, so fetch
    functions should translate transport errors into this type with a
    meaningful code.

    Attributes:
        message: Human-readable description of the failure.
        code: Machine-readable failure code (e.g. "42501", "permission_denied").
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.cause = cause
        super().__init__(message)

    @property
    def info(self) -> FailureInfo:
        """Structured view of this failure for retry classification."""
        from freshsync.core.models import FailureInfo

        return FailureInfo(code=self.code, message=self.message)


class SourceError(FetchError):
    """Base class for errors raised by the bundled data sources.

    Attributes:
        source: The URI or path that caused the error.
    """

    def __init__(
        self,
        message: str,
        source: str,
        code: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.source = source
        super().__init__(message, code=code, cause=cause)


class SourceNotFoundError(SourceError):
    """Raised when the source file or object doesn't exist."""

    def __init__(
        self, message: str, source: str, cause: BaseException | None = None
    ) -> None:
        super().__init__(message, source, code="not_found", cause=cause)

    @property
    def recovery_hint(self) -> str:
        """Suggest verifying the path."""
        return f"Verify the source path exists: {self.source}"


class SourceAccessError(SourceError):
    """Raised when access to the source is denied (permissions, credentials)."""

    def __init__(
        self, message: str, source: str, cause: BaseException | None = None
    ) -> None:
        super().__init__(message, source, code="permission_denied", cause=cause)

    @property
    def recovery_hint(self) -> str:
        """Suggest checking permissions."""
        return "Check credentials and bucket/path permissions"


class SourceFormatError(SourceError):
    """Raised when source content cannot be decoded into records."""

    def __init__(
        self, message: str, source: str, cause: BaseException | None = None
    ) -> None:
        super().__init__(message, source, code="invalid_format", cause=cause)

    @property
    def recovery_hint(self) -> str:
        """Suggest checking the payload shape."""
        return (
            "Sources must hold a JSON list of records, a JSON object with an "
            "'items' list, a CSV file or a Parquet file"
        )


class CacheError(FreshsyncError):
    """Base class for cache-related errors."""

    pass


class CacheCorruptError(CacheError):
    """Raised when a cached entry is corrupt or unreadable.

    Attributes:
        key: The cache key for the corrupt entry.
        path: The path to the corrupt file, when the backend is file-based.
    """

    def __init__(
        self,
        message: str,
        key: str,
        path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.key = key
        self.path = path
        self.cause = cause
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Suggest deleting the corrupt cache entry."""
        return f"Run 'freshsync cache clear {self.key}' and fetch again"


class CacheQuotaExceededError(CacheError):
    """Raised when a write would exceed the backend's storage quota.

    Attributes:
        key: The cache key being written.
        size: Size of the rejected value in bytes.
        limit: Configured quota in bytes.
    """

    def __init__(self, key: str, size: int, limit: int) -> None:
        self.key = key
        self.size = size
        self.limit = limit
        super().__init__(
            f"Cache quota exceeded writing '{key}' ({size} bytes, limit {limit})"
        )

    @property
    def recovery_hint(self) -> str:
        """Suggest freeing space."""
        return "Clear unused cache keys or raise the backend quota"


class ConfigurationError(FreshsyncError):
    """Raised for configuration problems (invalid options or config files)."""

    pass


class InvalidFilterError(FreshsyncError, ValueError):
    """Raised when a filter definition cannot be parsed.

    Attributes:
        definition: The offending definition, as given by the caller.
    """

    def __init__(self, message: str, definition: object = None) -> None:
        self.definition = definition
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Show the expected filter syntax."""
        return "Filters take the form field:operator:value, e.g. score:greater:5"


class SchedulerStateError(FreshsyncError):
    """Raised when a scheduler lifecycle method is called out of order."""

    pass
