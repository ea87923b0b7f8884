"""Port interfaces for hexagonal architecture.

Ports define contracts that adapters must implement. The core domain
depends only on these protocols, never on concrete implementations.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    import builtins

    from freshsync.core.models import FetchOutcome, RetryState, SyncState

FetchFunction = Callable[[], Awaitable["FetchOutcome[Any]"]]
StateListener = Callable[["SyncState[Any]"], None]
RetryListener = Callable[["RetryState"], None]
VisibilityListener = Callable[[bool], None]
Unsubscribe = Callable[[], None]
Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[None]]


def utc_now() -> datetime:
    """Default clock: the current timezone-aware UTC time."""
    return datetime.now(UTC)


@runtime_checkable
class CacheBackend(Protocol):
    """Synchronous key/value store holding serialized cache entries."""

    def get(self, key: str) -> str | None:
        """Return the stored value for key, or None if absent.

        Raises:
            CacheError: If the value exists but cannot be read.
        """
        ...

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value.

        Raises:
            CacheError: If the store rejects the write (quota, I/O).
        """
        ...

    def delete(self, key: str) -> None:
        """Remove key. Missing keys are ignored."""
        ...

    def keys(self) -> builtins.list[str]:
        """List all stored keys."""
        ...


@runtime_checkable
class VisibilitySignal(Protocol):
    """Whether the consuming surface is currently observed.

    The scheduler suspends its auto-refresh timer while the surface is
    hidden and refreshes stale data when it becomes visible again.
    """

    @property
    def is_visible(self) -> bool:
        """Current visibility."""
        ...

    def subscribe(self, listener: VisibilityListener) -> Unsubscribe:
        """Register a listener called with the new visibility on change.

        Returns:
            A callable that removes the listener.
        """
        ...


class AlwaysVisible:
    """A VisibilitySignal for surfaces that are never hidden.

    Used as the default when no visibility signal is supplied.
    """

    @property
    def is_visible(self) -> bool:
        """Always True."""
        return True

    def subscribe(self, listener: VisibilityListener) -> Unsubscribe:  # noqa: ARG002
        """Return a no-op unsubscribe; visibility never changes."""
        return lambda: None
