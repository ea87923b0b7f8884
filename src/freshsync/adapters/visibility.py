"""Settable visibility signal."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from freshsync.core.ports import Unsubscribe, VisibilityListener

logger = logging.getLogger(__name__)


class ManualVisibility:
    """VisibilitySignal whose state is driven by the caller.

    Useful for terminal dashboards that pause when backgrounded, and in
    tests.

    Example:
        >>> visibility = ManualVisibility()
        >>> scheduler = SyncScheduler(visibility=visibility)
        >>> visibility.set_visible(False)  # pauses auto refresh
    """

    def __init__(self, visible: bool = True) -> None:
        self._visible = visible
        self._listeners: list[VisibilityListener] = []

    @property
    def is_visible(self) -> bool:
        return self._visible

    def set_visible(self, visible: bool) -> None:
        """Change visibility and notify listeners if it changed."""
        if visible == self._visible:
            return
        self._visible = visible
        logger.debug("Visibility changed to %s", "visible" if visible else "hidden")
        for listener in list(self._listeners):
            listener(visible)

    def subscribe(self, listener: VisibilityListener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        """Number of registered listeners."""
        return len(self._listeners)
