"""Rich-based sync status reporter for terminal output."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.text import Text

from freshsync.core.formatting import status_to_color
from freshsync.core.models import SyncPhase


if TYPE_CHECKING:
    from freshsync.core.models import SyncState


class RichStatusReporter:
    """StateListener printing one line per sync phase change.

    Repeated states with the same phase and retry count are printed once,
    so subscribing it to a scheduler gives a compact log of a session.

    Example:
        reporter = RichStatusReporter(label="orders", max_retries=3)
        scheduler.subscribe(reporter)
    """

    def __init__(
        self,
        label: str = "",
        console: Console | None = None,
        max_retries: int | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            label: Prefix naming the dataset being synced.
            console: Console to print to. Defaults to stderr.
            max_retries: Shown as the denominator of retry progress.
        """
        self.label = label
        self.console = console or Console(stderr=True)
        self.max_retries = max_retries
        self._last: tuple[SyncPhase, int] | None = None

    def render(self, state: SyncState[Any]) -> Text:
        """Render a state as a single styled line."""
        phase = state.phase
        if phase is SyncPhase.FETCHING:
            body = "fetching..."
        elif phase is SyncPhase.RETRYING:
            limit = f"/{self.max_retries}" if self.max_retries is not None else ""
            body = f"retrying ({state.retry_count}{limit})"
        elif phase is SyncPhase.SUCCESS:
            body = f"{len(state.items)} item(s), {state.total_count} total"
            if state.last_updated is not None:
                body += f", updated {state.last_updated:%H:%M:%S}"
        elif phase is SyncPhase.ERROR:
            body = f"error: {state.error}"
            if state.items:
                body += f" (keeping {len(state.items)} item(s))"
        else:
            body = "idle"

        text = Text()
        if self.label:
            text.append(f"{self.label} ", style="bold blue")
        text.append(body, style=status_to_color(phase))
        return text

    def __call__(self, state: SyncState[Any]) -> None:
        key = (state.phase, state.retry_count)
        if key == self._last:
            return
        self._last = key
        self.console.print(self.render(state))
