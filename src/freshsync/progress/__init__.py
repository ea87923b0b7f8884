"""Terminal status display for sync state."""

from freshsync.progress.rich_status import RichStatusReporter


__all__ = ["RichStatusReporter"]
