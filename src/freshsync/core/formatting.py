"""Formatting helpers shared by the CLI and status display."""

from __future__ import annotations

from datetime import timedelta

from freshsync.core.models import SyncPhase


def status_to_color(status: str) -> str:
    """Map a cache status or sync phase to a color name.

    Args:
        status: "fresh", "stale", "missing", or a SyncPhase value.

    Returns:
        A rich color name, or an empty string for unknown statuses.
    """
    color_map = {
        "fresh": "green",
        "stale": "yellow",
        "missing": "red",
        SyncPhase.IDLE: "dim",
        SyncPhase.FETCHING: "cyan",
        SyncPhase.RETRYING: "yellow",
        SyncPhase.SUCCESS: "green",
        SyncPhase.ERROR: "red",
    }
    return color_map.get(status, "")


def format_age(age: timedelta) -> str:
    """Render an age compactly, e.g. "42s", "3m 5s", "2h 10m"."""
    seconds = max(int(age.total_seconds()), 0)
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {seconds}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"
