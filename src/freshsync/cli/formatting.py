"""Shared formatting helpers for CLI commands."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from freshsync.adapters.sources.router import parse_uri_scheme, strip_file_scheme
from freshsync.core.formatting import status_to_color


if TYPE_CHECKING:
    from collections.abc import Sequence

    from freshsync.core.models import FilterResult


def _format_status_with_color(status: str) -> Text:
    """Format a status string with color coding.

    Args:
        status: Cache status ("fresh", "stale", "missing") or sync phase.

    Returns:
        Rich Text object, colored when the status is known.
    """
    color = status_to_color(status)
    return Text(status, style=color) if color else Text(status)


def _format_size(size_bytes: int) -> str:
    """Format size in bytes to human-readable format."""
    size = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} TB"


def cache_key_for(source: str) -> str:
    """Derive a stable, path-safe cache key from a source URI.

    "s3://bucket/a.csv" becomes "s3/bucket/a.csv"; local paths are resolved
    and stored under "file/".
    """
    scheme = parse_uri_scheme(source)
    if scheme in ("file", None):
        resolved = Path(strip_file_scheme(source)).resolve()
        return "file/" + resolved.as_posix().lstrip("/")
    return f"{scheme}/{source.split('://', 1)[1].lstrip('/')}"


def _cell(value: Any) -> Text:
    if value is None:
        return Text("")
    if isinstance(value, bool):
        return Text("true" if value else "false")
    return Text(str(value))


def _columns(records: Sequence[Any]) -> list[str]:
    columns: list[str] = []
    for record in records:
        if not isinstance(record, Mapping):
            continue
        for key in record:
            if key not in columns:
                columns.append(str(key))
    return columns


def build_records_table(records: Sequence[Any]) -> Table:
    """Build a table with one row per record and one column per field.

    Columns follow the order in which fields first appear. Records that
    are not mappings are shown in a single "value" column.
    """
    columns = _columns(records)
    table = Table()
    if not columns:
        table.add_column("value")
        for record in records:
            table.add_row(_cell(record))
        return table

    for column in columns:
        table.add_column(column)
    for record in records:
        if isinstance(record, Mapping):
            table.add_row(*(_cell(record.get(c)) for c in columns))
        else:
            table.add_row(_cell(record), *[Text("")] * (len(columns) - 1))
    return table


def describe_page(result: FilterResult[Any]) -> str:
    """One-line summary of a page of results."""
    pages = max(result.total_pages, 1)
    return (
        f"Page {result.current_page + 1}/{pages}: {len(result.items)} of "
        f"{result.filtered_count} matching ({result.total_count} total)"
    )
