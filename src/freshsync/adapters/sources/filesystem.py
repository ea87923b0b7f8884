"""Fetch function reading records from a local file."""

from __future__ import annotations

import asyncio
from pathlib import Path

from freshsync.adapters.sources.decoding import Record, decode_records, resolve_format
from freshsync.core.exceptions import (
    SourceAccessError,
    SourceError,
    SourceNotFoundError,
)
from freshsync.core.models import FetchOutcome


class FilesystemSource:
    """Fetch function for local JSON, CSV or Parquet files.

    Instances are zero-argument coroutine functions and can be passed to
    SyncScheduler.start() directly. The file is re-read on every call.

    Example:
        >>> source = FilesystemSource(Path("data/orders.csv"))
        >>> await scheduler.start(source)
    """

    def __init__(self, path: Path | str, fmt: str | None = None) -> None:
        """Initialize the source.

        Args:
            path: Path to the data file.
            fmt: "json", "csv" or "parquet". Inferred from the suffix if None.

        Raises:
            SourceFormatError: If the format cannot be determined.
        """
        self.path = Path(path)
        self.fmt = resolve_format(self.path.name, fmt)

    def __repr__(self) -> str:
        return f"FilesystemSource({str(self.path)!r}, fmt={self.fmt!r})"

    async def __call__(self) -> FetchOutcome[Record]:
        data = await asyncio.to_thread(self._read_bytes)
        return decode_records(data, self.fmt, str(self.path))

    def _read_bytes(self) -> bytes:
        source = str(self.path)
        try:
            return self.path.read_bytes()
        except FileNotFoundError as e:
            raise SourceNotFoundError(
                f"File not found: {source}", source=source, cause=e
            ) from e
        except PermissionError as e:
            raise SourceAccessError(
                f"Permission denied: {source}", source=source, cause=e
            ) from e
        except OSError as e:
            raise SourceError(
                f"Cannot read {source}: {e}", source=source, cause=e
            ) from e
