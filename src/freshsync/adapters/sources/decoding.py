"""Decode raw source bytes into fetch outcomes.

JSON is parsed directly. CSV and Parquet are read with pandas and then
round-tripped through pandas' JSON writer so that every record holds only
JSON-native values (NaN becomes None, timestamps become ISO strings) and
can be cached as-is.
"""

from __future__ import annotations

import io
import json
from pathlib import PurePosixPath
from typing import Any

import pandas as pd

from freshsync.core.exceptions import SourceFormatError
from freshsync.core.models import FetchOutcome


FORMATS = ("json", "csv", "parquet")

_SUFFIXES = {
    ".json": "json",
    ".csv": "csv",
    ".parquet": "parquet",
    ".pq": "parquet",
}

Record = dict[str, Any]


def detect_format(name: str) -> str | None:
    """Infer the data format from a file name or key suffix."""
    return _SUFFIXES.get(PurePosixPath(name).suffix.lower())


def resolve_format(name: str, fmt: str | None) -> str:
    """Return fmt if given, else the format inferred from name.

    Raises:
        SourceFormatError: If fmt is unknown or nothing can be inferred.
    """
    resolved = fmt.lower() if fmt else detect_format(name)
    if resolved not in FORMATS:
        raise SourceFormatError(
            f"Cannot determine data format of {name}"
            + (f" (got '{fmt}')" if fmt else ""),
            source=name,
        )
    return resolved


def _decode_json(data: bytes, source: str) -> FetchOutcome[Record]:
    try:
        document = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SourceFormatError(
            f"Invalid JSON in {source}", source=source, cause=e
        ) from e

    if isinstance(document, list):
        return FetchOutcome.of(document)
    if isinstance(document, dict) and isinstance(document.get("items"), list):
        items = document["items"]
        total_count = document.get(
            "total_count", document.get("totalCount", len(items))
        )
        if not isinstance(total_count, int) or isinstance(total_count, bool):
            raise SourceFormatError(
                f"'total_count' in {source} is not an integer", source=source
            )
        return FetchOutcome(items=tuple(items), total_count=total_count)

    raise SourceFormatError(
        f"{source} holds neither a JSON list nor an object with 'items'",
        source=source,
    )


def _frame_to_records(frame: pd.DataFrame) -> list[Record]:
    return json.loads(frame.to_json(orient="records", date_format="iso"))


def decode_records(data: bytes, fmt: str, source: str) -> FetchOutcome[Record]:
    """Decode raw bytes in the given format.

    Args:
        data: File contents.
        fmt: One of FORMATS.
        source: URI or path, used in error messages.

    Returns:
        The decoded records. total_count equals the record count unless a
        JSON object document states otherwise.

    Raises:
        SourceFormatError: If the bytes cannot be decoded.
    """
    if fmt == "json":
        return _decode_json(data, source)

    try:
        if fmt == "csv":
            frame = pd.read_csv(io.BytesIO(data))
        elif fmt == "parquet":
            frame = pd.read_parquet(io.BytesIO(data))
        else:
            raise SourceFormatError(f"Unsupported format '{fmt}'", source=source)
    except SourceFormatError:
        raise
    except (ValueError, OSError) as e:
        # pandas parser errors and pyarrow's ArrowInvalid are ValueErrors
        raise SourceFormatError(
            f"Cannot read {fmt.upper()} from {source}: {e}", source=source, cause=e
        ) from e

    return FetchOutcome.of(_frame_to_records(frame))
