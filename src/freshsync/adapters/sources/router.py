"""URI scheme-based construction of fetch functions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from freshsync.adapters.sources.filesystem import FilesystemSource
from freshsync.adapters.sources.s3 import S3Source
from freshsync.core.exceptions import ConfigurationError


if TYPE_CHECKING:
    from freshsync.core.ports import FetchFunction


def parse_uri_scheme(uri: str) -> str | None:
    """Extract the URI scheme from a source string.

    Args:
        uri: Source URI or file path.

    Returns:
        The scheme (e.g., 's3', 'file') or None for local paths.
    """
    if "://" in uri:
        scheme = uri.split("://", 1)[0]
        # Avoid confusing Windows drive letters (C:) with schemes
        if len(scheme) > 1:
            return scheme.lower()
    return None


def strip_file_scheme(uri: str) -> str:
    """Strip file:// prefix from URI, returning plain path."""
    if uri.startswith("file://"):
        return uri[len("file://") :]
    return uri


def create_source(
    uri: str, *, fmt: str | None = None, s3_client: Any | None = None
) -> FetchFunction:
    """Create a fetch function for a source URI.

    Args:
        uri: "s3://bucket/key", "file:///path" or a plain local path.
        fmt: Data format override; inferred from the suffix if None.
        s3_client: Optional boto3 S3 client for s3:// sources.

    Returns:
        A FilesystemSource or S3Source.

    Raises:
        ConfigurationError: If no source handles the URI scheme.
    """
    scheme = parse_uri_scheme(uri)
    if scheme == "s3":
        return S3Source(uri, client=s3_client, fmt=fmt)
    if scheme in ("file", None):
        return FilesystemSource(strip_file_scheme(uri), fmt=fmt)
    raise ConfigurationError(f"No source registered for scheme '{scheme}'")
