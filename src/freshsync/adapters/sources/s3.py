"""Fetch function reading records from an S3 object using boto3."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from freshsync.adapters.sources.decoding import Record, decode_records, resolve_format
from freshsync.core.exceptions import (
    SourceAccessError,
    SourceError,
    SourceNotFoundError,
)
from freshsync.core.models import FetchOutcome


if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client


def parse_s3_uri(uri: str) -> tuple[str, str]:
    """Parse an S3 URI into bucket and key.

    Args:
        uri: S3 URI in format s3://bucket/key.

    Returns:
        Tuple of (bucket, key).

    Raises:
        ValueError: If URI is not a valid S3 URI.
    """
    if not uri.startswith("s3://"):
        raise ValueError(f"Invalid S3 URI: {uri}")

    parts = uri[5:].split("/", 1)
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Invalid S3 URI (missing key): {uri}")

    bucket, key = parts
    return bucket, key


def translate_client_error(error: ClientError, source: str) -> SourceError:
    """Translate botocore ClientError to a source exception.

    Codes other than not-found and access-denied are kept on the returned
    error so that retry classification can still recognise them.
    """
    code = error.response.get("Error", {}).get("Code", "")

    if code in ("404", "NoSuchKey", "NoSuchBucket"):
        return SourceNotFoundError(
            f"Object not found: {source}", source=source, cause=error
        )

    if code in ("403", "AccessDenied"):
        return SourceAccessError(f"Access denied: {source}", source=source, cause=error)

    return SourceError(
        f"S3 error ({code}): {error}", source=source, code=code or None, cause=error
    )


class S3Source:
    """Fetch function for JSON, CSV or Parquet objects stored in S3.

    The object is downloaded on every call, in a worker thread.
    """

    def __init__(
        self,
        uri: str,
        client: S3Client | None = None,
        fmt: str | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            uri: S3 URI (s3://bucket/key).
            client: Optional boto3 S3 client. If not provided, creates a
                default client.
            fmt: "json", "csv" or "parquet". Inferred from the key if None.

        Raises:
            ValueError: If uri is not a valid S3 URI.
            SourceFormatError: If the format cannot be determined.
        """
        self.uri = uri
        self.bucket, self.key = parse_s3_uri(uri)
        self.fmt = resolve_format(self.key, fmt)
        self._client: Any = client or boto3.client("s3")

    def __repr__(self) -> str:
        return f"S3Source({self.uri!r}, fmt={self.fmt!r})"

    async def __call__(self) -> FetchOutcome[Record]:
        data = await asyncio.to_thread(self._download)
        return decode_records(data, self.fmt, self.uri)

    def _download(self) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=self.key)
            return response["Body"].read()
        except ClientError as e:
            raise translate_client_error(e, self.uri) from e
        except BotoCoreError as e:
            raise SourceError(
                f"S3 request failed for {self.uri}: {e}", source=self.uri, cause=e
            ) from e
