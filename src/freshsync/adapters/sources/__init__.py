"""Data sources producing fetch functions for the scheduler."""

from freshsync.adapters.sources.decoding import decode_records, detect_format
from freshsync.adapters.sources.filesystem import FilesystemSource
from freshsync.adapters.sources.router import create_source, parse_uri_scheme
from freshsync.adapters.sources.s3 import S3Source


__all__ = [
    "FilesystemSource",
    "S3Source",
    "create_source",
    "decode_records",
    "detect_format",
    "parse_uri_scheme",
]
