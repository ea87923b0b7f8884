"""Unit tests for create_source() routing."""

from pathlib import Path

import pytest


@pytest.mark.sources
@pytest.mark.tier(0)
class TestParseUriScheme:
    @pytest.mark.parametrize(
        ("uri", "expected"),
        [
            ("s3://bucket/key.json", "s3"),
            ("S3://bucket/key.json", "s3"),
            ("file:///tmp/a.json", "file"),
            ("/tmp/a.json", None),
            ("relative/a.csv", None),
            ("C://data/a.csv", None),
        ],
    )
    def test_schemes(self, uri: str, expected: str | None) -> None:
        from freshsync.adapters.sources import parse_uri_scheme

        assert parse_uri_scheme(uri) == expected


@pytest.mark.sources
@pytest.mark.tier(0)
class TestCreateSource:
    def test_local_path(self, tmp_path: Path) -> None:
        from freshsync.adapters.sources import FilesystemSource, create_source

        source = create_source(str(tmp_path / "a.json"))

        assert isinstance(source, FilesystemSource)
        assert source.path == tmp_path / "a.json"

    def test_file_uri_is_stripped(self, tmp_path: Path) -> None:
        from freshsync.adapters.sources import FilesystemSource, create_source

        source = create_source(f"file://{tmp_path}/a.csv")

        assert isinstance(source, FilesystemSource)
        assert source.path == tmp_path / "a.csv"
        assert source.fmt == "csv"

    def test_s3_uri(self) -> None:
        from unittest.mock import MagicMock

        from freshsync.adapters.sources import S3Source, create_source

        source = create_source("s3://bucket/data.parquet", s3_client=MagicMock())

        assert isinstance(source, S3Source)
        assert source.bucket == "bucket"
        assert source.key == "data.parquet"

    def test_unknown_scheme(self) -> None:
        from freshsync.adapters.sources import create_source
        from freshsync.core.exceptions import ConfigurationError

        with pytest.raises(ConfigurationError, match="ftp"):
            create_source("ftp://host/a.json")
