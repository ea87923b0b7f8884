"""Tests for the CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from freshsync.cli import app


runner = CliRunner()

RECORDS = [
    {"name": "Acme", "score": 7, "city": "Oslo"},
    {"name": "Globex", "score": 3, "city": "Bergen"},
]


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory holding companies.json, used as cwd."""
    (tmp_path / ".freshsync").mkdir()
    (tmp_path / "companies.json").write_text(json.dumps(RECORDS))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.mark.cli
@pytest.mark.tier(1)
class TestFetch:
    """Tests for the fetch command."""

    def test_fetch_prints_records(self, project: Path) -> None:
        result = runner.invoke(app, ["fetch", "companies.json"])

        assert result.exit_code == 0, result.output
        assert "Acme" in result.output
        assert "Globex" in result.output
        assert "Page 1/1: 2 of 2 matching (2 total)" in result.output

    def test_fetch_with_filter(self, project: Path) -> None:
        """--filter keeps only matching records."""
        result = runner.invoke(
            app, ["fetch", "companies.json", "--filter", "score:greater:5"]
        )

        assert result.exit_code == 0, result.output
        assert "Oslo" in result.output
        assert "Bergen" not in result.output
        assert "1 of 1 matching (2 total)" in result.output

    def test_fetch_with_search(self, project: Path) -> None:
        result = runner.invoke(app, ["fetch", "companies.json", "--search", "BERG"])

        assert result.exit_code == 0, result.output
        assert "Globex" in result.output
        assert "Oslo" not in result.output

    def test_fetch_sorted_and_paged(self, project: Path) -> None:
        result = runner.invoke(
            app,
            ["fetch", "companies.json", "--sort", "score", "--page-size", "1"],
        )

        assert result.exit_code == 0, result.output
        assert "Globex" in result.output
        assert "Acme" not in result.output
        assert "Page 1/2" in result.output

    def test_fetch_writes_cache(self, project: Path) -> None:
        """A successful fetch is persisted under .freshsync/cache."""
        runner.invoke(app, ["fetch", "companies.json"])

        cached = list((project / ".freshsync" / "cache").rglob("*.json"))
        assert len(cached) == 1

    def test_fetch_no_cache(self, project: Path) -> None:
        result = runner.invoke(app, ["fetch", "companies.json", "--no-cache"])

        assert result.exit_code == 0, result.output
        assert not (project / ".freshsync" / "cache").exists()

    def test_fetch_invalid_filter(self, project: Path) -> None:
        result = runner.invoke(
            app, ["fetch", "companies.json", "--filter", "score:bogus:1"]
        )

        assert result.exit_code == 1
        assert "Unknown filter operator" in result.output
        assert "field:operator:value" in result.output

    def test_fetch_invalid_source_fails(self, project: Path) -> None:
        """Undecodable data ends in the error phase and exit code 1."""
        (project / "broken.json").write_text("{nope")

        result = runner.invoke(app, ["fetch", "broken.json", "--no-cache"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_fetch_missing_file(self, project: Path) -> None:
        result = runner.invoke(
            app, ["fetch", "missing.json", "--max-retries", "0", "--no-cache"]
        )

        assert result.exit_code == 1
        assert "missing.json" in result.output

    def test_fetch_unknown_format(self, project: Path) -> None:
        result = runner.invoke(app, ["fetch", "companies.xlsx"])

        assert result.exit_code == 1
        assert "Cannot determine data format" in result.output

    def test_fetch_invalid_config(self, project: Path) -> None:
        (project / ".freshsync" / "config.toml").write_text("bogus = 1\n")

        result = runner.invoke(app, ["fetch", "companies.json"])

        assert result.exit_code == 1
        assert "bogus" in result.output


@pytest.mark.cli
@pytest.mark.tier(2)
class TestWatch:
    """Tests for the watch command."""

    def test_watch_stops_after_ticks(self, project: Path) -> None:
        result = runner.invoke(
            app,
            ["watch", "companies.json", "--interval", "0.05", "--ticks", "2"],
        )

        assert result.exit_code == 0, result.output
        assert "2 item(s), 2 total" in result.output

    def test_watch_rejects_zero_interval(self, project: Path) -> None:
        result = runner.invoke(app, ["watch", "companies.json", "--interval", "0"])

        assert result.exit_code == 1
        assert "--interval" in result.output


@pytest.mark.cli
@pytest.mark.tier(1)
class TestCacheCommands:
    """Tests for cache status and cache clear."""

    def test_status_empty(self, project: Path) -> None:
        result = runner.invoke(app, ["cache", "status"])

        assert result.exit_code == 0
        assert "Cache is empty." in result.output

    def test_status_lists_fetched_source(self, project: Path) -> None:
        runner.invoke(app, ["fetch", "companies.json"])

        result = runner.invoke(app, ["cache", "status"])

        assert result.exit_code == 0, result.output
        assert "fresh" in result.output
        assert "1 entries" in result.output

    def test_clear_all(self, project: Path) -> None:
        runner.invoke(app, ["fetch", "companies.json"])

        result = runner.invoke(app, ["cache", "clear"])

        assert result.exit_code == 0
        assert "Cleared 1 cached key(s)." in result.output
        assert "Cache is empty." in runner.invoke(app, ["cache", "status"]).output

    def test_clear_single_key(self, project: Path) -> None:
        from freshsync.cli.formatting import cache_key_for

        runner.invoke(app, ["fetch", "companies.json"])
        key = cache_key_for("companies.json")

        result = runner.invoke(app, ["cache", "clear", key])

        assert result.exit_code == 0, result.output
        assert f"Cleared '{key}'." in result.output

    def test_clear_unknown_key(self, project: Path) -> None:
        result = runner.invoke(app, ["cache", "clear", "nope"])

        assert result.exit_code == 1
        assert "Key 'nope' is not cached." in result.output


@pytest.mark.cli
@pytest.mark.tier(0)
class TestParseFilter:
    """Tests for parsing --filter arguments."""

    def test_scalar_value_is_json(self) -> None:
        from freshsync.cli.parsing import parse_filter
        from freshsync.core.models import FilterOperator

        expr = parse_filter("score:greater_equal:5", index=3)

        assert expr.id == "arg-3"
        assert expr.field == "score"
        assert expr.operator is FilterOperator.GREATER_EQUAL
        assert expr.value == 5

    def test_string_value_with_colons(self) -> None:
        """Only the first two colons separate parts."""
        from freshsync.cli.parsing import parse_filter

        assert parse_filter("url:starts_with:http://x").value == "http://x"

    def test_in_list(self) -> None:
        from freshsync.cli.parsing import parse_filter

        assert parse_filter("city:in:Oslo, Bergen,1").value == ["Oslo", "Bergen", 1]

    def test_between_open_bound(self) -> None:
        from freshsync.cli.parsing import parse_filter

        assert parse_filter("score:between:2..").value == {"min": 2, "max": None}

    def test_null_check_takes_no_value(self) -> None:
        from freshsync.cli.parsing import parse_filter

        assert parse_filter("city:is_null").value is None

    @pytest.mark.parametrize(
        "text", ["score", ":equals:1", "score:equals", "score:between:1-5"]
    )
    def test_malformed(self, text: str) -> None:
        from freshsync.cli.parsing import parse_filter
        from freshsync.core.exceptions import InvalidFilterError

        with pytest.raises(InvalidFilterError):
            parse_filter(text)


@pytest.mark.cli
@pytest.mark.tier(0)
class TestCliFormatting:
    def test_cache_key_for_s3(self) -> None:
        from freshsync.cli.formatting import cache_key_for

        assert cache_key_for("s3://bucket/data/a.csv") == "s3/bucket/data/a.csv"

    def test_cache_key_for_local_path(self, tmp_path: Path) -> None:
        from freshsync.cli.formatting import cache_key_for

        key = cache_key_for(str(tmp_path / "a.json"))

        assert key == "file/" + (tmp_path / "a.json").resolve().as_posix().lstrip("/")
        assert cache_key_for(f"file://{tmp_path}/a.json") == key

    def test_records_table_columns(self) -> None:
        from freshsync.cli.formatting import build_records_table

        table = build_records_table([{"a": 1}, {"b": None, "a": True}])

        assert [c.header for c in table.columns] == ["a", "b"]
        assert table.row_count == 2
