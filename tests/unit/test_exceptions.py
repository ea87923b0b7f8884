"""Unit tests for domain exception hierarchy."""

from pathlib import Path

import pytest


@pytest.mark.core
@pytest.mark.tier(0)
class TestFreshsyncError:
    """Tests for base exception class."""

    def test_is_exception_subclass(self) -> None:
        from freshsync.core.exceptions import FreshsyncError

        assert issubclass(FreshsyncError, Exception)

    def test_recovery_hint_returns_none_by_default(self) -> None:
        """Base exception should return None for recovery_hint."""
        from freshsync.core.exceptions import FreshsyncError

        assert FreshsyncError("something went wrong").recovery_hint is None

    @pytest.mark.parametrize(
        "name",
        [
            "FetchError",
            "SourceError",
            "CacheError",
            "ConfigurationError",
            "InvalidFilterError",
            "SchedulerStateError",
        ],
    )
    def test_all_errors_share_base(self, name: str) -> None:
        from freshsync.core import exceptions

        assert issubclass(getattr(exceptions, name), exceptions.FreshsyncError)


@pytest.mark.core
@pytest.mark.tier(0)
class TestFetchError:
    """Tests for FetchError."""

    def test_info_carries_code_and_message(self) -> None:
        from freshsync.core.exceptions import FetchError

        err = FetchError("JWT expired", code="PGRST301")

        assert err.info.code == "PGRST301"
        assert err.info.message == "JWT expired"
        assert str(err) == "JWT expired"

    def test_stores_cause(self) -> None:
        from freshsync.core.exceptions import FetchError

        cause = OSError("socket closed")
        assert FetchError("failed", cause=cause).cause is cause


@pytest.mark.core
@pytest.mark.tier(0)
class TestSourceErrors:
    """Tests for the source error family."""

    def test_not_found_code_and_hint(self) -> None:
        from freshsync.core.exceptions import FetchError, SourceNotFoundError

        err = SourceNotFoundError("File not found: a.json", source="a.json")

        assert isinstance(err, FetchError)
        assert err.code == "not_found"
        assert err.source == "a.json"
        assert "a.json" in err.recovery_hint

    def test_access_error_is_not_retryable(self) -> None:
        """Access errors classify as permission failures."""
        from freshsync.core.backoff import is_retryable
        from freshsync.core.exceptions import SourceAccessError

        err = SourceAccessError("Access denied: s3://b/k", source="s3://b/k")

        assert err.code == "permission_denied"
        assert is_retryable(err) is False

    def test_format_error_is_not_retryable(self) -> None:
        from freshsync.core.backoff import is_retryable
        from freshsync.core.exceptions import SourceFormatError

        err = SourceFormatError("bad json", source="a.json")

        assert err.code == "invalid_format"
        assert is_retryable(err) is False


@pytest.mark.core
@pytest.mark.tier(0)
class TestCacheErrors:
    """Tests for cache errors."""

    def test_corrupt_error_stores_key_and_path(self) -> None:
        from freshsync.core.exceptions import CacheCorruptError, CacheError

        err = CacheCorruptError("corrupt", key="orders", path=Path("/tmp/x.json"))

        assert isinstance(err, CacheError)
        assert err.key == "orders"
        assert err.path == Path("/tmp/x.json")
        assert "freshsync cache clear orders" in err.recovery_hint

    def test_quota_error_message(self) -> None:
        from freshsync.core.exceptions import CacheQuotaExceededError

        err = CacheQuotaExceededError("orders", size=200, limit=100)

        assert "orders" in str(err)
        assert err.size == 200
        assert err.limit == 100
        assert err.recovery_hint is not None


@pytest.mark.core
@pytest.mark.tier(0)
class TestInvalidFilterError:
    def test_is_value_error(self) -> None:
        from freshsync.core.exceptions import InvalidFilterError

        err = InvalidFilterError("bad", definition="x:y")

        assert isinstance(err, ValueError)
        assert err.definition == "x:y"
        assert "field:operator:value" in err.recovery_hint
