"""Unit tests for MemoryCacheBackend."""

import pytest


@pytest.mark.cache
@pytest.mark.tier(0)
class TestMemoryCacheBackend:
    """Tests for the in-memory backend."""

    def test_satisfies_protocol(self) -> None:
        from freshsync.adapters.cache import MemoryCacheBackend
        from freshsync.core.ports import CacheBackend

        assert isinstance(MemoryCacheBackend(), CacheBackend)

    def test_set_get_delete(self) -> None:
        from freshsync.adapters.cache import MemoryCacheBackend

        backend = MemoryCacheBackend()
        backend.set("k", "v")

        assert backend.get("k") == "v"
        assert backend.keys() == ["k"]
        backend.delete("k")
        assert backend.get("k") is None
        backend.delete("k")

    def test_quota_rejects_oversized_write(self) -> None:
        """A write over quota raises and keeps the old value."""
        from freshsync.adapters.cache import MemoryCacheBackend
        from freshsync.core.exceptions import CacheQuotaExceededError

        backend = MemoryCacheBackend(quota=8)
        backend.set("k", "1234")

        with pytest.raises(CacheQuotaExceededError) as exc_info:
            backend.set("other", "123456")

        assert exc_info.value.limit == 8
        assert backend.get("k") == "1234"
        assert backend.get("other") is None

    def test_quota_counts_replacement_not_addition(self) -> None:
        """Overwriting a key frees its previous size first."""
        from freshsync.adapters.cache import MemoryCacheBackend

        backend = MemoryCacheBackend(quota=8)
        backend.set("k", "12345678")
        backend.set("k", "87654321")

        assert backend.used_bytes() == 8

    def test_quota_counts_utf8_bytes(self) -> None:
        from freshsync.adapters.cache import MemoryCacheBackend
        from freshsync.core.exceptions import CacheQuotaExceededError

        backend = MemoryCacheBackend(quota=3)
        with pytest.raises(CacheQuotaExceededError):
            backend.set("k", "éé")
