"""In-process cache backend."""

from __future__ import annotations

from freshsync.core.exceptions import CacheQuotaExceededError


class MemoryCacheBackend:
    """Dict-backed CacheBackend with an optional size quota.

    The quota bounds the total UTF-8 size of all stored values, mirroring
    the storage limits of browser-style key/value stores.

    Attributes:
        quota: Maximum total bytes, or None for unlimited.
    """

    def __init__(self, quota: int | None = None) -> None:
        if quota is not None and quota < 0:
            raise ValueError("quota cannot be negative")
        self.quota = quota
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        """Store value under key.

        Raises:
            CacheQuotaExceededError: If the write would exceed the quota.
                The previous value, if any, is kept.
        """
        if self.quota is not None:
            size = len(value.encode())
            used = self.used_bytes() - len(self._data.get(key, "").encode())
            if used + size > self.quota:
                raise CacheQuotaExceededError(key, size, self.quota)
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def used_bytes(self) -> int:
        """Total UTF-8 size of stored values."""
        return sum(len(v.encode()) for v in self._data.values())
