"""File-based cache backend implementing CacheBackend."""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path, PurePosixPath

from freshsync.core.exceptions import CacheCorruptError, CacheError


SUFFIX = ".json"


class FileCacheBackend:
    """Local cache storing one JSON document per key.

    Keys may contain "/" to nest entries in subdirectories, e.g.
    "orders/open" is stored at ``<cache_dir>/orders/open.json``.

    Attributes:
        cache_dir: Directory where entries are stored.
    """

    def __init__(self, cache_dir: Path) -> None:
        """Initialize the cache with a directory path.

        Args:
            cache_dir: Directory where entries will be stored. Created on
                first write.
        """
        self.cache_dir = cache_dir

    def _entry_path(self, key: str) -> Path:
        """Get the path for a key, rejecting keys that escape cache_dir."""
        parts = PurePosixPath(key).parts
        if not parts or key.startswith("/") or ".." in parts:
            raise CacheError(f"Invalid cache key '{key}'")
        return self.cache_dir.joinpath(*parts[:-1], parts[-1] + SUFFIX)

    def get(self, key: str) -> str | None:
        """Get the stored document for key, or None if not cached.

        Raises:
            CacheCorruptError: If the file exists but is not valid JSON.
        """
        path = self._entry_path(key)
        if not path.is_file():
            return None

        try:
            raw = path.read_text(encoding="utf-8")
            json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CacheCorruptError(
                f"Cache entry corrupt for '{key}'", key=key, path=path, cause=e
            ) from e
        return raw

    def set(self, key: str, value: str) -> None:
        """Write value for key atomically (temp file, then rename)."""
        path = self._entry_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            Path(tmp_name).replace(path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        path = self._entry_path(key)
        path.unlink(missing_ok=True)
        self._cleanup_empty_dirs(path.parent)

    def keys(self) -> list[str]:
        """List stored keys, nested keys joined with "/"."""
        if not self.cache_dir.exists():
            return []
        return sorted(
            path.relative_to(self.cache_dir).as_posix()[: -len(SUFFIX)]
            for path in self.cache_dir.rglob(f"*{SUFFIX}")
            if path.is_file()
        )

    def _cleanup_empty_dirs(self, path: Path) -> None:
        """Remove empty directories recursively up to cache_dir."""
        with contextlib.suppress(OSError):
            while path != self.cache_dir and path.is_dir():
                if any(path.iterdir()):
                    break
                path.rmdir()
                path = path.parent

    def statistics(self) -> dict[str, int]:
        """Get cache statistics.

        Returns:
            Dictionary with 'total_size' (bytes) and 'entry_count'.
        """
        total_size = 0
        entry_count = 0

        if not self.cache_dir.exists():
            return {"total_size": 0, "entry_count": 0}

        for path in self.cache_dir.rglob(f"*{SUFFIX}"):
            if path.is_file():
                with contextlib.suppress(OSError):
                    total_size += path.stat().st_size
                    entry_count += 1

        return {"total_size": total_size, "entry_count": entry_count}
