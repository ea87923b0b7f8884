"""TTL-aware store for last-known-good fetch outcomes.

Caching is an optimization: every backend failure is logged and turned
into a cache miss (reads) or a no-op (writes), never propagated.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from freshsync.core.models import CacheEntry, FetchOutcome
from freshsync.core.ports import utc_now


if TYPE_CHECKING:
    from freshsync.core.ports import CacheBackend, Clock

logger = logging.getLogger(__name__)


def _as_timedelta(expiry: float | timedelta) -> timedelta:
    if isinstance(expiry, timedelta):
        return expiry
    return timedelta(seconds=expiry)


def encode_entry(entry: CacheEntry[Any]) -> str:
    """Serialize a cache entry to its JSON document."""
    return json.dumps(
        {
            "payload": {
                "items": list(entry.payload.items),
                "total_count": entry.payload.total_count,
            },
            "timestamp": entry.timestamp.isoformat(),
        }
    )


def decode_entry(raw: str) -> CacheEntry[Any]:
    """Parse a JSON document produced by encode_entry.

    Raises:
        ValueError: If the document is malformed.
    """
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("cache document is not an object")
    payload = data.get("payload")
    if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
        raise ValueError("cache document has no payload items")
    total_count = payload.get("total_count", len(payload["items"]))
    if not isinstance(total_count, int):
        raise ValueError("cache document total_count is not an integer")

    timestamp = datetime.fromisoformat(data["timestamp"])
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)

    return CacheEntry(
        payload=FetchOutcome(items=tuple(payload["items"]), total_count=total_count),
        timestamp=timestamp,
    )


class CacheStore:
    """Keyed store of CacheEntry values on top of a CacheBackend.

    Attributes:
        backend: The key/value store holding serialized entries.
    """

    def __init__(self, backend: CacheBackend, clock: Clock | None = None) -> None:
        """Initialize the store.

        Args:
            backend: Key/value backend (memory, file, ...).
            clock: Source of the current time. Defaults to UTC now.
        """
        self.backend = backend
        self._clock = clock or utc_now

    def read(self, key: str) -> CacheEntry[Any] | None:
        """Return the entry stored under key, or None.

        Unreadable and corrupt entries are logged and reported as absent.
        Stale entries are returned; use is_fresh() to judge them.
        """
        try:
            raw = self.backend.get(key)
        except Exception as e:
            logger.warning("Failed to read cache entry '%s': %s", key, e)
            return None
        if raw is None:
            return None

        try:
            return decode_entry(raw)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring corrupt cache entry '%s': %s", key, e)
            return None

    def write(self, key: str, payload: FetchOutcome[Any]) -> None:
        """Replace the entry under key, stamped with the current time.

        Failures (quota, unavailable backend, unserializable items) are
        logged and swallowed.
        """
        entry = CacheEntry(payload=payload, timestamp=self._clock())
        try:
            raw = encode_entry(entry)
        except (TypeError, ValueError) as e:
            logger.warning("Cannot serialize cache entry '%s': %s", key, e)
            return
        try:
            self.backend.set(key, raw)
        except Exception as e:
            logger.warning("Failed to write cache entry '%s': %s", key, e)

    def invalidate(self, key: str) -> None:
        """Remove the entry under key, if any."""
        try:
            self.backend.delete(key)
        except Exception as e:
            logger.warning("Failed to invalidate cache entry '%s': %s", key, e)

    def keys(self) -> list[str]:
        """List stored keys, or an empty list if the backend is unavailable."""
        try:
            return sorted(self.backend.keys())
        except Exception as e:
            logger.warning("Failed to list cache keys: %s", e)
            return []

    def is_fresh(self, entry: CacheEntry[Any], expiry: float | timedelta) -> bool:
        """Check whether an entry is younger than expiry.

        Args:
            entry: The entry to check.
            expiry: Maximum age, in seconds or as a timedelta.

        Returns:
            True if now - entry.timestamp < expiry.
        """
        return entry.age(self._clock()) < _as_timedelta(expiry)
