"""Key-value cache used for schedule routines."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Cache interface for simple key-value data."""

    def get(self, key: str) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a value for `ttl_seconds`."""


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class InMemoryCache(Cache):
    """Process-local cache with per-entry expiry."""

    clock: Callable[[], datetime] = _utc_now
    _entries: dict[str, _CacheEntry] = field(default_factory=dict)

    def get(self, key: str) -> object | None:
        """Return a cached value if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a cached value with a TTL."""
        expires_at = self.clock() + timedelta(seconds=ttl_seconds)
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)
