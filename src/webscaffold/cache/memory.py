"""Thread-safe in-memory cache with per-entry expiry."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict

DEFAULT_TTL = timedelta(minutes=5)


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class _CacheEntry:
    value: object
    expires_at: datetime | None

    def is_valid(self, *, now: datetime) -> bool:
        return self.expires_at is None or now < self.expires_at


class MemoryCache:
    """Mapping from string keys to opaque values with time-based eviction.

    Expired entries are dropped lazily on read and in bulk by
    :meth:`purge_expired`, which the maintenance loop calls periodically.
    """

    def __init__(
        self,
        *,
        default_ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if default_ttl < timedelta(0):
            raise ValueError("default_ttl must be non-negative")
        self._default_ttl = default_ttl
        self._clock = clock or _default_clock
        self._entries: Dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: object, ttl: timedelta | None = None) -> None:
        """Store ``value``; a zero ``ttl`` keeps the entry until deleted."""

        lifetime = self._default_ttl if ttl is None else ttl
        if lifetime < timedelta(0):
            raise ValueError("ttl must be non-negative")
        expires_at = None if lifetime == timedelta(0) else self._clock() + lifetime
        with self._lock:
            self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    def get(self, key: str, default: object = None) -> object:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if not entry.is_valid(now=now):
                del self._entries[key]
                return default
            return entry.value

    def has(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge_expired(self, *, now: datetime | None = None) -> int:
        """Drop expired entries and return how many were removed."""

        current = now or self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if not entry.is_valid(now=current)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["DEFAULT_TTL", "MemoryCache"]
