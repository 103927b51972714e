"""TTL-bounded cache for computed access-control results.

Keys are plain strings; values are opaque.  Every entry expires a fixed
number of seconds after it was last written.  Expired entries are evicted
lazily when read (or in bulk by :meth:`ResultCache.purge_expired`); nothing
sweeps them in the background.

Bulk eviction by key prefix supports per-user invalidation: the service
builds keys such as ``permission:<user>:<action>:<resource>`` and evicts
everything under ``permission:<user>:`` when that user's roles change.

Example
-------
>>> cache = ResultCache(ttl_seconds=60)
>>> cache.set("user-roles:u1", ("admin",))
>>> cache.get("user-roles:u1")
('admin',)
>>> cache.delete_by_prefix("user-roles:")
1
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from aumos_rbac.clock import Clock, SystemClock

logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    """Contract for any cache the access-control service can use."""

    def get(self, key: str) -> object | None: ...

    def set(self, key: str, value: object) -> None: ...

    def delete(self, key: str) -> None: ...

    def delete_by_prefix(self, prefix: str) -> int: ...

    def clear(self) -> None: ...


@dataclass
class _CacheEntry:
    value: object
    expires_at: datetime


class ResultCache:
    """Thread-safe in-memory TTL cache.

    Parameters
    ----------
    ttl_seconds:
        Lifetime of every entry, in seconds.  Must be positive.
    clock:
        Time source for expiry stamps and checks.
    """

    def __init__(self, ttl_seconds: float = 300, clock: Clock | None = None) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ResultCache ttl_seconds must be > 0; got {ttl_seconds!r}.")
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock: Clock = clock or SystemClock()
        self._entries: dict[str, _CacheEntry] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set(self, key: str, value: object) -> None:
        """Store ``value`` under ``key``, resetting its expiry."""
        expires_at = self._clock.now() + self._ttl
        with self._lock:
            self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)

    def get(self, key: str) -> object | None:
        """Return the value for ``key``, or ``None`` if absent or expired."""
        now = self._clock.now()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now > entry.expires_at:
                del self._entries[key]
                return None
            return entry.value

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        with self._lock:
            self._entries.pop(key, None)

    def delete_by_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``.

        Returns
        -------
        int
            Number of entries removed.
        """
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        now = self._clock.now()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Purged %d expired cache entries", len(expired))
        return len(expired)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def ttl_seconds(self) -> float:
        return self._ttl.total_seconds()

    def __len__(self) -> int:
        """Number of stored entries, including expired ones not yet evicted."""
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None
