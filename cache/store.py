"""
cache/store.py -- In-memory TTL cache in front of document reads.

Holds document lists and single documents for a short time (default 5 minutes)
so repeated GETs skip the database. Writes to the document set call
invalidate_all(), so a cached entry never outlives the data it was built from.

Expiration is lazy: get() checks freshness and deletes a stale entry on the
spot. There is no background sweeper, so an expired entry that is never read
again stays in memory until the next invalidate_all().

Usage:
    cache = TTLCache(ttl=300)
    cache.set("doc:42", doc)
    value, found = cache.get("doc:42")
    cache.invalidate("doc:42")
    cache.invalidate_all()

Thread safety: FastAPI runs sync handlers in a thread pool, so every
operation takes self._lock around its dict access. invalidate_all() swaps in a
fresh dict instead of clearing the old one.

Layer rule: no imports from api/, auth/, documents/, or core/.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

_DEFAULT_TTL = 5 * 60  # 5 minutes in seconds


@dataclass
class CacheEntry:
    value: Any
    expires_at: Optional[float] = None  # None = never expires


class TTLCache:
    def __init__(self, ttl: Optional[float] = _DEFAULT_TTL, clock: Callable[[], float] = time.monotonic) -> None:
        # ttl of 0 or None stores entries with no expiration
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._store: dict[str, CacheEntry] = {}

    def get(self, key: str) -> tuple[Any, bool]:
        """Return (value, True) for a fresh entry, (None, False) otherwise."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None, False
            if entry.expires_at is not None and self._clock() > entry.expires_at:
                del self._store[key]
                return None, False
            return entry.value, True

    def set(self, key: str, value: Any) -> None:
        """Store value under key, replacing any existing entry."""
        expires_at = self._clock() + self.ttl if self.ttl and self.ttl > 0 else None
        with self._lock:
            self._store[key] = CacheEntry(value=value, expires_at=expires_at)

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def invalidate_all(self) -> None:
        """Drop every entry by swapping the backing dict."""
        with self._lock:
            self._store = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
