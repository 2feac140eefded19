"""
In-memory response cache with TTL expiry and bounded size.

Entries are keyed by a request fingerprint (see :func:`make_cache_key`).  An
entry older than its TTL is treated as absent and dropped on lookup.  When
an insert pushes the cache past its capacity, the oldest-inserted entry is
evicted — insertion order, not LRU.

The cache is process-local and guarded by a lock, so one instance can be
shared by concurrent requests of the agent that owns it.
"""

from __future__ import annotations

import hashlib
import json
import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any


def canonical_context(context: Mapping[str, Any] | None) -> str:
    """Serialize *context* with sorted keys at every level.

    Values that are not JSON-native are rendered with ``str()`` so opaque
    pass-through data still contributes to the fingerprint.
    """
    return json.dumps(dict(context or {}), sort_keys=True, separators=(",", ":"), default=str)


def make_cache_key(request: str, context: Mapping[str, Any] | None = None, *, namespace: str = "") -> str:
    """Fingerprint a request and its context.

    Two contexts that are structurally equal produce the same key regardless
    of key order.
    """
    digest = hashlib.sha256(f"{request}\x00{canonical_context(context)}".encode()).hexdigest()
    return f"{namespace}:{digest}" if namespace else digest


@dataclass
class CacheEntry:
    key: str
    payload: Any
    timestamp: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl


class ResponseCache:
    """TTL cache bounded by entry count.

    Args:
        ttl: Seconds an entry stays live.
        capacity: Maximum number of entries kept.
        clock: Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        ttl: float = 300.0,
        capacity: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.ttl = ttl
        self.capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live payload for *key*, or *default* if absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return default
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self.misses += 1
                return default
            self.hits += 1
            return entry.payload

    def set(self, key: str, payload: Any) -> None:
        """Insert or overwrite *key*; evict the oldest entry when over capacity."""
        with self._lock:
            # Overwrites move to the back so they count as freshly inserted.
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(key=key, payload=payload, timestamp=self._clock(), ttl=self.ttl)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served from cache (0.0 when nothing was looked up)."""
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0
