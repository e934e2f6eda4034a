"""TTL-bounded, size-bounded cache shared by the build driver and the dev server"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional


@dataclass
class CacheEntry:
    value:       Any
    inserted_at: float


class TtlCache:
    """Mapping of key -> CacheEntry; entries expire ttl seconds after insertion.

    Reads never refresh an entry. When full, stale entries are purged first and,
    if the cache is still full, the oldest insertion is dropped.
    """

    def __init__(self, ttl: float = 300.0, max_size: int = 256, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.max_size = max_size
        self.clock = clock
        self._entries: dict[Hashable, CacheEntry] = {}
        self._lock = threading.Lock()

    def _expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at > self.ttl

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry, self.clock()):
                del self._entries[key]
                return None
            return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            now = self.clock()
            self._entries.pop(key, None)
            if len(self._entries) >= self.max_size:
                self._purge(now)
            if len(self._entries) >= self.max_size:
                oldest = min(self._entries, key=lambda k: self._entries[k].inserted_at)
                del self._entries[oldest]
            self._entries[key] = CacheEntry(value, now)

    def _purge(self, now: float) -> int:
        stale = [k for k, e in self._entries.items() if self._expired(e, now)]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def purge(self) -> int:
        """Drop every expired entry; returns how many were removed."""
        with self._lock:
            return self._purge(self.clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None
