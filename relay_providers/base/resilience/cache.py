"""Per-adapter response cache with TTL and bounded capacity.

Each adapter owns one instance so responses never leak between vendors.
Entries are served only while ``now - stored_at < ttl``. When the cache is
full, expired entries are swept first and then the oldest entries by store
time are evicted.
"""
from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass
from threading import RLock
from typing import Callable, Dict, Optional


@dataclass(frozen=True)
class CacheEntry:
    value: str
    stored_at: float


class ResponseCache:
    """Thread-safe TTL cache keyed by :meth:`make_key` digests."""

    def __init__(
        self,
        ttl: float = 300.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = RLock()

    @staticmethod
    def make_key(provider: str, system_prompt: str, user_message: str, context_material: str = "") -> str:
        """SHA-256 over the provider and every input that shapes the reply."""
        digest = hashlib.sha256()
        for part in (provider, system_prompt, user_message, context_material):
            digest.update(part.encode("utf-8"))
            digest.update(b"\x1f")
        return digest.hexdigest()

    def get(self, key: str) -> Optional[str]:
        """Return the cached value, or ``None`` on a miss or an expired entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at >= self.ttl:
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: str) -> None:
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._make_room()
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def _make_room(self) -> None:
        self.sweep()
        overflow = len(self._entries) - self.max_entries + 1
        if overflow <= 0:
            return
        oldest = sorted(self._entries.items(), key=lambda kv: kv[1].stored_at)[:overflow]
        for key, _ in oldest:
            del self._entries[key]

    def sweep(self) -> int:
        """Drop expired entries; returns how many were removed."""
        with self._lock:
            now = self._clock()
            expired = [k for k, e in self._entries.items() if now - e.stored_at >= self.ttl]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None


__all__ = ["ResponseCache", "CacheEntry"]
