from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

_DEFAULT_TTL = 300  # 5 minutes


@dataclass
class CacheEntry:
    value: Any
    expires_at: float


class TTLCache:
    """Small key/value cache whose entries expire ``ttl`` seconds after being set.

    The clock is injectable so expiry can be driven deterministically in tests.
    """

    def __init__(self, ttl: float = _DEFAULT_TTL, clock: Callable[[], float] = time.time) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry and self._clock() < entry.expires_at:
            self._hits += 1
            return entry.value
        if entry:
            del self._entries[key]
        self._misses += 1
        return None

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + self.ttl)

    def get_or_set(self, key: str, factory: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is None:
            value = factory()
            self.set(key, value)
        return value

    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "size": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0
