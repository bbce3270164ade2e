"""
In-process cache of trending lists.
"""
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional


@dataclass
class _Entry:
    value: Any
    stored_at: float
    fresh: bool = True


class TrendingCache:
    """
    TTL cache keyed by (period, limit).

    `invalidate()` only marks entries stale: fresh reads miss and go to the
    store, but `get_stale()` can still serve the last known list when the
    store is down.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, _Entry] = {}

    def get(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None or not entry.fresh:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            return None
        return entry.value

    def get_stale(self, key: Hashable) -> Optional[Any]:
        entry = self._entries.get(key)
        return entry.value if entry else None

    def set(self, key: Hashable, value: Any) -> None:
        self._entries[key] = _Entry(value=value, stored_at=self._clock())

    def invalidate(self) -> None:
        for entry in self._entries.values():
            entry.fresh = False

    def clear(self) -> None:
        self._entries.clear()
