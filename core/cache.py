"""Process-local TTL cache for market data.

Expired entries are kept until overwritten so callers can fall back to the
last known value when an upstream feed is down.
"""

from __future__ import annotations

import time
from threading import Lock
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    def __init__(self):
        self._lock = Lock()
        self._data: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            hit = self._data.get(key)
        if hit is None or hit[1] <= time.monotonic():
            return None
        return hit[0]

    def get_stale(self, key: str) -> Optional[Any]:
        """Last stored value for `key`, even if it has expired."""
        with self._lock:
            hit = self._data.get(key)
        return hit[0] if hit else None

    def set(self, key: str, value: Any, *, ttl_seconds: float) -> None:
        with self._lock:
            self._data[key] = (value, time.monotonic() + float(ttl_seconds))

    def get_or_set(self, key: str, *, ttl_seconds: float, factory: Callable[[], Any]) -> Optional[Any]:
        value = self.get(key)
        if value is not None:
            return value
        value = factory()
        if value is not None:
            self.set(key, value, ttl_seconds=ttl_seconds)
        return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


default_cache = TTLCache()
