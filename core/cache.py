# core/cache.py
import threading
import time
from typing import Any, Callable, Dict, Hashable, Tuple


class TTLCache:
    """
    Small in-memory key -> value store with a fixed TTL.

    get_or_set() holds a per-key lock while loading, so concurrent misses
    for the same key result in a single load. A loader that raises leaves
    the cache untouched.
    """

    def __init__(self, ttl_sec: float, clock: Callable[[], float] = time.time):
        self.ttl_sec = ttl_sec
        self._clock = clock
        self._data: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._key_locks: Dict[Hashable, threading.Lock] = {}

    def _hit(self, key: Hashable) -> Tuple[bool, Any]:
        rec = self._data.get(key)
        if not rec:
            return False, None
        ts, value = rec
        if self._clock() - ts <= self.ttl_sec:
            return True, value
        return False, None

    def get(self, key: Hashable) -> Tuple[bool, Any]:
        """(hit, value); a cached None is still a hit."""
        with self._lock:
            return self._hit(key)

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._data[key] = (self._clock(), value)

    def get_or_set(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        with self._lock:
            hit, value = self._hit(key)
            if hit:
                return value
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            # another caller may have filled it while we waited
            with self._lock:
                hit, value = self._hit(key)
            if hit:
                return value
            value = loader()
            self.set(key, value)
            return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self._key_locks.clear()
