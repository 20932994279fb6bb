"""
In-memory TTL cache.

Entries expire a fixed number of seconds after insertion and are treated
as absent from then on. There is no size-based eviction; the catalog holds
a few hundred records at most.
"""

import threading
import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar


V = TypeVar("V")


class TTLCache(Generic[V]):
    """
    Thread-safe mapping whose entries expire after ``ttl_seconds``.

    Args:
        ttl_seconds: Lifetime of each entry.
        clock: Zero-argument callable returning seconds; injectable for tests.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, V]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[V]:
        """Return the live value for ``key``, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: V) -> float:
        """
        Store ``value`` under ``key``.

        Returns:
            The expiry timestamp of the new entry.
        """
        with self._lock:
            expires_at = self._clock() + self.ttl_seconds
            self._entries[key] = (expires_at, value)
            return expires_at
