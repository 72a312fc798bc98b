"""
In-Memory Cache
===============
Process-local cache for development, tests and single-worker servers.
"""

import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .base import KeyValueCache


class InMemoryCache(KeyValueCache):
    """
    Dict-backed cache with passive expiry.

    Every operation runs under one lock and never awaits while holding
    it, so ``set_if_absent`` is atomic across coroutines and threads.
    Use RedisCache when running several workers.
    """

    def __init__(self, clock: Callable[[], float] = time.time, sweep_interval: float = 60.0):
        """
        Args:
            clock: Time source, injectable for tests
            sweep_interval: Seconds between opportunistic sweeps of expired keys
        """
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._entries: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def _expiry(self, ttl: Optional[float]) -> Optional[float]:
        return None if ttl is None else self._clock() + ttl

    def _live(self, key: str, now: float) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        expires_at = entry[1]
        if expires_at is not None and expires_at <= now:
            del self._entries[key]
            return False
        return True

    def _sweep(self, now: float) -> None:
        """Remove expired keys; bounds memory, not needed for correctness."""
        if now - self._last_sweep < self._sweep_interval:
            return
        self._last_sweep = now
        expired = [
            key for key, (_, expires_at) in self._entries.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            del self._entries[key]

    async def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if not self._live(key, self._clock()):
                return None
            return self._entries[key][0]

    async def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        with self._lock:
            self._sweep(self._clock())
            self._entries[key] = (value, self._expiry(ttl))

    async def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    async def set_if_absent(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            if self._live(key, now):
                return False
            self._entries[key] = (value, self._expiry(ttl))
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
