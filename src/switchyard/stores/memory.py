"""In-process counter store.

Suitable for a single process. The read-increment-write sequence runs
under one lock; across processes each worker counts on its own.
"""

import threading
import time
from collections.abc import Callable


class MemoryCounterStore:
    """Lock-guarded dict of ``key -> (count, expires_at)``."""

    __slots__ = ("_clock", "_lock", "_state")

    def __init__(self, *, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.time
        self._lock = threading.Lock()
        self._state: dict[str, tuple[int, float]] = {}

    async def get(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            entry = self._state.get(key)
            if entry is None:
                return 0
            count, expires_at = entry
            if expires_at <= now:
                del self._state[key]
                return 0
            return count

    async def increment(self, key: str, ttl: int) -> int:
        now = self._clock()
        with self._lock:
            self._prune(now)
            count, expires_at = self._state.get(key, (0, now + ttl))
            if expires_at <= now:
                count, expires_at = 0, now + ttl
            count += 1
            self._state[key] = (count, expires_at)
            return count

    def clear(self) -> None:
        """Drop every counter."""
        with self._lock:
            self._state.clear()

    def __len__(self) -> int:
        return len(self._state)

    def _prune(self, now: float) -> None:
        """Remove expired counters. Caller holds the lock."""
        expired = [k for k, (_, expires_at) in self._state.items() if expires_at <= now]
        for key in expired:
            del self._state[key]
