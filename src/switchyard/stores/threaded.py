"""Adapter running a blocking counter store in a worker thread.

Uses ``anyio.to_thread`` so a synchronous cache client never blocks the
event loop. The throttle middleware's ``fail_after`` budget still
applies to the awaiting side.
"""

from collections.abc import Callable
from typing import Any

import anyio.to_thread

from switchyard.stores.protocol import SyncCounterStore


def _run_sync(func: Callable[..., Any], *args: Any) -> Any:
    """Run *func* in an anyio worker thread; the thread is abandoned on cancel."""
    return anyio.to_thread.run_sync(func, *args, abandon_on_cancel=True)  # type: ignore[union-attr]


class ThreadedCounterStore:
    """Async ``CounterStore`` over a ``SyncCounterStore``."""

    __slots__ = ("_store",)

    def __init__(self, store: SyncCounterStore) -> None:
        self._store = store

    async def get(self, key: str) -> int:
        value = await _run_sync(self._store.get, key)
        return int(value or 0)

    async def increment(self, key: str, ttl: int) -> int:
        return int(await _run_sync(self._store.increment, key, ttl))
