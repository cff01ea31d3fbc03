"""Counter store protocols used by ``ThrottleMiddleware``.

A store keeps integer counters that expire on their own. Async stores
implement ``CounterStore`` directly; blocking clients implement
``SyncCounterStore`` and are wrapped in ``ThreadedCounterStore``.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class CounterStore(Protocol):
    """Async counter storage with per-key expiry."""

    async def get(self, key: str) -> int:
        """Return the current count for *key* (0 when absent or expired)."""
        ...

    async def increment(self, key: str, ttl: int) -> int:
        """Add one to *key*, creating it with a *ttl*-second expiry; return the new count."""
        ...


@runtime_checkable
class SyncCounterStore(Protocol):
    """Blocking counter storage, e.g. a synchronous cache client."""

    def get(self, key: str) -> int | None: ...

    def increment(self, key: str, ttl: int) -> int: ...
