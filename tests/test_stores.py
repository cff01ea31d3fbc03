"""Tests for switchyard.stores: in-memory and threaded counter stores."""

import threading

import pytest

from switchyard.stores import CounterStore, MemoryCounterStore, SyncCounterStore, ThreadedCounterStore


class DictStore:
    """Blocking store in the shape of a synchronous cache client."""

    def __init__(self) -> None:
        self.data: dict[str, int] = {}
        self.ttls: dict[str, int] = {}
        self.threads: set[int] = set()

    def get(self, key: str) -> int | None:
        self.threads.add(threading.get_ident())
        return self.data.get(key)

    def increment(self, key: str, ttl: int) -> int:
        self.threads.add(threading.get_ident())
        self.data[key] = self.data.get(key, 0) + 1
        self.ttls.setdefault(key, ttl)
        return self.data[key]


class TestMemoryCounterStore:
    @pytest.mark.anyio
    async def test_missing_key_is_zero(self) -> None:
        assert await MemoryCounterStore().get("nope") == 0

    @pytest.mark.anyio
    async def test_increment_counts(self) -> None:
        store = MemoryCounterStore()
        assert await store.increment("k", 60) == 1
        assert await store.increment("k", 60) == 2
        assert await store.get("k") == 2

    @pytest.mark.anyio
    async def test_expiry(self, clock) -> None:
        store = MemoryCounterStore(clock=clock)
        await store.increment("k", 10)
        clock.advance(9)
        assert await store.get("k") == 1
        clock.advance(1)
        assert await store.get("k") == 0
        assert await store.increment("k", 10) == 1

    @pytest.mark.anyio
    async def test_ttl_fixed_at_creation(self, clock) -> None:
        store = MemoryCounterStore(clock=clock)
        await store.increment("k", 10)
        clock.advance(8)
        await store.increment("k", 10)
        clock.advance(2)
        assert await store.get("k") == 0

    @pytest.mark.anyio
    async def test_expired_entries_pruned(self, clock) -> None:
        store = MemoryCounterStore(clock=clock)
        await store.increment("a", 5)
        clock.advance(6)
        await store.increment("b", 5)
        assert len(store) == 1

    @pytest.mark.anyio
    async def test_clear(self) -> None:
        store = MemoryCounterStore()
        await store.increment("a", 5)
        store.clear()
        assert await store.get("a") == 0

    def test_satisfies_protocol(self) -> None:
        assert isinstance(MemoryCounterStore(), CounterStore)


class TestThreadedCounterStore:
    @pytest.mark.anyio
    async def test_delegates_to_sync_store(self) -> None:
        backend = DictStore()
        store = ThreadedCounterStore(backend)
        assert await store.get("k") == 0
        assert await store.increment("k", 30) == 1
        assert await store.get("k") == 1
        assert backend.ttls == {"k": 30}

    @pytest.mark.anyio
    async def test_runs_off_the_event_loop_thread(self) -> None:
        backend = DictStore()
        await ThreadedCounterStore(backend).increment("k", 30)
        assert threading.get_ident() not in backend.threads

    def test_protocols(self) -> None:
        assert isinstance(DictStore(), SyncCounterStore)
        assert isinstance(ThreadedCounterStore(DictStore()), CounterStore)
