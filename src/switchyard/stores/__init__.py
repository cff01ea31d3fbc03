"""Counter stores for route throttling.

    CounterStore -- async protocol the throttle middleware talks to
    SyncCounterStore -- protocol for blocking clients
    MemoryCounterStore -- in-process store (single worker)
    ThreadedCounterStore -- runs a SyncCounterStore in anyio worker threads
"""

from switchyard.stores.memory import MemoryCounterStore
from switchyard.stores.protocol import CounterStore, SyncCounterStore
from switchyard.stores.threaded import ThreadedCounterStore

__all__ = [
    "CounterStore",
    "MemoryCounterStore",
    "SyncCounterStore",
    "ThreadedCounterStore",
]
