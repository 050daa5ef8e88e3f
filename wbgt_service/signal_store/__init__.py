"""Key-value store backends for cached WBGT signals."""

from .base import ExpiringSignalStore, SignalStore, StoredSignal
from .factory import build_signal_store
from .memory import InMemorySignalStore
from .redis import RedisSignalStore

__all__ = [
    "build_signal_store",
    "ExpiringSignalStore",
    "SignalStore",
    "StoredSignal",
    "InMemorySignalStore",
    "RedisSignalStore",
]
