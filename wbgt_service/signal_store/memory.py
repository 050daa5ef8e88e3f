"""In-memory signal store with TTL, intended for development and tests."""

import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from wbgt_service.signal_store.base import ExpiringSignalStore, StoredSignal

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="signal_store/in_memory_signal_store")


class InMemorySignalStore(ExpiringSignalStore):
    """Thread-safe, TTL-aware in-memory store (dev/test)."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        """Initialize the store; ``clock`` returns epoch seconds and is swappable in tests."""
        logger.debug("Initializing InMemorySignalStore")
        self._clock = clock
        self._values: dict[str, tuple[str, float]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> Optional[tuple[str, float]]:
        """Return (value, expires_epoch) for a live key, evicting it if expired. Caller holds the lock."""
        item = self._values.get(key)
        if item is None:
            return None
        if item[1] <= self._clock():
            self._values.pop(key, None)
            return None
        return item

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._live(key)
            return item[0] if item else None

    def get_with_expiration(self, key: str) -> StoredSignal:
        with self._lock:
            item = self._live(key)
            if item is None:
                return StoredSignal(value=None)
            value, expires = item
            return StoredSignal(value=value, expires_at=datetime.fromtimestamp(expires, tz=timezone.utc))

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._values[key] = (value, self._clock() + ttl_seconds)

    def clear(self) -> None:
        """Drop every stored value."""
        with self._lock:
            self._values.clear()
