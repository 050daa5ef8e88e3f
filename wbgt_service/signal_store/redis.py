"""Redis-backed signal store with TTL."""

import time
from datetime import datetime, timezone
from typing import Callable, Optional

from wbgt_service.errors import StoreReadError, StoreWriteError
from wbgt_service.signal_store.base import ExpiringSignalStore, StoredSignal
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="signal_store/redis_signal_store")

# PTTL sentinels
_PTTL_MISSING = -2
_PTTL_PERSISTENT = -1


class RedisSignalStore(ExpiringSignalStore):
    """Signals stored as plain strings under their encoded keys, expiry via Redis TTL."""

    def __init__(self, client, clock: Callable[[], float] = time.time) -> None:
        """
        Initialize with a Redis client (``redis.Redis`` or anything with the same methods).

        ``clock`` returns epoch seconds; relative PTTLs are anchored to it.
        """
        logger.debug("Initializing RedisSignalStore")
        self.client = client
        self._clock = clock

    @staticmethod
    def _decode(raw) -> Optional[str]:
        """Redis hands back bytes unless decode_responses was set."""
        if raw is None:
            return None
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return str(raw)

    def get(self, key: str) -> Optional[str]:
        try:
            raw = self.client.get(key)
        except Exception as exc:
            raise StoreReadError(key, exc) from exc
        return self._decode(raw)

    def get_with_expiration(self, key: str) -> StoredSignal:
        """Read value and PTTL in one round trip; keys without a TTL report unknown expiry."""
        try:
            pipe = self.client.pipeline()
            pipe.get(key)
            pipe.pttl(key)
            raw, pttl = pipe.execute()
        except Exception as exc:
            raise StoreReadError(key, exc) from exc

        value = self._decode(raw)
        if value is None or pttl is None or pttl in (_PTTL_MISSING, _PTTL_PERSISTENT):
            return StoredSignal(value=value)
        expires_at = datetime.fromtimestamp(self._clock() + int(pttl) / 1000, tz=timezone.utc)
        return StoredSignal(value=value, expires_at=expires_at)

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            self.client.set(key, value, ex=ttl_seconds)
        except Exception as exc:
            raise StoreWriteError(key, exc) from exc
