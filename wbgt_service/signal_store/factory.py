"""Factory helpers for choosing a signal store at startup."""

from __future__ import annotations

from wbgt_service import config
from wbgt_service.signal_store.base import SignalStore
from wbgt_service.signal_store.memory import InMemorySignalStore
from utils.logging_utils import get_tagged_logger, mask_url

logger = get_tagged_logger(__name__, tag="signal_store/factory")


DEFAULT_BACKEND_NAME = "memory"


def build_signal_store(settings: config.Settings | None = None) -> SignalStore:
    """Instantiate the configured signal store backend."""
    settings = settings or config.settings
    backend = (settings.store_backend or DEFAULT_BACKEND_NAME).lower()

    if backend == "memory":
        logger.info("Using in-memory signal store")
        return InMemorySignalStore()

    if backend == "redis":
        import redis

        from .redis import RedisSignalStore

        redis_url = settings.redis_url
        if not redis_url:
            raise ValueError("redis_url must be set for the redis signal store")
        logger.info("Using Redis signal store", extra={"redis_url": mask_url(redis_url)})
        return RedisSignalStore(redis.Redis.from_url(redis_url))

    raise ValueError(f"Unknown signal store backend '{backend}'")
