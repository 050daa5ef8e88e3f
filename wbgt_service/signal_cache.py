"""Read-through cache for WBGT signals: freshness check, refresh from the feed, re-read."""
from __future__ import annotations

import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from wbgt_service.errors import ConfigurationError, FetchFailure, MalformedFeed
from wbgt_service.feed_client import (
    DEFAULT_TIMEOUT_SECONDS,
    WBGT_FEED_URL_TEMPLATE,
    SignalEntry,
    fetch_signal_entries,
)
from wbgt_service.key_codec import DEFAULT_KEY_PREFIX, encode_key
from wbgt_service.signal_store.base import ExpiringSignalStore, SignalStore, StoredSignal
from wbgt_service.time_window import TimePoint, compute_target_points
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="signal_cache")

DEFAULT_STATION_ID = "62091"
DEFAULT_TTL_SECONDS = 86400  # 1 day

FetchEntries = Callable[[str, Sequence[TimePoint]], List[SignalEntry]]
SignalMap = Dict[str, Optional[str]]


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _as_aware_utc(now: dt.datetime) -> dt.datetime:
    """Naive clock readings are taken as UTC."""
    if now.tzinfo is None:
        return now.replace(tzinfo=dt.timezone.utc)
    return now.astimezone(dt.timezone.utc)


class SignalCache:
    """
    Serve the four tracked WBGT values, refreshing the store from the feed when stale.

    The store is injected; whether expiry metadata is consulted is decided once,
    here, from the store's capabilities. Only ConfigurationError ever escapes.
    """

    def __init__(
        self,
        store: SignalStore | None,
        *,
        fetch_entries: FetchEntries | None = None,
        default_station_id: str = DEFAULT_STATION_ID,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        url_template: str = WBGT_FEED_URL_TEMPLATE,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], dt.datetime] = _utc_now,
        max_workers: int = 4,
    ) -> None:
        if store is None:
            logger.error("WBGT signal store not provided")
            raise ConfigurationError("WBGT signal store is not configured")
        self.store = store
        self.fetch_entries = fetch_entries or self._default_fetch_entries
        self.default_station_id = default_station_id
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix
        self.url_template = url_template
        self.timeout = timeout
        self.clock = clock
        self.max_workers = max_workers

        if isinstance(store, ExpiringSignalStore):
            self._read_entry: Callable[[str], StoredSignal] = store.get_with_expiration
            self._tracks_expiry = True
        else:
            logger.info("Signal store lacks expiry metadata; freshness falls back to presence checks")
            self._read_entry = self._plain_read
            self._tracks_expiry = False

    def _default_fetch_entries(self, station_id: str, points: Sequence[TimePoint]) -> List[SignalEntry]:
        return fetch_signal_entries(
            station_id,
            points,
            url_template=self.url_template,
            timeout=self.timeout,
            key_prefix=self.key_prefix,
        )

    def _plain_read(self, key: str) -> StoredSignal:
        return StoredSignal(value=self.store.get(key))

    def _keys_for(self, points: Iterable[TimePoint]) -> List[str]:
        return [encode_key(point, self.key_prefix) for point in points]

    def _safe_read(self, key: str, reader: Callable[[str], StoredSignal]) -> tuple[StoredSignal, bool]:
        """Return (entry, ok). A failed read is logged and reported as absent."""
        try:
            return reader(key), True
        except Exception as exc:
            logger.error("Error reading signal store", extra={"key": key, "error": str(exc)})
            return StoredSignal(value=None), False

    def _read_all(self, keys: Sequence[str], reader: Callable[[str], StoredSignal]) -> List[tuple[StoredSignal, bool]]:
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(lambda key: self._safe_read(key, reader), keys))

    def _is_stale(self, entry: StoredSignal, ok: bool, now: dt.datetime) -> bool:
        if not ok or not entry.value:
            return True
        if not self._tracks_expiry:
            return False
        # unknown expiry counts as stale
        return entry.expires_at is None or entry.expires_at < now

    def get_signal_map(self, station_id: str | None = None) -> SignalMap:
        """Return ``{key: value-or-None}`` for today/tomorrow at 15h and 18h JST."""
        now = _as_aware_utc(self.clock())
        points = compute_target_points(now)
        keys = self._keys_for(points)

        results = self._read_all(keys, self._read_entry)
        signals: SignalMap = {key: entry.value for key, (entry, _) in zip(keys, results)}
        stale = any(self._is_stale(entry, ok, now) for entry, ok in results)
        if not stale:
            logger.debug("WBGT cache fresh; skipping refresh")
            return signals

        logger.info("WBGT cache stale; refreshing", extra={"station_id": station_id or self.default_station_id})
        self.refresh(station_id, points=points)

        refreshed = self._read_all(keys, self._plain_read)
        return {key: entry.value for key, (entry, _) in zip(keys, refreshed)}

    def get_signal(self, point: TimePoint) -> Optional[str]:
        """Plain cached read for a single point; no refresh is attempted."""
        entry, _ = self._safe_read(encode_key(point, self.key_prefix), self._plain_read)
        return entry.value

    def _write_if_changed(self, entry: SignalEntry) -> bool:
        """Write one entry unless the store already holds the same value. Never raises."""
        try:
            existing = self.store.get(entry.key)
        except Exception as exc:
            logger.warning("Could not read existing value; writing anyway", extra={"key": entry.key, "error": str(exc)})
            existing = None
        if existing == entry.value:
            return False
        try:
            self.store.put(entry.key, entry.value, self.ttl_seconds)
        except Exception as exc:
            logger.error("Failed to write signal store", extra={"key": entry.key, "error": str(exc)})
            return False
        return True

    def refresh(self, station_id: str | None = None, points: Sequence[TimePoint] | None = None) -> int:
        """
        Fetch the feed and write changed values with a fresh TTL.

        Returns how many keys were written. Feed problems are logged and yield 0.
        """
        station = station_id or self.default_station_id
        points = list(points) if points is not None else compute_target_points(self.clock())
        try:
            entries = self.fetch_entries(station, points)
        except FetchFailure as exc:
            logger.error("WBGT feed fetch failed", extra={"station_id": station, "status_code": exc.status_code})
            logger.debug("WBGT feed failure body: %s", exc.body)
            return 0
        except MalformedFeed as exc:
            logger.error("WBGT feed malformed", extra={"station_id": station, "error": str(exc)})
            return 0
        except Exception as exc:
            logger.exception("WBGT refresh failed", extra={"station_id": station, "error": str(exc)})
            return 0

        if not entries:
            logger.warning("WBGT fetch returned no entries for targets; store not updated.",
                           extra={"station_id": station})
            return 0

        # one task per key; a failed write leaves its siblings running
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(self._write_if_changed, entry) for entry in entries]
        written = sum(1 for future in futures if future.result())
        logger.info("WBGT store refreshed", extra={"station_id": station, "written": written, "candidates": len(entries)})
        return written
