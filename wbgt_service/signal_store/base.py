"""Shared protocols and types for signal storage backends."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class StoredSignal:
    """A cached value together with its absolute expiry (None when unknown)."""
    value: Optional[str]
    expires_at: Optional[datetime] = None


@runtime_checkable
class SignalStore(Protocol):
    """Minimal capability every backend provides."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent/expired. Raises StoreReadError."""

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value that expires ttl_seconds from now. Raises StoreWriteError."""


@runtime_checkable
class ExpiringSignalStore(SignalStore, Protocol):
    """Backend that can also report when a key expires."""

    def get_with_expiration(self, key: str) -> StoredSignal:
        """Return value and expiry in one read. Raises StoreReadError."""
