"""Error taxonomy for the WBGT signal cache."""

from __future__ import annotations

from typing import Optional


class WbgtServiceError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(WbgtServiceError):
    """A required collaborator (e.g. the store handle) was not supplied."""


class FetchFailure(WbgtServiceError):
    """The upstream feed request failed or returned a non-success status."""

    def __init__(self, station_id: str, status_code: Optional[int], body: str = "") -> None:
        self.station_id = station_id
        self.status_code = status_code
        self.body = body
        super().__init__(f"WBGT feed fetch failed for station {station_id} (status={status_code}): {body}")


class MalformedFeed(WbgtServiceError):
    """The feed body does not have the expected CSV structure."""


class StoreReadError(WbgtServiceError):
    """Reading a single key from the signal store failed."""

    def __init__(self, key: str, reason: object = None) -> None:
        self.key = key
        super().__init__(f"Failed to read key={key}: {reason}")


class StoreWriteError(WbgtServiceError):
    """Writing a single key to the signal store failed."""

    def __init__(self, key: str, reason: object = None) -> None:
        self.key = key
        super().__init__(f"Failed to write key={key}: {reason}")
