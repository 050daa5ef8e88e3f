"""HTTP API exposing the cached WBGT signals."""

from typing import Dict, Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from .config import settings
from .errors import ConfigurationError
from .signal_cache import SignalCache
from .signal_store import build_signal_store
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="wbgt_service/api")

router = APIRouter()
SIGNAL_CACHE = SignalCache(
    build_signal_store(settings),
    default_station_id=settings.station_id,
    ttl_seconds=settings.ttl_seconds,
    key_prefix=settings.key_prefix,
    url_template=settings.feed_url_template,
    timeout=settings.request_timeout_seconds,
)


@router.get("/wbgt", response_model=Dict[str, Optional[str]])
def get_wbgt(
    response: Response,
    point: Optional[str] = Query(default=None, description="Station identifier, e.g. 62091"),
):
    """Return WBGT values for today/tomorrow at 15:00 and 18:00 JST, keyed by store key."""
    station_id = point.strip() if point and point.strip() else None
    try:
        signals = SIGNAL_CACHE.get_signal_map(station_id)
    except ConfigurationError as exc:
        logger.error("WBGT cache misconfigured", extra={"error": str(exc)})
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="WBGT store not configured")
    response.headers["Cache-Control"] = f"public, max-age={settings.cache_max_age_seconds}"
    return signals
