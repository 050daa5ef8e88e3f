"""
Central logging configuration utilities.

Usage
-----
In the process entrypoint (server, one-off refresh job, etc.):

    from utils.logging_utils import setup_logging

    def main() -> None:
        setup_logging(level="INFO", job_name="wbgt_server")
        ...

In a module:

    from utils.logging_utils import get_tagged_logger

    logger = get_tagged_logger(__name__, tag="feed_client")

    def fetch_feed() -> None:
        logger.info("Fetching WBGT feed")

Every record carries `job_name` and `tag` so stdout/stderr lines from the
server, the feed client and the store backends can be told apart.
"""

from __future__ import annotations

import logging
import logging.config
from typing import Any, Mapping, Optional


# ---------------------------------------------------------------------------
# Minimal bootstrap config (early logs)
# ---------------------------------------------------------------------------

# Runs on import so records emitted before setup_logging() (e.g. while the
# settings object and the signal store are built) still carry timestamps.
BOOTSTRAP_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
BOOTSTRAP_DATEFMT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    level=logging.INFO,
    format=BOOTSTRAP_FORMAT,
    datefmt=BOOTSTRAP_DATEFMT,
)


# ---------------------------------------------------------------------------
# Defaults for full configuration
# ---------------------------------------------------------------------------

DEFAULT_LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(job_name)s | %(tag)s | %(name)s | %(message)s"
)
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_CONFIGURED: bool = False


# ---------------------------------------------------------------------------
# Filters to enrich log records
# ---------------------------------------------------------------------------

class MaxLevelFilter(logging.Filter):
    """
    Allow only records up to (and including) `max_level`.

    Routes DEBUG/INFO to stdout while WARNING+ (feed failures, store
    errors) go to stderr.
    """

    def __init__(self, max_level: int) -> None:
        """Initialize with a maximum log level."""
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        """Return True if the record is within the allowed level."""
        return record.levelno <= self.max_level


class EnsureTagFilter(logging.Filter):
    """
    Ensure every LogRecord has a `tag` attribute.

    Records from plain loggers (uvicorn, requests, third-party code) get the
    last segment of their logger name, e.g. "uvicorn.access" -> "access".
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        """Ensure the record has a tag attribute."""
        if not hasattr(record, "tag"):
            logger_name = getattr(record, "name", "")
            record.tag = logger_name.split(".")[-1] if logger_name else "-"
        return True


class JobNameFilter(logging.Filter):
    """
    Inject a `job_name` attribute into every LogRecord.

    Set once per process (e.g. "wbgt_server" or a one-off refresh job).
    If not provided, defaults to "-".
    """

    def __init__(self, job_name: Optional[str] = None) -> None:
        """Initialize with a fixed job name."""
        super().__init__()
        self._job_name = job_name or "-"

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        """Inject the job_name attribute when missing."""
        if not hasattr(record, "job_name"):
            record.job_name = self._job_name
        return True


# ---------------------------------------------------------------------------
# Config builder and setup function
# ---------------------------------------------------------------------------


def build_logging_config(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
) -> Mapping[str, Any]:
    """
    Build a dictConfig-style logging configuration.

    DEBUG/INFO go to stdout, WARNING and above to stderr; both handlers
    share the tag/job_name filters and the standard formatter.

    Parameters
    ----------
    level:
        Root logger level (e.g., "DEBUG", "INFO", logging.INFO).
    log_format:
        Formatter pattern for log messages.
    date_format:
        Formatter pattern for timestamps.
    job_name:
        Optional logical name for this process (e.g. "wbgt_server").
        Used for the `job_name` field in log records.

    Returns
    -------
    dict suitable for logging.config.dictConfig().
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "ensure_tag": {"()": EnsureTagFilter},
            "job_name": {"()": JobNameFilter, "job_name": job_name},
            "stdout_max_info": {
                "()": MaxLevelFilter,
                "max_level": logging.INFO,
            },
        },
        "formatters": {
            "standard": {
                "format": log_format,
                "datefmt": date_format,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name", "stdout_max_info"],
                "level": "DEBUG",
                "stream": "ext://sys.stdout",
            },
            "stderr": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["ensure_tag", "job_name"],
                "level": "WARNING",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "level": level,
            "handlers": ["stdout", "stderr"],
        },
    }


def setup_logging(
    *,
    level: str | int = "INFO",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    job_name: Optional[str] = None,
    override_existing: bool = False,
) -> None:
    """
    Configure application-wide logging once per process.

    Call this from the entrypoint (see run_server.py) before serving.

    Parameters
    ----------
    level:
        Root logger level (e.g., "DEBUG", "INFO"); normally WBGT_LOG_LEVEL.
    log_format:
        Formatter pattern for log messages. By default includes asctime,
        levelname, job_name, tag, logger name and message.
    date_format:
        Timestamp format for `asctime`.
    job_name:
        Logical name for this process. Appears in `%(job_name)s`.
    override_existing:
        If False (default), repeated calls are no-ops after the first.
        If True, the configuration is reapplied each time.
    """
    global _CONFIGURED

    if _CONFIGURED and not override_existing:
        return

    config_dict = build_logging_config(
        level=level,
        log_format=log_format,
        date_format=date_format,
        job_name=job_name,
    )
    logging.config.dictConfig(config_dict)
    _CONFIGURED = True


# ---------------------------------------------------------------------------
# Logger helpers
# ---------------------------------------------------------------------------


def get_tagged_logger(
    name: str,
    *,
    tag: Optional[str] = None,
) -> logging.LoggerAdapter:
    """
    Return a LoggerAdapter that always carries a `tag` field.

    Parameters
    ----------
    name:
        Base logger name (usually __name__).
    tag:
        Semantic tag for this component. If omitted, defaults to the last
        segment of the logger name, e.g. "wbgt_service.feed_client" -> "feed_client".

    Returns
    -------
    logging.LoggerAdapter
        Use it like a normal logger; every record carries `tag`:

            logger = get_tagged_logger(__name__, tag="signal_cache")
            logger.info("WBGT cache stale; refreshing")
    """
    base_logger = logging.getLogger(name)
    if tag is None:
        tag = name.split(".")[-1]
    return logging.LoggerAdapter(base_logger, {"tag": tag})


def mask_url(url: str) -> str:
    """Return a copy of a connection URL (redis://, https://, ...) with credentials masked.

    Examples
    --------
    - redis://:secret@cache:6379/0 -> redis://:***@cache:6379/0
    - redis://localhost:6379/0 -> unchanged
    """
    from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

    try:
        parsed = urlparse(url)
        port = parsed.port
    except ValueError:
        return url

    masked_query = urlencode([
        (key, "***" if any(token in key.lower() for token in ("pass", "secret", "token", "key")) else value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
    ])

    netloc = ""
    if parsed.username is not None or parsed.password is not None:
        netloc += "***" if parsed.username else ""
        if parsed.password is not None:
            netloc += ":***"
        netloc += "@"
    if parsed.hostname:
        netloc += parsed.hostname
    if port:
        netloc += f":{port}"

    return urlunparse(
        (parsed.scheme, netloc, parsed.path or "", parsed.params or "", masked_query, parsed.fragment or "")
    )
