"""Fetch and parse the per-station WBGT forecast CSV published by the Ministry of the Environment."""
from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import requests

from wbgt_service.errors import FetchFailure, MalformedFeed
from wbgt_service.key_codec import DEFAULT_KEY_PREFIX, encode_key, format_search_label
from wbgt_service.time_window import TimePoint
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="feed_client")

session = requests.Session()

WBGT_FEED_URL_TEMPLATE = "https://www.wbgt.env.go.jp/prev15WG/dl/yohou_{station_id}.csv"
DEFAULT_TIMEOUT_SECONDS = 10.0
# Leading columns of each row: station code and publish time.
METADATA_COLUMNS = 2

_LINE_SPLIT_RE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class FeedRow:
    """One feed column: the YYYYMMDDHH header label and its raw cell."""
    header_label: str
    raw_value: str


@dataclass(frozen=True)
class SignalEntry:
    """A candidate store write: key and decimal-string WBGT value."""
    key: str
    value: str


def fetch_feed_csv(station_id: str,
                   *,
                   url_template: str = WBGT_FEED_URL_TEMPLATE,
                   timeout: float = DEFAULT_TIMEOUT_SECONDS,
                   ) -> str:
    """Download the raw CSV for a station. Raises FetchFailure on any non-2xx or transport error."""
    url = url_template.format(station_id=station_id)
    logger.debug("Fetching WBGT feed", extra={"station_id": station_id, "url": url})
    try:
        resp = session.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchFailure(station_id, None, str(exc)) from exc

    if not 200 <= resp.status_code < 300:
        raise FetchFailure(station_id, resp.status_code, resp.text)
    return resp.text


def _split_cells(line: str) -> List[str]:
    return [cell.strip() for cell in line.split(",")[METADATA_COLUMNS:]]


def parse_feed_csv(text: str) -> List[FeedRow]:
    """
    Pair each header label with the first data row's cell.

    Line 1 carries the time labels, line 2 the values in tenths of a degree;
    both lose their first two metadata columns. Later lines are ignored.
    """
    lines = [line for line in _LINE_SPLIT_RE.split(text or "") if line]
    if len(lines) < 2:
        raise MalformedFeed(f"WBGT CSV: expected at least 2 lines, got {len(lines)}")

    headers = _split_cells(lines[0])
    values = _split_cells(lines[1])
    if not headers or len(headers) != len(values):
        raise MalformedFeed(
            f"WBGT CSV: header/value length mismatch ({len(headers)} headers, {len(values)} values)"
        )
    return [FeedRow(header_label=h, raw_value=v) for h, v in zip(headers, values)]


def format_signal_value(tenths: int) -> str:
    """Render a tenths-of-a-degree integer as a decimal string: 300 -> '30', 295 -> '29.5'."""
    value = tenths / 10
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _try_parse_tenths(raw: str) -> Optional[int]:
    try:
        return int(raw, 10)
    except ValueError:
        return None


def _parse_attempts(rows: Sequence[FeedRow],
                    points: Iterable[TimePoint],
                    ) -> Iterator[Tuple[TimePoint, FeedRow, Optional[int]]]:
    """Yield (point, row, parsed tenths or None) for every point present in the feed."""
    # first column wins when a label repeats
    by_label: dict = {}
    for row in rows:
        by_label.setdefault(row.header_label, row)
    for point in points:
        row = by_label.get(format_search_label(point))
        if row is None:
            logger.debug("Target time not present in feed", extra={"label": format_search_label(point)})
            continue
        yield point, row, _try_parse_tenths(row.raw_value)


def extract_entries(rows: Sequence[FeedRow],
                    points: Iterable[TimePoint],
                    *,
                    key_prefix: str = DEFAULT_KEY_PREFIX,
                    ) -> List[SignalEntry]:
    """Select the feed cells matching the target points and convert them to store entries."""
    entries: List[SignalEntry] = []
    for point, row, tenths in _parse_attempts(rows, points):
        if tenths is None:
            logger.warning(
                "Skipping unparseable WBGT cell",
                extra={"label": row.header_label, "raw_value": row.raw_value},
            )
            continue
        entries.append(SignalEntry(key=encode_key(point, key_prefix), value=format_signal_value(tenths)))
    return entries


def fetch_signal_entries(station_id: str,
                         points: Iterable[TimePoint],
                         *,
                         url_template: str = WBGT_FEED_URL_TEMPLATE,
                         timeout: float = DEFAULT_TIMEOUT_SECONDS,
                         key_prefix: str = DEFAULT_KEY_PREFIX,
                         ) -> List[SignalEntry]:
    """Fetch, parse and extract in one go. Never touches the store."""
    text = fetch_feed_csv(station_id, url_template=url_template, timeout=timeout)
    rows = parse_feed_csv(text)
    return extract_entries(rows, points, key_prefix=key_prefix)
