# SPDX-License-Identifier: AGPL-3.0-or-later
"""Resolve loosely shaped analytics payloads into :class:`AnalyticsPoint` series."""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .cascade import coerce_table, is_table_shaped
from .models import AnalyticsPoint

logger = logging.getLogger(__name__)

DATE_COLUMN_LABEL = "날짜"
MISSING_DATE_LABEL = "날짜 없음"
IP_RESTRICTION_MARKER = "허용된 IP주소가 아닙니다"

CONTAINER_KEYS = ("data", "result", "results", "analytics", "stats", "statistics")
DATE_SYNONYMS = ("date", "dt", "날짜")
VISITOR_SYNONYMS = ("visitors", "visitor_count", "방문자")
PAGEVIEW_SYNONYMS = ("pageviews", "pageview_count", "페이지뷰")

_DATE_KEY = re.compile(r"^\d{4}[-/]?\d{2}[-/]?\d{2}$")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def detect_upstream_notice(text: str) -> Optional[str]:
    """Return a user-facing message when *text* is an upstream refusal."""

    if IP_RESTRICTION_MARKER in text:
        return f"Upstream refused the request (IP restriction): {IP_RESTRICTION_MARKER}"
    return None


def _to_int(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else 0


def _lookup(entry: Mapping[str, Any], synonyms: Sequence[str]) -> Any:
    lowered = {str(key).lower(): value for key, value in entry.items()}
    for name in synonyms:
        value = lowered.get(name)
        if value:
            return value
    return None


def _point_from_entry(entry: Mapping[str, Any], *, day: Optional[str] = None) -> AnalyticsPoint:
    if day is None:
        day = str(_lookup(entry, DATE_SYNONYMS) or MISSING_DATE_LABEL)
    return AnalyticsPoint(
        date=day,
        visitors=_to_int(_lookup(entry, VISITOR_SYNONYMS)),
        pageviews=_to_int(_lookup(entry, PAGEVIEW_SYNONYMS)),
    )


def _from_table(value: Any, date_label: str) -> List[AnalyticsPoint]:
    table = coerce_table(value)
    column = table.column_for(date_label) if table is not None else None
    if table is None or column is None:
        logger.warning("Table payload has no '%s' column", date_label)
        return []
    counts = Counter(
        record.fields[column] for record in table.records if record.fields.get(column)
    )
    # The recovered format carries no page-view signal: pageviews mirror visitors.
    return [
        AnalyticsPoint(date=day, visitors=count, pageviews=count)
        for day, count in sorted(counts.items())
    ]


def _from_date_keys(value: Mapping[str, Any]) -> List[AnalyticsPoint]:
    points: List[AnalyticsPoint] = []
    for key, entry in value.items():
        if not _DATE_KEY.match(str(key)):
            continue
        if isinstance(entry, Mapping):
            points.append(_point_from_entry(entry, day=str(key)))
        elif isinstance(entry, (int, float)) and not isinstance(entry, bool):
            points.append(AnalyticsPoint(date=str(key), visitors=int(entry), pageviews=0))
        else:
            points.append(AnalyticsPoint(date=str(key)))
    return points


def _sibling_series(value: Mapping[str, Any], name: str) -> Optional[Mapping[str, Any]]:
    for key, entry in value.items():
        if str(key).lower() == name and isinstance(entry, Mapping) and entry:
            return entry
    return None


def _from_siblings(visitors: Mapping[str, Any], pageviews: Mapping[str, Any]) -> List[AnalyticsPoint]:
    days: Dict[str, None] = dict.fromkeys([*map(str, visitors), *map(str, pageviews)])
    return [
        AnalyticsPoint(
            date=day,
            visitors=_to_int(visitors.get(day)),
            pageviews=_to_int(pageviews.get(day)),
        )
        for day in days
    ]


def _from_flattened(
    value: Mapping[str, Any], visitor_keys: List[str], pageview_keys: List[str], today: date
) -> List[AnalyticsPoint]:
    length = max(len(visitor_keys), len(pageview_keys))
    days = [(today - timedelta(days=offset)).isoformat() for offset in range(length)][::-1]
    points = []
    for index, day in enumerate(days):
        visitors = value[visitor_keys[index]] if index < len(visitor_keys) else 0
        pageviews = value[pageview_keys[index]] if index < len(pageview_keys) else 0
        points.append(AnalyticsPoint(date=day, visitors=_to_int(visitors), pageviews=_to_int(pageviews)))
    return points


def _resolve(value: Any, date_label: str, today: date, depth: int) -> List[AnalyticsPoint]:
    if depth > 16:
        logger.warning("Analytics payload nested too deeply")
        return []

    if isinstance(value, (str, bytes)):
        text = value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value
        if IP_RESTRICTION_MARKER in text:
            logger.warning("Upstream refused the request: %s", text.strip())
            return []
        try:
            decoded = json.loads(text)
        except ValueError:
            logger.warning("Analytics payload is not JSON (%d chars)", len(text))
            return []
        return _resolve(decoded, date_label, today, depth + 1)

    if is_table_shaped(value):
        return _from_table(value, date_label)

    if isinstance(value, Sequence):
        if not value:
            logger.warning("Analytics payload is an empty array")
        return [_point_from_entry(item) for item in value if isinstance(item, Mapping)]

    if not isinstance(value, Mapping):
        logger.warning("Unsupported analytics payload type: %s", type(value).__name__)
        return []

    for key in CONTAINER_KEYS:
        if value.get(key):
            logger.debug("Descending into '%s'", key)
            return _resolve(value[key], date_label, today, depth + 1)

    if any(_DATE_KEY.match(str(key)) for key in value):
        return _from_date_keys(value)

    visitors = _sibling_series(value, "visitors")
    pageviews = _sibling_series(value, "pageviews")
    if visitors is not None or pageviews is not None:
        return _from_siblings(visitors or {}, pageviews or {})

    visitor_keys = [str(key) for key in value if "visitor" in str(key).lower()]
    pageview_keys = [str(key) for key in value if "pageview" in str(key).lower()]
    if visitor_keys or pageview_keys:
        return _from_flattened(value, visitor_keys, pageview_keys, today)

    logger.warning("Unknown analytics payload shape with keys %s", list(value)[:10])
    return []


def normalize_analytics(
    value: Any,
    *,
    date_label: str = DATE_COLUMN_LABEL,
    today: Optional[date] = None,
) -> List[AnalyticsPoint]:
    """Return the per-date series hidden in *value*; never raises.

    *today* anchors the synthetic dates used for flattened ``visitorsDayN``
    payloads and defaults to the current local date.
    """

    try:
        return _resolve(value, date_label, today or date.today(), 0)
    except Exception:  # noqa: BLE001 - normalization failures degrade to an empty series
        logger.exception("Failed to normalise analytics payload")
        return []


__all__ = [
    "CONTAINER_KEYS",
    "DATE_COLUMN_LABEL",
    "IP_RESTRICTION_MARKER",
    "MISSING_DATE_LABEL",
    "detect_upstream_notice",
    "normalize_analytics",
]
