# SPDX-License-Identifier: AGPL-3.0-or-later
"""Descriptive statistics over recovered tables and chart series."""

from __future__ import annotations

import math
import re
from collections import Counter
from datetime import date
from typing import Any, Iterable, List, Optional, Sequence

from .cascade import coerce_table
from .models import AnalyticsPoint, ChartSummary, Record, Stats, Table

DATE_COLUMN = "2"
TIME_COLUMN = "3"
KEYWORD_COLUMN = "8"

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_HOUR = re.compile(r"(\d{2}):")


def day_of_week(value: str) -> Optional[int]:
    """Return 0 (Sunday) .. 6 (Saturday) for a ``YYYY-MM-DD`` prefixed value."""

    match = _ISO_DATE.match(value.strip())
    if match is None:
        return None
    try:
        parsed = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None
    return parsed.isoweekday() % 7


def _hour(value: str) -> Optional[int]:
    match = _HOUR.search(value)
    if match is None:
        return None
    hour = int(match.group(1))
    return hour if 0 <= hour <= 23 else None


def compute_stats(
    table: Table | Any,
    *,
    date_column: str = DATE_COLUMN,
    time_column: str = TIME_COLUMN,
    keyword_column: str = KEYWORD_COLUMN,
) -> Stats:
    """Aggregate visit counts by day, weekday, hour and search keyword.

    Accepts a :class:`Table` or anything :func:`coerce_table` understands.
    Records missing a column are simply left out of that dimension.
    """

    resolved = coerce_table(table)
    records: Sequence[Record] = resolved.records if resolved is not None else ()

    by_day: Counter[str] = Counter()
    by_weekday: Counter[int] = Counter()
    by_hour: Counter[int] = Counter()
    by_keyword: Counter[str] = Counter()
    for record in records:
        day = record.get(date_column)
        if day:
            by_day[day] += 1
            weekday = day_of_week(day)
            if weekday is not None:
                by_weekday[weekday] += 1
        moment = record.get(time_column)
        if moment:
            hour = _hour(moment)
            if hour is not None:
                by_hour[hour] += 1
        keyword = (record.get(keyword_column) or "").strip()
        if keyword:
            by_keyword[keyword] += 1

    return Stats(
        total_visits=len(records),
        visits_by_day=dict(by_day),
        visits_by_day_of_week=dict(sorted(by_weekday.items())),
        visits_by_hour=dict(sorted(by_hour.items())),
        visits_by_keyword=dict(by_keyword.most_common()),
    )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _average(values: List[int]) -> int:
    return _round_half_up(sum(values) / len(values)) if values else 0


def summarize_points(points: Iterable[AnalyticsPoint]) -> Optional[ChartSummary]:
    """Headline numbers for a chart series; ``None`` for an empty series."""

    series = list(points)
    if not series:
        return None
    visitors = [point.visitors for point in series]
    pageviews = [point.pageviews for point in series]
    highest = max(series, key=lambda point: point.visitors)
    lowest = min(series, key=lambda point: point.visitors)

    weekday: List[int] = []
    weekend: List[int] = []
    by_weekday: Counter[int] = Counter()
    for point in series:
        index = day_of_week(point.date)
        if index is None:
            continue
        by_weekday[index] += point.visitors
        (weekend if index in (0, 6) else weekday).append(point.visitors)

    return ChartSummary(
        total_visitors=sum(visitors),
        total_pageviews=sum(pageviews),
        avg_visitors=_average(visitors),
        avg_pageviews=_average(pageviews),
        max_visitors=highest.visitors,
        max_visitors_date=highest.date,
        min_visitors=lowest.visitors,
        min_visitors_date=lowest.date,
        avg_weekday_visitors=_average(weekday),
        avg_weekend_visitors=_average(weekend),
        visits_by_day_of_week=dict(sorted(by_weekday.items())),
    )


__all__ = ["compute_stats", "day_of_week", "summarize_points"]
