# SPDX-License-Identifier: AGPL-3.0-or-later
"""Lightweight data structures shared by the recovery pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

FieldMap = Dict[str, str]


def column_sort_key(index: str) -> tuple[int, str]:
    """Order column indices numerically, keeping stray keys last."""

    return (int(index), index) if index.isdigit() else (1 << 31, index)


@dataclass(slots=True)
class Record:
    """One logical row recovered from the upstream payload."""

    fields: FieldMap = field(default_factory=dict)
    id: Optional[str] = None

    def get(self, index: str, default: Optional[str] = None) -> Optional[str]:
        return self.fields.get(index, default)

    def __bool__(self) -> bool:
        return bool(self.fields)

    def to_dict(self) -> Dict[str, str]:
        """Return the flat wire shape, ``id`` first when present."""

        payload: Dict[str, str] = {}
        if self.id is not None:
            payload["id"] = self.id
        for key in sorted(self.fields, key=column_sort_key):
            payload[key] = self.fields[key]
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Record":
        record_id = data.get("id")
        fields = {
            str(key): "" if value is None else str(value)
            for key, value in data.items()
            if key != "id"
        }
        return cls(fields=fields, id=None if record_id is None else str(record_id))


@dataclass(slots=True)
class Table:
    """Canonical ``{header, records}`` shape every detector converges to."""

    header: FieldMap = field(default_factory=dict)
    records: List[Record] = field(default_factory=list)

    def column_for(self, label: str) -> Optional[str]:
        """Return the column index whose header equals *label*."""

        for index in sorted(self.header, key=column_sort_key):
            if self.header[index] == label:
                return index
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable representation."""

        return {
            "data_header": {
                key: self.header[key] for key in sorted(self.header, key=column_sort_key)
            },
            "data_content": [record.to_dict() for record in self.records],
        }


@dataclass(slots=True, frozen=True)
class AnalyticsPoint:
    """Per-date visitor/pageview summary consumed by charts."""

    date: str
    visitors: int = 0
    pageviews: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "visitors": self.visitors, "pageviews": self.pageviews}


@dataclass(slots=True)
class Stats:
    """Aggregates derived from a :class:`Table`."""

    total_visits: int = 0
    visits_by_day: Dict[str, int] = field(default_factory=dict)
    visits_by_day_of_week: Dict[int, int] = field(default_factory=dict)
    visits_by_hour: Dict[int, int] = field(default_factory=dict)
    visits_by_keyword: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalVisits": self.total_visits,
            "visitsByDay": dict(self.visits_by_day),
            "visitsByDayOfWeek": dict(self.visits_by_day_of_week),
            "visitsByHour": dict(self.visits_by_hour),
            "visitsByKeyword": dict(self.visits_by_keyword),
        }


@dataclass(slots=True)
class ChartSummary:
    """Headline numbers over a series of :class:`AnalyticsPoint`."""

    total_visitors: int
    total_pageviews: int
    avg_visitors: int
    avg_pageviews: int
    max_visitors: int
    max_visitors_date: str
    min_visitors: int
    min_visitors_date: str
    avg_weekday_visitors: int
    avg_weekend_visitors: int
    visits_by_day_of_week: Dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalVisitors": self.total_visitors,
            "totalPageviews": self.total_pageviews,
            "avgVisitors": self.avg_visitors,
            "avgPageviews": self.avg_pageviews,
            "maxVisitors": self.max_visitors,
            "maxVisitorsDate": self.max_visitors_date,
            "minVisitors": self.min_visitors,
            "minVisitorsDate": self.min_visitors_date,
            "avgWeekdayVisitors": self.avg_weekday_visitors,
            "avgWeekendVisitors": self.avg_weekend_visitors,
            "visitsByDayOfWeek": dict(self.visits_by_day_of_week),
        }


__all__ = [
    "AnalyticsPoint",
    "ChartSummary",
    "FieldMap",
    "Record",
    "Stats",
    "Table",
    "column_sort_key",
]
