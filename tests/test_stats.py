from __future__ import annotations

from visitlog.models import AnalyticsPoint, Record, Table
from visitlog.stats import compute_stats, day_of_week, summarize_points


def _table(*rows: dict[str, str]) -> Table:
    return Table(header={"2": "날짜"}, records=[Record(fields=dict(row)) for row in rows])


def test_scenario_d_counts_by_day() -> None:
    stats = compute_stats(_table({"2": "2025-03-24"}, {"2": "2025-03-24"}, {"2": "2025-03-25"}))

    assert stats.total_visits == 3
    assert stats.visits_by_day == {"2025-03-24": 2, "2025-03-25": 1}
    assert stats.to_dict()["totalVisits"] == 3
    assert stats.to_dict()["visitsByDay"] == {"2025-03-24": 2, "2025-03-25": 1}


def test_day_of_week_hour_and_keyword_buckets() -> None:
    stats = compute_stats(
        _table(
            {"2": "2025-03-23", "3": "09:15:02", "8": " 운동화 "},
            {"2": "2025-03-24", "3": "09:59:59", "8": "운동화"},
            {"2": "2025-03-29", "3": "23:00:00", "8": "   "},
        )
    )

    # 2025-03-23 is a Sunday, 2025-03-29 a Saturday.
    assert stats.visits_by_day_of_week == {0: 1, 1: 1, 6: 1}
    assert stats.visits_by_hour == {9: 2, 23: 1}
    assert stats.visits_by_keyword == {"운동화": 2}


def test_day_counts_add_up_to_total() -> None:
    stats = compute_stats(
        _table({"2": "2025-01-01"}, {"2": "2025-01-02"}, {"2": "2025-01-02"}, {"2": "2025-01-05"})
    )

    assert sum(stats.visits_by_day_of_week.values()) == sum(stats.visits_by_day.values()) == stats.total_visits


def test_missing_columns_contribute_to_no_bucket() -> None:
    stats = compute_stats(_table({"1": "only a number"}, {"2": "not-a-date", "3": "noon"}))

    assert stats.total_visits == 2
    assert stats.visits_by_day == {"not-a-date": 1}
    assert stats.visits_by_day_of_week == {}
    assert stats.visits_by_hour == {}
    assert stats.visits_by_keyword == {}


def test_compute_stats_accepts_wire_shapes() -> None:
    payload = {"data_header": {}, "data_content": [{"id": "5", "2": "2025-03-25", "3": "14:00"}]}

    stats = compute_stats(payload)

    assert stats.total_visits == 1
    assert stats.visits_by_hour == {14: 1}
    assert compute_stats("not a table").total_visits == 0


def test_day_of_week_rejects_impossible_dates() -> None:
    assert day_of_week("2025-03-25") == 2
    assert day_of_week("2025-02-30") is None
    assert day_of_week("yesterday") is None


def test_summarize_points_headlines() -> None:
    points = [
        AnalyticsPoint(date="2025-03-22", visitors=80, pageviews=230),  # Saturday
        AnalyticsPoint(date="2025-03-23", visitors=81, pageviews=231),  # Sunday
        AnalyticsPoint(date="2025-03-24", visitors=150, pageviews=450),  # Monday
        AnalyticsPoint(date="2025-03-25", visitors=151, pageviews=451),  # Tuesday
    ]

    summary = summarize_points(points)

    assert summary is not None
    assert summary.total_visitors == 462
    assert summary.total_pageviews == 1362
    assert summary.avg_visitors == 116  # 115.5 rounds half up
    assert summary.avg_pageviews == 341  # 340.5 rounds half up
    assert (summary.max_visitors, summary.max_visitors_date) == (151, "2025-03-25")
    assert (summary.min_visitors, summary.min_visitors_date) == (80, "2025-03-22")
    assert summary.avg_weekday_visitors == 151  # 150.5
    assert summary.avg_weekend_visitors == 81  # 80.5
    assert summary.visits_by_day_of_week == {0: 81, 1: 150, 2: 151, 6: 80}


def test_summarize_points_empty_is_none() -> None:
    assert summarize_points([]) is None
