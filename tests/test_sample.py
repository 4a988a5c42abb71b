from __future__ import annotations

import random
from datetime import date

import pytest

from visitlog.sample import generate_sample_points


def test_sample_points_cover_days_oldest_first() -> None:
    points = generate_sample_points(7, today=date(2025, 3, 25), rng=random.Random(1))

    assert [point.date for point in points] == [
        "2025-03-19",
        "2025-03-20",
        "2025-03-21",
        "2025-03-22",
        "2025-03-23",
        "2025-03-24",
        "2025-03-25",
    ]


def test_sample_points_respect_weekday_and_weekend_ranges() -> None:
    points = generate_sample_points(28, today=date(2025, 3, 30), rng=random.Random(7))

    for point in points:
        weekend = date.fromisoformat(point.date).weekday() >= 5
        low, high = (64, 96) if weekend else (120, 180)
        assert low <= point.visitors <= high
        assert point.pageviews > point.visitors


def test_sample_points_are_reproducible_with_seed() -> None:
    first = generate_sample_points(5, today=date(2025, 1, 1), rng=random.Random(3))
    second = generate_sample_points(5, today=date(2025, 1, 1), rng=random.Random(3))

    assert first == second


def test_negative_days_rejected() -> None:
    with pytest.raises(ValueError):
        generate_sample_points(-1)
