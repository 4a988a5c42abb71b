# SPDX-License-Identifier: AGPL-3.0-or-later
"""Synthetic visit series for demos when the upstream is unreachable."""

from __future__ import annotations

import random
from datetime import date, timedelta
from typing import List, Optional

from .models import AnalyticsPoint

WEEKDAY_BASE = (150, 450)
WEEKEND_BASE = (80, 230)


def generate_sample_points(
    days: int = 30,
    *,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> List[AnalyticsPoint]:
    """Return *days* points ending today, oldest first.

    Weekends get lighter traffic; each day is scaled by one factor drawn from
    ``[0.8, 1.2)``.
    """

    if days < 0:
        raise ValueError("days must be >= 0")
    today = today or date.today()
    rng = rng or random.Random()
    points: List[AnalyticsPoint] = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        visitors, pageviews = WEEKEND_BASE if day.weekday() >= 5 else WEEKDAY_BASE
        factor = 0.8 + rng.random() * 0.4
        points.append(
            AnalyticsPoint(
                date=day.isoformat(),
                visitors=round(visitors * factor),
                pageviews=round(pageviews * factor),
            )
        )
    return points


__all__ = ["generate_sample_points"]
