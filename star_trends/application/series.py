"""Conversion of star events into a cumulative time series."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from star_trends.domain.models import StarEvent, TimeSeriesPoint

logger = logging.getLogger(__name__)

EMPTY_SERIES_SPAN = timedelta(days=1)


def build_series(events: Iterable[StarEvent], now: Optional[datetime] = None) -> List[TimeSeriesPoint]:
    """
    Sort events by time and number them 0, 1, 2, ...

    The renderer needs at least two points, so a series with fewer gets an
    extra point at `now` with a count of 1. With no events at all a zero point
    one day before `now` comes first, so timestamps stay strictly increasing.
    Those points are a drawing aid and do not reflect the real star count.

    Args:
        events: Star events in any order
        now: Timestamp for the extra point (current UTC time if None)

    Returns:
        Points ordered by timestamp
    """
    ordered = sorted(events, key=lambda event: event.starred_at)
    series = [
        TimeSeriesPoint(timestamp=event.starred_at, cumulative_count=i)
        for i, event in enumerate(ordered)
    ]

    if len(series) < 2:
        logger.warning(f"Not enough results ({len(series)}), adding a point at the current time")
        now = now or datetime.now(timezone.utc)
        if not series:
            series.append(TimeSeriesPoint(timestamp=now - EMPTY_SERIES_SPAN, cumulative_count=0))
        series.append(TimeSeriesPoint(timestamp=now, cumulative_count=1))

    return series
