from datetime import datetime, timedelta, timezone

from star_trends.application.series import build_series
from star_trends.domain.models import StarEvent, TimeSeriesPoint

T1 = datetime(2021, 3, 1, tzinfo=timezone.utc)
T2 = T1 + timedelta(hours=5)
T3 = T1 + timedelta(days=30)
NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_events_are_sorted_and_counted_from_zero():
    events = [StarEvent(T3), StarEvent(T1), StarEvent(T2)]
    assert build_series(events, now=NOW) == [
        TimeSeriesPoint(T1, 0),
        TimeSeriesPoint(T2, 1),
        TimeSeriesPoint(T3, 2),
    ]


def test_equal_timestamps_keep_counting():
    series = build_series([StarEvent(T1), StarEvent(T1), StarEvent(T2)], now=NOW)
    assert [p.cumulative_count for p in series] == [0, 1, 2]
    assert [p.timestamp for p in series] == [T1, T1, T2]


def test_no_events_gets_two_points_ending_now():
    series = build_series([], now=NOW)
    assert series == [TimeSeriesPoint(NOW - timedelta(days=1), 0), TimeSeriesPoint(NOW, 1)]
    assert series[0].timestamp < series[1].timestamp


def test_single_event_gets_synthetic_point_at_now():
    series = build_series([StarEvent(T1)], now=NOW)
    assert series == [TimeSeriesPoint(T1, 0), TimeSeriesPoint(NOW, 1)]


def test_synthetic_point_uses_wall_clock_when_now_is_omitted():
    before = datetime.now(timezone.utc)
    series = build_series([StarEvent(T1)])
    after = datetime.now(timezone.utc)

    assert len(series) == 2
    assert before <= series[-1].timestamp <= after
    assert series[-1].cumulative_count == 1


def test_two_events_need_no_synthetic_point():
    series = build_series([StarEvent(T2), StarEvent(T1)], now=NOW)
    assert NOW not in [p.timestamp for p in series]
    assert len(series) == 2
