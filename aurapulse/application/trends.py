"""
Habit trend series for charting: weekly, monthly and yearly buckets.

A completion counts only on a day the habit is actually scheduled. Every
bucket of the range is present (count 0 when empty), oldest first.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from aurapulse.domain.date_keys import add_months, civil_date, parse_date_key
from aurapulse.domain.habit import Habit
from aurapulse.domain.recurrence import is_scheduled

WEEKLY_DAYS = 7
MONTHLY_MONTHS = 6
YEARLY_YEARS = 5


@dataclass(frozen=True)
class TrendPoint:
    bucket_start: date
    count: int


@dataclass(frozen=True)
class TrendSeries:
    weekly: list[TrendPoint]
    monthly: list[TrendPoint]
    yearly: list[TrendPoint]


def weekly_trend(habits: list[Habit], reference: date | datetime, tz: str | None = None) -> list[TrendPoint]:
    """Per day of the last 7 days: habits scheduled and completed that day."""
    end = civil_date(reference, tz)
    points = []
    for offset in range(WEEKLY_DAYS - 1, -1, -1):
        d = end - timedelta(days=offset)
        key = d.isoformat()
        count = sum(1 for h in habits if key in h.completion_date_keys and is_scheduled(h, d))
        points.append(TrendPoint(bucket_start=d, count=count))
    return points


def _bucketed(habits: list[Habit], starts: list[date], bucket_of) -> list[TrendPoint]:
    counts = {bucket_of(s): 0 for s in starts}
    for habit in habits:
        for key in habit.completion_date_keys:
            d = parse_date_key(key)
            if d is None:
                continue
            bucket = bucket_of(d)
            if bucket in counts and is_scheduled(habit, d):
                counts[bucket] += 1
    return [TrendPoint(bucket_start=s, count=counts[bucket_of(s)]) for s in starts]


def monthly_trend(habits: list[Habit], reference: date | datetime, tz: str | None = None) -> list[TrendPoint]:
    first = civil_date(reference, tz).replace(day=1)
    starts = [add_months(first, -i) for i in range(MONTHLY_MONTHS - 1, -1, -1)]
    return _bucketed(habits, starts, lambda d: (d.year, d.month))


def yearly_trend(habits: list[Habit], reference: date | datetime, tz: str | None = None) -> list[TrendPoint]:
    year = civil_date(reference, tz).year
    starts = [date(year - i, 1, 1) for i in range(YEARLY_YEARS - 1, -1, -1)]
    return _bucketed(habits, starts, lambda d: d.year)


def build_trend_series(habits: list[Habit], reference: date | datetime, tz: str | None = None) -> TrendSeries:
    """All three series over the active (non-archived) habits."""
    active = [h for h in habits if not h.is_archived]
    return TrendSeries(
        weekly=weekly_trend(active, reference, tz),
        monthly=monthly_trend(active, reference, tz),
        yearly=yearly_trend(active, reference, tz),
    )
