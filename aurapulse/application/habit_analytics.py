"""
Habit analytics: rolling consistency, streaks, milestones, recent history.

Pure read-layer: every function takes the reference instant explicitly and
never reads the clock.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from aurapulse.config import get_settings
from aurapulse.domain.date_keys import add_months, civil_date, date_key, date_parts, months_between
from aurapulse.domain.habit import Habit
from aurapulse.domain.milestones import MilestoneProgress, milestone_progress
from aurapulse.domain.recurrence import (
    DailyRule, HalfYearlyRule, MonthlyRule, QuarterlyRule, WeeklyRule, YearlyRule,
    clamp_day, is_scheduled,
)

RECENT_DAYS = 7
RECENT_MONTHS = 6
RECENT_QUARTERS = 6
RECENT_HALF_YEARS = 4
RECENT_YEARS = 5


@dataclass(frozen=True)
class RollingConsistency:
    completed: int
    scheduled: int
    rate_percent: int


@dataclass(frozen=True)
class HabitSummary:
    active_habits: int
    completed_today: int
    completion_rate: int


@dataclass(frozen=True)
class OccurrenceEntry:
    date: date
    date_key: str
    completed: bool


# ---------------------------------------------------------------------------
# Rolling consistency
# ---------------------------------------------------------------------------

def rolling_consistency(habit: Habit, window_days: int | None, as_of: date | datetime) -> RollingConsistency:
    """Scheduled vs completed days over the window_days calendar days ending at as_of (inclusive).

    window_days=None uses the ROLLING_WINDOW_DAYS setting.
    """
    if window_days is None:
        window_days = get_settings().ROLLING_WINDOW_DAYS
    if window_days <= 0:
        return RollingConsistency(completed=0, scheduled=0, rate_percent=0)

    end = civil_date(as_of, habit.timezone)
    scheduled = 0
    completed = 0
    for i in range(window_days):
        d = end - timedelta(days=i)
        if not is_scheduled(habit, d):
            continue
        scheduled += 1
        if d.isoformat() in habit.completion_date_keys:
            completed += 1

    rate = round(completed / scheduled * 100) if scheduled else 0
    return RollingConsistency(completed=completed, scheduled=scheduled, rate_percent=rate)


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

def streak_count(
    completion_keys: Iterable[str],
    as_of: date | datetime,
    max_lookback_days: int | None = None,
    tz: str | None = None,
) -> int:
    """Consecutive days with a completion, walking back from as_of.

    Stops at the first day without a key or after max_lookback_days.
    """
    if max_lookback_days is None:
        max_lookback_days = get_settings().STREAK_LOOKBACK_DAYS
    keys = completion_keys if isinstance(completion_keys, (set, frozenset)) else set(completion_keys)

    cursor = civil_date(as_of, tz)
    streak = 0
    for _ in range(max_lookback_days):
        if cursor.isoformat() not in keys:
            break
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def habit_streak(habit: Habit, as_of: date | datetime, max_lookback_days: int | None = None) -> int:
    return streak_count(habit.completion_date_keys, as_of, max_lookback_days, habit.timezone)


def habit_milestones(habit: Habit) -> MilestoneProgress:
    return milestone_progress(habit.total_completions)


# ---------------------------------------------------------------------------
# Dashboard summary
# ---------------------------------------------------------------------------

def habit_dashboard_summary(habits: list[Habit], now: datetime) -> HabitSummary:
    """Active habit count and how many of them were completed today (each in its own zone)."""
    active = [h for h in habits if not h.is_archived]
    completed_today = sum(
        1 for h in active if date_key(now, h.timezone) in h.completion_date_keys
    )
    rate = round(completed_today / len(active) * 100) if active else 0
    return HabitSummary(
        active_habits=len(active),
        completed_today=completed_today,
        completion_rate=rate,
    )


# ---------------------------------------------------------------------------
# Recent occurrences (habit details history strip)
# ---------------------------------------------------------------------------

def _weekly_dates(end: date, weekdays: frozenset[int], count: int) -> list[date]:
    targets = weekdays or frozenset({date_parts(end).weekday})
    out: list[date] = []
    cursor = end
    while len(out) < count:
        if date_parts(cursor).weekday in targets:
            out.append(cursor)
        cursor -= timedelta(days=1)
    return out


def _monthly_dates(end: date, step: int, count: int, day: int, anchor: date | None) -> list[date]:
    base = end.replace(day=1)
    if anchor is not None:
        # align to the habit's phase: latest month <= end that is a whole step from anchor
        base = add_months(base, -(months_between(anchor, base) % step))
    out: list[date] = []
    for index in range(count):
        month_start = add_months(base, -step * index)
        out.append(month_start.replace(day=clamp_day(month_start.year, month_start.month, day)))
    return out


def _yearly_dates(end: date, count: int, month: int, day: int) -> list[date]:
    out: list[date] = []
    for index in range(count):
        year = end.year - index
        out.append(date(year, month, clamp_day(year, month, day)))
    return out


def recent_occurrences(habit: Habit, today: date | datetime) -> list[OccurrenceEntry]:
    """Most recent occurrences of the habit up to today's period, oldest first."""
    end = civil_date(today, habit.timezone)
    rule = habit.rule

    if isinstance(rule, DailyRule):
        dates = [end - timedelta(days=i) for i in range(RECENT_DAYS)]
    elif isinstance(rule, WeeklyRule):
        dates = _weekly_dates(end, rule.weekdays, RECENT_DAYS)
    elif isinstance(rule, (MonthlyRule, QuarterlyRule, HalfYearlyRule)):
        day = rule.day if rule.day is not None else end.day
        if isinstance(rule, MonthlyRule):
            dates = _monthly_dates(end, 1, RECENT_MONTHS, day, None)
        else:
            anchor = civil_date(habit.created_at, habit.timezone) if habit.created_at else None
            count = RECENT_QUARTERS if isinstance(rule, QuarterlyRule) else RECENT_HALF_YEARS
            dates = _monthly_dates(end, rule.step_months, count, day, anchor)
    elif isinstance(rule, YearlyRule):
        month = rule.month if rule.month is not None and 1 <= rule.month <= 12 else end.month
        day = rule.day if rule.day is not None else end.day
        dates = _yearly_dates(end, RECENT_YEARS, month, day)
    else:
        dates = []

    return [
        OccurrenceEntry(date=d, date_key=d.isoformat(), completed=d.isoformat() in habit.completion_date_keys)
        for d in reversed(dates)
    ]
