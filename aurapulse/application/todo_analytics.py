"""
Todo completion analytics for the dashboard.

Archived todos are ignored throughout. "Today" is the civil day of `now`
in the given zone.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from aurapulse.application.habit_analytics import streak_count
from aurapulse.domain.date_keys import civil_date
from aurapulse.domain.todo import Todo

COMPLETION_DAYS = 7


@dataclass(frozen=True)
class TodayStats:
    total: int
    completed: int
    percent: int


@dataclass(frozen=True)
class CompletionDay:
    date: date
    count: int


@dataclass(frozen=True)
class CompletionAnalytics:
    daily_completions: list[CompletionDay]
    today_target: int
    today_completed: int
    on_time_completions: int
    spillover_completions: int


def _active(todos: list[Todo]) -> list[Todo]:
    return [t for t in todos if not t.is_archived]


def _completed_on(todo: Todo, tz: str | None) -> date | None:
    if todo.status != "completed" or todo.completed_at is None:
        return None
    return civil_date(todo.completed_at, tz)


def today_stats(todos: list[Todo], now: datetime, tz: str | None = None) -> TodayStats:
    """Progress over todos scheduled today; skipped todos don't count toward the total."""
    today = civil_date(now, tz)
    scheduled_today = [
        t for t in _active(todos)
        if t.scheduled_at is not None
        and t.status != "skipped"
        and civil_date(t.scheduled_at, tz) == today
    ]
    total = len(scheduled_today)
    completed = sum(1 for t in scheduled_today if t.status == "completed")
    percent = round(completed / total * 100) if total else 0
    return TodayStats(total=total, completed=completed, percent=percent)


def completion_analytics(
    todos: list[Todo],
    now: datetime,
    tz: str | None = None,
    days: int = COMPLETION_DAYS,
) -> CompletionAnalytics:
    today = civil_date(now, tz)
    active = _active(todos)

    counts: dict[date, int] = {}
    for todo in active:
        done = _completed_on(todo, tz)
        if done is not None:
            counts[done] = counts.get(done, 0) + 1

    series = [
        CompletionDay(date=d, count=counts.get(d, 0))
        for d in (today - timedelta(days=offset) for offset in range(days - 1, -1, -1))
    ]

    target = sum(
        1 for t in active
        if t.scheduled_at is not None and civil_date(t.scheduled_at, tz) == today
    )

    on_time = 0
    spillover = 0
    for todo in active:
        if _completed_on(todo, tz) != today:
            continue
        if todo.scheduled_at is not None and civil_date(todo.scheduled_at, tz) < today:
            spillover += 1
        else:
            on_time += 1

    return CompletionAnalytics(
        daily_completions=series,
        today_target=target,
        today_completed=counts.get(today, 0),
        on_time_completions=on_time,
        spillover_completions=spillover,
    )


def todo_streak(
    todos: list[Todo],
    as_of: date | datetime,
    tz: str | None = None,
    max_lookback_days: int | None = None,
) -> int:
    """Consecutive days, back from as_of, with at least one completed todo."""
    keys = set()
    for todo in _active(todos):
        done = _completed_on(todo, tz)
        if done is not None:
            keys.add(done.isoformat())
    return streak_count(keys, as_of, max_lookback_days, tz)
