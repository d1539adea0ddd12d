"""
Recurrence matcher for habits.

Answers "is this calendar date a scheduled occurrence?" for a closed set of
frequencies. Each frequency is its own rule type carrying only the fields it
needs; rule_from_selector() builds one from the stored positional selector.

Frequencies:
- daily: every day
- weekly: selected weekdays (0=Sun..6=Sat); no selection = every day
- monthly: day of month, clamped to the month's last day
- quarterly / half-yearly: monthly rule, every 3 / 6 months from created_at
- yearly: month + day of month, clamped

Missing selector values fall back to the evaluated date's own month/day, so
those rules match instead of failing. Matching never raises except for an
unknown timezone (InvalidTimezoneError).
"""
from dataclasses import dataclass
from datetime import date, datetime
from typing import ClassVar

from aurapulse.domain.date_keys import DateParts, date_parts, last_day_of_month

FREQUENCIES = ("daily", "weekly", "monthly", "quarterly", "half-yearly", "yearly")


@dataclass(frozen=True)
class DailyRule:
    frequency: ClassVar[str] = "daily"


@dataclass(frozen=True)
class WeeklyRule:
    weekdays: frozenset[int] = frozenset()
    frequency: ClassVar[str] = "weekly"


@dataclass(frozen=True)
class MonthlyRule:
    day: int | None = None
    frequency: ClassVar[str] = "monthly"


@dataclass(frozen=True)
class QuarterlyRule:
    day: int | None = None
    frequency: ClassVar[str] = "quarterly"
    step_months: ClassVar[int] = 3


@dataclass(frozen=True)
class HalfYearlyRule:
    day: int | None = None
    frequency: ClassVar[str] = "half-yearly"
    step_months: ClassVar[int] = 6


@dataclass(frozen=True)
class YearlyRule:
    month: int | None = None
    day: int | None = None
    frequency: ClassVar[str] = "yearly"


RecurrenceRule = DailyRule | WeeklyRule | MonthlyRule | QuarterlyRule | HalfYearlyRule | YearlyRule


def _int_values(selector) -> list[int]:
    if not selector:
        return []
    return [v for v in selector if isinstance(v, int) and not isinstance(v, bool)]


def rule_from_selector(frequency: str, selector: list[int] | None) -> RecurrenceRule:
    """Build a rule from the stored (frequency, schedule selector) pair."""
    values = _int_values(selector)
    first = values[0] if values else None
    if frequency == "daily":
        return DailyRule()
    if frequency == "weekly":
        return WeeklyRule(weekdays=frozenset(values))
    if frequency == "monthly":
        return MonthlyRule(day=first)
    if frequency == "quarterly":
        return QuarterlyRule(day=first)
    if frequency == "half-yearly":
        return HalfYearlyRule(day=first)
    if frequency == "yearly":
        if len(values) >= 2:
            return YearlyRule(month=values[0], day=values[1])
        return YearlyRule(day=first)
    raise ValueError(f"invalid frequency: {frequency}")


def selector_from_rule(rule: RecurrenceRule) -> list[int]:
    """Inverse of rule_from_selector, for persistence."""
    if isinstance(rule, WeeklyRule):
        return sorted(rule.weekdays)
    if isinstance(rule, (MonthlyRule, QuarterlyRule, HalfYearlyRule)):
        return [rule.day] if rule.day is not None else []
    if isinstance(rule, YearlyRule):
        if rule.month is not None and rule.day is not None:
            return [rule.month, rule.day]
        return [rule.day] if rule.day is not None else []
    return []


def clamp_day(year: int, month: int, day: int) -> int:
    return min(day, last_day_of_month(year, month))


def _matches_month_day(target: int | None, parts: DateParts) -> bool:
    day = target if target is not None else parts.day
    return parts.day == clamp_day(parts.year, parts.month, day)


def matches_rule(
    rule: RecurrenceRule,
    when: date | datetime,
    tz: str | None = None,
    anchor: date | datetime | None = None,
) -> bool:
    """True if `when` (observed in tz) is an occurrence of rule.

    anchor is the phase origin for quarterly / half-yearly rules; without one
    the month interval is not checked.
    """
    parts = date_parts(when, tz)

    if isinstance(rule, DailyRule):
        return True
    if isinstance(rule, WeeklyRule):
        return not rule.weekdays or parts.weekday in rule.weekdays
    if isinstance(rule, MonthlyRule):
        return _matches_month_day(rule.day, parts)
    if isinstance(rule, (QuarterlyRule, HalfYearlyRule)):
        if not _matches_month_day(rule.day, parts):
            return False
        if anchor is None:
            return True
        start = date_parts(anchor, tz)
        diff = abs((parts.year - start.year) * 12 + (parts.month - start.month))
        return diff % rule.step_months == 0
    if isinstance(rule, YearlyRule):
        month = rule.month if rule.month is not None else parts.month
        day = rule.day if rule.day is not None else parts.day
        if not 1 <= month <= 12:
            return False
        return parts.month == month and parts.day == clamp_day(parts.year, month, day)
    return False


def is_scheduled(habit, when: date | datetime) -> bool:
    """True if habit is due on `when`, evaluated in the habit's own timezone."""
    return matches_rule(habit.rule, when, habit.timezone, habit.created_at)
