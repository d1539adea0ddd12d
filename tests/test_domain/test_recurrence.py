"""Tests for the recurrence matcher"""
from datetime import date, datetime, timedelta, timezone

import pytest

from aurapulse.domain.date_keys import last_day_of_month
from aurapulse.domain.habit import Habit
from aurapulse.domain.recurrence import (
    DailyRule,
    HalfYearlyRule,
    MonthlyRule,
    QuarterlyRule,
    WeeklyRule,
    YearlyRule,
    is_scheduled,
    matches_rule,
    rule_from_selector,
    selector_from_rule,
)


def _habit(rule, created_at=None, tz="UTC"):
    return Habit(id="h1", title="Stretch", rule=rule, timezone=tz, created_at=created_at)


def _days_in_month(year, month):
    return [date(year, month, d) for d in range(1, last_day_of_month(year, month) + 1)]


class TestRuleFromSelector:
    def test_weekly(self):
        assert rule_from_selector("weekly", [1, 3, 5]) == WeeklyRule(weekdays=frozenset({1, 3, 5}))

    def test_yearly_pair(self):
        assert rule_from_selector("yearly", [2, 29]) == YearlyRule(month=2, day=29)

    def test_yearly_single_value_is_day(self):
        assert rule_from_selector("yearly", [15]) == YearlyRule(month=None, day=15)

    def test_missing_selector(self):
        assert rule_from_selector("monthly", None) == MonthlyRule(day=None)

    def test_non_int_entries_ignored(self):
        assert rule_from_selector("monthly", ["x", 12]) == MonthlyRule(day=12)

    def test_unknown_frequency(self):
        with pytest.raises(ValueError):
            rule_from_selector("fortnightly", [])

    def test_selector_roundtrip(self):
        for frequency, selector in [("weekly", [0, 6]), ("quarterly", [10]), ("yearly", [12, 25]), ("daily", [])]:
            assert selector_from_rule(rule_from_selector(frequency, selector)) == selector


class TestDaily:
    def test_every_date_scheduled(self):
        habit = _habit(DailyRule())
        start = date(2023, 12, 1)
        for i in range(400):
            assert is_scheduled(habit, start + timedelta(days=i))


class TestWeekly:
    def test_selected_weekdays(self):
        habit = _habit(WeeklyRule(weekdays=frozenset({1, 3})))  # Mon, Wed
        assert is_scheduled(habit, date(2024, 3, 11))  # Monday
        assert is_scheduled(habit, date(2024, 3, 13))  # Wednesday
        assert not is_scheduled(habit, date(2024, 3, 12))  # Tuesday
        assert not is_scheduled(habit, date(2024, 3, 10))  # Sunday

    def test_sunday_is_zero(self):
        habit = _habit(WeeklyRule(weekdays=frozenset({0})))
        assert is_scheduled(habit, date(2024, 3, 10))

    def test_empty_selector_matches_every_day(self):
        habit = _habit(WeeklyRule())
        for i in range(14):
            assert is_scheduled(habit, date(2024, 3, 1) + timedelta(days=i))

    def test_evaluated_in_habit_zone(self):
        habit = _habit(WeeklyRule(weekdays=frozenset({0})), tz="Asia/Tokyo")
        # Saturday 20:00 UTC is Sunday morning in Tokyo
        assert is_scheduled(habit, datetime(2024, 3, 9, 20, 0, tzinfo=timezone.utc))
        assert not is_scheduled(habit, datetime(2024, 3, 10, 20, 0, tzinfo=timezone.utc))


class TestMonthlyClamp:
    def test_day_31_in_april(self):
        habit = _habit(MonthlyRule(day=31))
        scheduled = [d for d in _days_in_month(2024, 4) if is_scheduled(habit, d)]
        assert scheduled == [date(2024, 4, 30)]

    def test_day_31_in_february(self):
        habit = _habit(MonthlyRule(day=31))
        assert is_scheduled(habit, date(2024, 2, 29))
        assert is_scheduled(habit, date(2023, 2, 28))

    @pytest.mark.parametrize("target", [1, 15, 28, 29, 30, 31])
    def test_exactly_one_date_per_month(self, target):
        habit = _habit(MonthlyRule(day=target))
        for month in range(1, 13):
            scheduled = [d for d in _days_in_month(2023, month) if is_scheduled(habit, d)]
            assert scheduled == [date(2023, month, min(target, last_day_of_month(2023, month)))]

    def test_missing_day_self_matches(self):
        habit = _habit(MonthlyRule())
        assert all(is_scheduled(habit, d) for d in _days_in_month(2024, 5))


class TestQuarterlyAndHalfYearly:
    created = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)

    def test_three_month_interval(self):
        habit = _habit(QuarterlyRule(day=15), created_at=self.created)
        assert is_scheduled(habit, date(2024, 4, 15))
        assert not is_scheduled(habit, date(2024, 3, 15))
        assert is_scheduled(habit, date(2024, 1, 15))

    def test_before_creation_keeps_phase(self):
        habit = _habit(QuarterlyRule(day=15), created_at=self.created)
        assert is_scheduled(habit, date(2023, 10, 15))
        assert not is_scheduled(habit, date(2023, 11, 15))

    def test_half_yearly(self):
        habit = _habit(HalfYearlyRule(day=15), created_at=self.created)
        assert is_scheduled(habit, date(2024, 7, 15))
        assert not is_scheduled(habit, date(2024, 4, 15))
        assert is_scheduled(habit, date(2023, 7, 15))

    def test_clamped_in_phase_month(self):
        habit = _habit(QuarterlyRule(day=31), created_at=datetime(2024, 1, 31, tzinfo=timezone.utc))
        scheduled = [d for d in _days_in_month(2024, 4) if is_scheduled(habit, d)]
        assert scheduled == [date(2024, 4, 30)]

    @pytest.mark.parametrize("rule_type", [QuarterlyRule, HalfYearlyRule])
    @pytest.mark.parametrize("target", [29, 30, 31])
    @pytest.mark.parametrize("created_month", range(1, 13))
    def test_one_clamped_date_per_phase_month(self, rule_type, target, created_month):
        rule = rule_type(day=target)
        habit = _habit(rule, created_at=datetime(2023, created_month, 1, tzinfo=timezone.utc))
        for year in (2023, 2024):
            for month in range(1, 13):
                scheduled = [d for d in _days_in_month(year, month) if is_scheduled(habit, d)]
                if (month - created_month) % rule.step_months == 0:
                    assert scheduled == [date(year, month, min(target, last_day_of_month(year, month)))]
                else:
                    assert scheduled == []

    def test_creation_month_in_habit_zone(self):
        # created on Jan 31 23:30 UTC = Feb 1 in Tokyo, so the phase is Feb/May/Aug/Nov
        created = datetime(2024, 1, 31, 23, 30, tzinfo=timezone.utc)
        habit = _habit(QuarterlyRule(day=1), created_at=created, tz="Asia/Tokyo")
        assert is_scheduled(habit, date(2024, 5, 1))
        assert not is_scheduled(habit, date(2024, 4, 1))

    def test_without_creation_date_only_day_checked(self):
        rule = QuarterlyRule(day=10)
        assert matches_rule(rule, date(2024, 2, 10), "UTC")
        assert matches_rule(rule, date(2024, 3, 10), "UTC")


class TestYearly:
    def test_feb_29_in_non_leap_year(self):
        habit = _habit(YearlyRule(month=2, day=29))
        assert is_scheduled(habit, date(2023, 2, 28))
        assert not is_scheduled(habit, date(2023, 3, 1))
        assert is_scheduled(habit, date(2024, 2, 29))
        assert not is_scheduled(habit, date(2024, 2, 28))

    def test_other_months_not_scheduled(self):
        habit = _habit(YearlyRule(month=12, day=25))
        assert is_scheduled(habit, date(2024, 12, 25))
        assert not is_scheduled(habit, date(2024, 11, 25))

    def test_single_value_matches_day_in_every_month(self):
        habit = _habit(YearlyRule(day=10))
        assert is_scheduled(habit, date(2024, 3, 10))
        assert is_scheduled(habit, date(2024, 8, 10))
        assert not is_scheduled(habit, date(2024, 8, 11))

    def test_empty_selector_matches_everything(self):
        habit = _habit(YearlyRule())
        assert is_scheduled(habit, date(2024, 8, 11))

    def test_out_of_range_month_never_matches(self):
        assert not matches_rule(YearlyRule(month=13, day=1), date(2024, 1, 1), "UTC")
