"""Habit domain record and its pure state transitions"""
from dataclasses import dataclass, field, replace
from datetime import datetime

from aurapulse.domain.date_keys import parse_date_key, validate_timezone
from aurapulse.domain.recurrence import FREQUENCIES, DailyRule, RecurrenceRule, rule_from_selector

HABIT_TYPES = ("positive", "avoid")
MAX_GRACE_MISSES_PER_WEEK = 7


class HabitValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Habit:
    id: str
    title: str
    rule: RecurrenceRule = field(default_factory=DailyRule)
    timezone: str | None = None
    completion_date_keys: frozenset[str] = frozenset()
    skipped_date_keys: frozenset[str] = frozenset()
    created_at: datetime | None = None
    habit_type: str = "positive"
    grace_misses_per_week: int = 0
    context_tags: tuple[str, ...] = ()
    trigger_after_habit_id: str | None = None  # lookup only, see find_trigger_habit()
    archived_at: datetime | None = None
    last_notified_level: int = 0

    def __post_init__(self):
        completed = frozenset(self.completion_date_keys)
        # a day is never both completed and skipped; completion wins
        skipped = frozenset(self.skipped_date_keys) - completed
        object.__setattr__(self, "completion_date_keys", completed)
        object.__setattr__(self, "skipped_date_keys", skipped)
        object.__setattr__(self, "context_tags", tuple(self.context_tags))

    @property
    def frequency(self) -> str:
        return self.rule.frequency

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def total_completions(self) -> int:
        return len(self.completion_date_keys)


def _validate_selector(frequency: str, selector: list[int]) -> None:
    if any(not isinstance(v, int) for v in selector):
        raise HabitValidationError("Schedule values must be integers")
    if frequency == "weekly":
        if any(not 0 <= v <= 6 for v in selector):
            raise HabitValidationError("Weekdays must be between 0 (Sunday) and 6 (Saturday)")
    elif frequency in ("monthly", "quarterly", "half-yearly"):
        if selector and not 1 <= selector[0] <= 31:
            raise HabitValidationError("Day of month must be between 1 and 31")
    elif frequency == "yearly":
        if len(selector) >= 2:
            month, day = selector[0], selector[1]
            if not 1 <= month <= 12:
                raise HabitValidationError("Month must be between 1 and 12")
        elif selector:
            day = selector[0]
        else:
            return
        if not 1 <= day <= 31:
            raise HabitValidationError("Day of month must be between 1 and 31")


def new_habit(
    habit_id: str,
    title: str,
    frequency: str,
    schedule_selector: list[int] | None = None,
    timezone: str | None = None,
    created_at: datetime | None = None,
    habit_type: str = "positive",
    grace_misses_per_week: int = 0,
    context_tags: tuple[str, ...] | list[str] = (),
    trigger_after_habit_id: str | None = None,
) -> Habit:
    """Validate user input and build a Habit.

    An unknown timezone raises InvalidTimezoneError here, at creation time,
    so evaluation never sees one.
    """
    title = title.strip()
    if not title:
        raise HabitValidationError("Habit title cannot be empty")
    if frequency not in FREQUENCIES:
        raise HabitValidationError(f"Invalid frequency: {frequency}")
    if habit_type not in HABIT_TYPES:
        raise HabitValidationError(f"Invalid habit type: {habit_type}")
    if not 0 <= grace_misses_per_week <= MAX_GRACE_MISSES_PER_WEEK:
        raise HabitValidationError(
            f"Grace misses must be between 0 and {MAX_GRACE_MISSES_PER_WEEK} per week"
        )
    selector = list(schedule_selector or [])
    _validate_selector(frequency, selector)
    validate_timezone(timezone)

    return Habit(
        id=habit_id,
        title=title,
        rule=rule_from_selector(frequency, selector),
        timezone=timezone,
        created_at=created_at,
        habit_type=habit_type,
        grace_misses_per_week=grace_misses_per_week,
        context_tags=tuple(context_tags),
        trigger_after_habit_id=trigger_after_habit_id,
    )


def _ensure_editable(habit: Habit, key: str) -> None:
    if habit.is_archived:
        raise HabitValidationError("Restore the habit to update it")
    if parse_date_key(key) is None:
        raise HabitValidationError(f"Invalid date key: {key!r}")


def toggle_completion(habit: Habit, key: str) -> Habit:
    """Not done -> done (clearing a skip), done -> not done."""
    _ensure_editable(habit, key)
    if key in habit.completion_date_keys:
        return replace(habit, completion_date_keys=habit.completion_date_keys - {key})
    return replace(
        habit,
        completion_date_keys=habit.completion_date_keys | {key},
        skipped_date_keys=habit.skipped_date_keys - {key},
    )


def skip_day(habit: Habit, key: str) -> Habit:
    _ensure_editable(habit, key)
    return replace(
        habit,
        completion_date_keys=habit.completion_date_keys - {key},
        skipped_date_keys=habit.skipped_date_keys | {key},
    )


def clear_day(habit: Habit, key: str) -> Habit:
    _ensure_editable(habit, key)
    return replace(
        habit,
        completion_date_keys=habit.completion_date_keys - {key},
        skipped_date_keys=habit.skipped_date_keys - {key},
    )


def find_trigger_habit(habit: Habit, habits: list[Habit]) -> Habit | None:
    """Resolve trigger_after_habit_id against the current collection.

    Returns None when the referenced habit is gone or archived.
    """
    if not habit.trigger_after_habit_id:
        return None
    for candidate in habits:
        if candidate.id == habit.trigger_after_habit_id and not candidate.is_archived:
            return candidate
    return None
