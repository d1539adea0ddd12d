"""
Snapshot repository: loads habit / todo rows as immutable domain records and
writes back the few fields the engine changes.

Timestamps are written as UTC. Naive values read back (SQLite) are UTC.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from aurapulse.domain.date_keys import civil_date, day_bounds
from aurapulse.domain.habit import Habit
from aurapulse.domain.recurrence import FREQUENCIES, rule_from_selector, selector_from_rule
from aurapulse.domain.todo import Todo
from aurapulse.infrastructure.db.models import HabitRecord, PushSubscription, TodoRecord

logger = logging.getLogger(__name__)


def _as_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def habit_from_row(row: HabitRecord) -> Habit:
    return Habit(
        id=row.id,
        title=row.title,
        rule=rule_from_selector(row.frequency, row.schedule_selector or []),
        timezone=row.timezone,
        completion_date_keys=frozenset(row.completion_dates or []),
        skipped_date_keys=frozenset(row.skipped_dates or []),
        created_at=_as_utc(row.created_at),
        habit_type=row.habit_type,
        grace_misses_per_week=row.grace_misses or 0,
        context_tags=tuple(row.context_tags or []),
        trigger_after_habit_id=row.trigger_after_habit_id,
        archived_at=_as_utc(row.archived_at),
        last_notified_level=row.milestone_notified_level or 0,
    )


def todo_from_row(row: TodoRecord) -> Todo:
    status = row.status
    completed_at = _as_utc(row.completed_at)
    # legacy rows: completed without a timestamp read as pending
    if status == "completed" and completed_at is None:
        status = "pending"
    elif status != "completed":
        completed_at = None
    return Todo(
        id=row.id,
        title=row.title,
        status=status,
        priority=row.priority,
        scheduled_at=_as_utc(row.scheduled_at),
        completed_at=completed_at,
        created_at=_as_utc(row.created_at),
        skipped_at=_as_utc(row.skipped_at),
        archived_at=_as_utc(row.archived_at),
        tags=tuple(row.tags or []),
        context_tags=tuple(row.context_tags or []),
        description=row.description or "",
    )


class SnapshotRepository:
    def __init__(self, db: Session):
        self.db = db

    # -- habits -------------------------------------------------------------

    def _habit_row(self, user_id: str, habit_id: str) -> HabitRecord | None:
        return self.db.scalar(
            select(HabitRecord).where(HabitRecord.user_id == user_id, HabitRecord.id == habit_id)
        )

    def load_habits(self, user_id: str, include_archived: bool = False) -> list[Habit]:
        stmt = select(HabitRecord).where(HabitRecord.user_id == user_id)
        if not include_archived:
            stmt = stmt.where(HabitRecord.archived_at.is_(None))
        habits = []
        for row in self.db.scalars(stmt.order_by(HabitRecord.created_at, HabitRecord.id)):
            if row.frequency not in FREQUENCIES:
                logger.warning("Skipping habit %s with unknown frequency %r", row.id, row.frequency)
                continue
            habits.append(habit_from_row(row))
        return habits

    def get_habit(self, user_id: str, habit_id: str) -> Habit | None:
        row = self._habit_row(user_id, habit_id)
        if row is None or row.frequency not in FREQUENCIES:
            return None
        return habit_from_row(row)

    def add_habit(self, user_id: str, habit: Habit) -> None:
        row = HabitRecord(
            id=habit.id,
            user_id=user_id,
            title=habit.title,
            habit_type=habit.habit_type,
            frequency=habit.frequency,
            schedule_selector=selector_from_rule(habit.rule),
            timezone=habit.timezone,
            completion_dates=sorted(habit.completion_date_keys),
            skipped_dates=sorted(habit.skipped_date_keys),
            grace_misses=habit.grace_misses_per_week,
            context_tags=list(habit.context_tags),
            trigger_after_habit_id=habit.trigger_after_habit_id,
            milestone_notified_level=habit.last_notified_level,
            archived_at=_as_utc(habit.archived_at),
        )
        if habit.created_at is not None:
            row.created_at = _as_utc(habit.created_at)
        self.db.add(row)
        self.db.flush()

    def save_habit_history(self, user_id: str, habit: Habit) -> None:
        row = self._habit_row(user_id, habit.id)
        if row is None:
            raise LookupError(f"Habit {habit.id} not found")
        row.completion_dates = sorted(habit.completion_date_keys)
        row.skipped_dates = sorted(habit.skipped_date_keys)
        self.db.flush()

    def set_habit_archived(self, user_id: str, habit_id: str, archived_at: datetime | None) -> None:
        row = self._habit_row(user_id, habit_id)
        if row is None:
            raise LookupError(f"Habit {habit_id} not found")
        row.archived_at = _as_utc(archived_at)
        self.db.flush()

    def set_notified_level(self, user_id: str, habit_id: str, level: int) -> None:
        row = self._habit_row(user_id, habit_id)
        if row is None:
            raise LookupError(f"Habit {habit_id} not found")
        row.milestone_notified_level = level
        self.db.flush()

    # -- todos --------------------------------------------------------------

    def _todo_row(self, user_id: str, todo_id: str) -> TodoRecord | None:
        return self.db.scalar(
            select(TodoRecord).where(TodoRecord.user_id == user_id, TodoRecord.id == todo_id)
        )

    def load_todos(self, user_id: str) -> list[Todo]:
        stmt = (
            select(TodoRecord)
            .where(TodoRecord.user_id == user_id)
            .order_by(TodoRecord.created_at, TodoRecord.id)
        )
        return [todo_from_row(row) for row in self.db.scalars(stmt)]

    def get_todo(self, user_id: str, todo_id: str) -> Todo | None:
        row = self._todo_row(user_id, todo_id)
        return todo_from_row(row) if row is not None else None

    def load_due_today(self, user_id: str, now: datetime, tz: str | None = None) -> list[Todo]:
        """Pending, non-archived todos scheduled within today's local day."""
        start, end = day_bounds(civil_date(now, tz), tz)
        stmt = (
            select(TodoRecord)
            .where(
                TodoRecord.user_id == user_id,
                TodoRecord.status == "pending",
                TodoRecord.archived_at.is_(None),
                TodoRecord.scheduled_at >= _as_utc(start),
                TodoRecord.scheduled_at <= _as_utc(end),
            )
            .order_by(TodoRecord.scheduled_at, TodoRecord.id)
        )
        return [todo_from_row(row) for row in self.db.scalars(stmt)]

    def add_todo(self, user_id: str, todo: Todo) -> None:
        row = TodoRecord(
            id=todo.id,
            user_id=user_id,
            title=todo.title,
            description=todo.description or None,
            status=todo.status,
            priority=todo.priority,
            tags=list(todo.tags),
            context_tags=list(todo.context_tags),
            scheduled_at=_as_utc(todo.scheduled_at),
            completed_at=_as_utc(todo.completed_at),
            skipped_at=_as_utc(todo.skipped_at),
            archived_at=_as_utc(todo.archived_at),
        )
        if todo.created_at is not None:
            row.created_at = _as_utc(todo.created_at)
        self.db.add(row)
        self.db.flush()

    def save_todo_status(self, user_id: str, todo: Todo) -> None:
        row = self._todo_row(user_id, todo.id)
        if row is None:
            raise LookupError(f"Todo {todo.id} not found")
        row.status = todo.status
        row.completed_at = _as_utc(todo.completed_at)
        row.skipped_at = _as_utc(todo.skipped_at)
        self.db.flush()

    # -- push ---------------------------------------------------------------

    def list_push_user_ids(self) -> list[str]:
        stmt = select(PushSubscription.user_id).distinct().order_by(PushSubscription.user_id)
        return list(self.db.scalars(stmt))
