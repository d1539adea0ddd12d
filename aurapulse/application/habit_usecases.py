"""Habit use cases: create, toggle / skip a day, archive and restore"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from aurapulse.domain.date_keys import date_key
from aurapulse.domain.habit import (
    Habit, HabitValidationError, new_habit, skip_day, toggle_completion,
)
from aurapulse.domain.milestones import LevelCheck, check_level_up
from aurapulse.infrastructure.db.repository import SnapshotRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HabitToggleResult:
    habit: Habit
    completed: bool
    level: LevelCheck


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _load(repo: SnapshotRepository, user_id: str, habit_id: str) -> Habit:
    habit = repo.get_habit(user_id, habit_id)
    if habit is None:
        raise HabitValidationError(f"Habit {habit_id} not found")
    return habit


class CreateHabitUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SnapshotRepository(db)

    def execute(
        self,
        user_id: str,
        title: str,
        frequency: str,
        schedule_selector: list[int] | None = None,
        timezone_name: str | None = None,
        habit_type: str = "positive",
        grace_misses_per_week: int = 0,
        context_tags: list[str] | None = None,
        trigger_after_habit_id: str | None = None,
        now: datetime | None = None,
    ) -> str:
        habit = new_habit(
            habit_id=uuid.uuid4().hex,
            title=title,
            frequency=frequency,
            schedule_selector=schedule_selector,
            timezone=timezone_name,
            created_at=now or _now(),
            habit_type=habit_type,
            grace_misses_per_week=grace_misses_per_week,
            context_tags=context_tags or (),
            trigger_after_habit_id=trigger_after_habit_id,
        )
        self.repo.add_habit(user_id, habit)
        self.db.commit()
        logger.info("Habit %s created for user %s (%s)", habit.id, user_id, habit.frequency)
        return habit.id


class ToggleHabitCompletionUseCase:
    """Toggle a day (today by default) and record a milestone level-up once."""
    def __init__(self, db: Session):
        self.db = db
        self.repo = SnapshotRepository(db)

    def execute(
        self,
        user_id: str,
        habit_id: str,
        day_key: str | None = None,
        now: datetime | None = None,
    ) -> HabitToggleResult:
        habit = _load(self.repo, user_id, habit_id)
        key = day_key or date_key(now or _now(), habit.timezone)
        updated = toggle_completion(habit, key)
        self.repo.save_habit_history(user_id, updated)

        level = check_level_up(updated.total_completions, habit.last_notified_level)
        if level.leveled_up:
            self.repo.set_notified_level(user_id, habit_id, level.progress.level)
            logger.info(
                "Habit %s reached milestone level %d (%d completions)",
                habit_id, level.progress.level, updated.total_completions,
            )
        self.db.commit()
        return HabitToggleResult(
            habit=updated,
            completed=key in updated.completion_date_keys,
            level=level,
        )


class SkipHabitDayUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SnapshotRepository(db)

    def execute(self, user_id: str, habit_id: str, day_key: str | None = None,
                now: datetime | None = None) -> Habit:
        habit = _load(self.repo, user_id, habit_id)
        key = day_key or date_key(now or _now(), habit.timezone)
        updated = skip_day(habit, key)
        self.repo.save_habit_history(user_id, updated)
        self.db.commit()
        return updated


class ArchiveHabitUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SnapshotRepository(db)

    def execute(self, user_id: str, habit_id: str, now: datetime | None = None) -> None:
        habit = _load(self.repo, user_id, habit_id)
        if habit.is_archived:
            raise HabitValidationError("Habit is already archived")
        self.repo.set_habit_archived(user_id, habit_id, now or _now())
        self.db.commit()


class RestoreHabitUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SnapshotRepository(db)

    def execute(self, user_id: str, habit_id: str) -> None:
        habit = _load(self.repo, user_id, habit_id)
        if not habit.is_archived:
            raise HabitValidationError("Habit is not archived")
        self.repo.set_habit_archived(user_id, habit_id, None)
        self.db.commit()
