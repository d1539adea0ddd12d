"""Todo status use cases"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from aurapulse.domain.todo import Todo, TodoValidationError, reopen, skip, toggle_completion
from aurapulse.infrastructure.db.repository import SnapshotRepository

logger = logging.getLogger(__name__)


class _TodoUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SnapshotRepository(db)

    def _load(self, user_id: str, todo_id: str) -> Todo:
        todo = self.repo.get_todo(user_id, todo_id)
        if todo is None:
            raise TodoValidationError(f"Todo {todo_id} not found")
        if todo.is_archived:
            raise TodoValidationError("Restore the todo to update it")
        return todo

    def _save(self, user_id: str, todo: Todo) -> Todo:
        self.repo.save_todo_status(user_id, todo)
        self.db.commit()
        logger.debug("Todo %s -> %s", todo.id, todo.status)
        return todo


class ToggleTodoStatusUseCase(_TodoUseCase):
    """completed -> pending, pending / skipped -> completed now."""
    def execute(self, user_id: str, todo_id: str, now: datetime | None = None) -> Todo:
        todo = self._load(user_id, todo_id)
        return self._save(user_id, toggle_completion(todo, now or datetime.now(timezone.utc)))


class SkipTodoUseCase(_TodoUseCase):
    def execute(self, user_id: str, todo_id: str, now: datetime | None = None) -> Todo:
        todo = self._load(user_id, todo_id)
        return self._save(user_id, skip(todo, now or datetime.now(timezone.utc)))


class ReopenTodoUseCase(_TodoUseCase):
    def execute(self, user_id: str, todo_id: str) -> Todo:
        return self._save(user_id, reopen(self._load(user_id, todo_id)))
