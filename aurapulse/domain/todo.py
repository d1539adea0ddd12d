"""
Todo domain record.

Status is three-valued (pending / completed / skipped). completed_at is set
if and only if status == "completed"; every transition away from completed
clears it.
"""
from dataclasses import dataclass, replace
from datetime import datetime

TODO_STATUSES = ("pending", "completed", "skipped")
PRIORITIES = ("low", "medium", "high")
# high sorts first when ascending
PRIORITY_RANK = {"high": 1, "medium": 2, "low": 3}


class TodoValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Todo:
    id: str
    title: str
    status: str = "pending"
    priority: str = "medium"
    scheduled_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    skipped_at: datetime | None = None
    archived_at: datetime | None = None
    tags: tuple[str, ...] = ()
    context_tags: tuple[str, ...] = ()
    description: str = ""

    def __post_init__(self):
        if self.status not in TODO_STATUSES:
            raise TodoValidationError(f"Invalid status: {self.status}")
        if self.priority not in PRIORITIES:
            raise TodoValidationError(f"Invalid priority: {self.priority}")
        if (self.completed_at is not None) != (self.status == "completed"):
            raise TodoValidationError("completed_at must be set exactly when status is completed")
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "context_tags", tuple(self.context_tags))

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None


def toggle_completion(todo: Todo, now: datetime) -> Todo:
    """completed -> pending, anything else -> completed at `now`."""
    if todo.status == "completed":
        return replace(todo, status="pending", completed_at=None)
    return replace(todo, status="completed", completed_at=now, skipped_at=None)


def skip(todo: Todo, now: datetime) -> Todo:
    return replace(todo, status="skipped", completed_at=None, skipped_at=now)


def reopen(todo: Todo) -> Todo:
    return replace(todo, status="pending", completed_at=None, skipped_at=None)
