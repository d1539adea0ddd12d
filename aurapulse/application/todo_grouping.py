"""
Todo list view: filter, bucket by date, order buckets, order items.

Pipeline (re-run end to end on every filter/sort change):
  1. Filter: status, priority, date preset (on scheduled_at), context tag
  2. Bucket by active date (completed_at when sorting by completion, else
     scheduled_at); undated todos go to a trailing bucket sorted by title
  3. Order buckets: section rank, then anchor day × direction
  4. Order items inside a bucket by the sort key × direction

Section ranks:
  0  Today
  1  Tomorrow
  2  Later · DD/MM/YYYY - Ddd
  3  overdue, titled DD/MM/YYYY - Ddd
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from aurapulse.domain.date_keys import civil_date
from aurapulse.domain.todo import PRIORITY_RANK, Todo

ALL = "all"
UNCATEGORIZED_LABEL = "Uncategorized"
TODAY_TITLE = "Today"
TOMORROW_TITLE = "Tomorrow"
LATER_PREFIX = "Later · "
UNSCHEDULED_TITLE = "Unscheduled"
NO_COMPLETION_TITLE = "No completion date"

RANK_TODAY = 0
RANK_TOMORROW = 1
RANK_LATER = 2
RANK_OVERDUE = 3

WEEK_PRESET_DAYS = 7
WEEKDAY_SHORT = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

StatusFilter = Literal["all", "pending", "completed", "skipped"]
PriorityFilter = Literal["all", "low", "medium", "high"]
SortKey = Literal["scheduled", "completed", "priority", "created", "manual"]
SortOrder = Literal["asc", "desc"]
DatePreset = Literal["all", "today", "tomorrow", "week", "spillover", "upcoming", "custom"]
QuickFilter = Literal["all", "today", "completed", "flagged"]


class TodoFilters(BaseModel):
    """Filter / sort controls of the todo list."""
    model_config = ConfigDict(frozen=True)

    status: StatusFilter = "pending"
    priority: PriorityFilter = "all"
    sort_by: SortKey = "scheduled"
    sort_order: SortOrder = "asc"
    date_preset: DatePreset = "all"
    selected_date: date | None = None  # custom preset only
    context_tag: str = ALL  # "all", a tag, or UNCATEGORIZED_LABEL

    @field_validator("selected_date", mode="before")
    @classmethod
    def empty_date_is_none(cls, v):
        """The date picker sends "" when cleared."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def direction(self) -> int:
        return 1 if self.sort_order == "asc" else -1

    def normalized(self) -> "TodoFilters":
        """Sorting by completion date only makes sense for completed todos."""
        if self.sort_by == "completed" and self.status != "completed":
            return self.model_copy(update={"sort_by": "scheduled"})
        return self


DEFAULT_FILTERS = TodoFilters()


@dataclass(frozen=True)
class TodoGroup:
    title: str
    items: tuple[Todo, ...]


@dataclass
class _Bucket:
    title: str
    rank: int
    anchor: date
    items: list[Todo] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Stage 1: filter
# ---------------------------------------------------------------------------

def matches_date_preset(
    todo: Todo,
    preset: str,
    now: datetime,
    tz: str | None = None,
    selected_date: date | None = None,
) -> bool:
    """Date preset predicate on scheduled_at. Unscheduled todos only pass "all"."""
    if todo.scheduled_at is None:
        return preset == ALL

    scheduled = civil_date(todo.scheduled_at, tz)
    today = civil_date(now, tz)
    if preset == "today":
        return scheduled == today
    if preset == "tomorrow":
        return scheduled == today + timedelta(days=1)
    if preset == "week":
        return today <= scheduled <= today + timedelta(days=WEEK_PRESET_DAYS - 1)
    if preset == "spillover":
        return scheduled < today
    if preset == "upcoming":
        return scheduled > today
    if preset == "custom":
        return selected_date is None or scheduled == selected_date
    return True


def _matches_context_tag(todo: Todo, tag: str) -> bool:
    if tag == ALL:
        return True
    if tag == UNCATEGORIZED_LABEL:
        return not todo.context_tags
    return tag in todo.context_tags


def filter_todos(todos: list[Todo], filters: TodoFilters, now: datetime, tz: str | None = None) -> list[Todo]:
    """Non-archived todos matching every filter, in input order."""
    return [
        t for t in todos
        if not t.is_archived
        and (filters.status == ALL or t.status == filters.status)
        and (filters.priority == ALL or t.priority == filters.priority)
        and matches_date_preset(t, filters.date_preset, now, tz, filters.selected_date)
        and _matches_context_tag(t, filters.context_tag)
    ]


# ---------------------------------------------------------------------------
# Stage 2-4: bucket and order
# ---------------------------------------------------------------------------

def format_group_title(d: date) -> str:
    return f"{d.day:02d}/{d.month:02d}/{d.year} - {WEEKDAY_SHORT[d.weekday()]}"


def _section(day: date, today: date) -> tuple[int, str]:
    tomorrow = today + timedelta(days=1)
    if day == today:
        return RANK_TODAY, TODAY_TITLE
    if day == tomorrow:
        return RANK_TOMORROW, TOMORROW_TITLE
    if day > tomorrow:
        return RANK_LATER, LATER_PREFIX + format_group_title(day)
    return RANK_OVERDUE, format_group_title(day)


def _active_date(todo: Todo, sort_by: str) -> datetime | None:
    return todo.completed_at if sort_by == "completed" else todo.scheduled_at


def _timestamp(dt: datetime | None) -> float:
    if dt is None:
        return 0.0
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def _bucket_order(bucket: _Bucket, direction: int) -> tuple[int, int]:
    if bucket.rank == RANK_TODAY:
        return bucket.rank, 0
    return bucket.rank, bucket.anchor.toordinal() * direction


def sort_items(items: list[Todo], sort_by: str, direction: int) -> list[Todo]:
    """Order items of one bucket. "manual" keeps the given order; sorting is stable."""
    if sort_by == "manual":
        return list(items)
    if sort_by == "priority":
        return sorted(items, key=lambda t: PRIORITY_RANK[t.priority] * direction)
    if sort_by == "created":
        return sorted(items, key=lambda t: _timestamp(t.created_at) * direction)
    return sorted(items, key=lambda t: _timestamp(_active_date(t, sort_by)) * direction)


def group_todos(
    todos: list[Todo],
    filters: TodoFilters,
    now: datetime,
    tz: str | None = None,
) -> list[TodoGroup]:
    """Build the grouped todo view for the given filters as of `now`."""
    filtered = filter_todos(todos, filters, now, tz)
    if not filtered:
        return []

    today = civil_date(now, tz)
    direction = filters.direction
    buckets: dict[str, _Bucket] = {}
    undated: list[Todo] = []

    for todo in filtered:
        active = _active_date(todo, filters.sort_by)
        if active is None:
            undated.append(todo)
            continue
        day = civil_date(active, tz)
        rank, title = _section(day, today)
        bucket = buckets.get(title)
        if bucket is None:
            bucket = buckets[title] = _Bucket(title=title, rank=rank, anchor=day)
        bucket.items.append(todo)

    ordered = sorted(buckets.values(), key=lambda b: _bucket_order(b, direction))
    groups = [
        TodoGroup(title=b.title, items=tuple(sort_items(b.items, filters.sort_by, direction)))
        for b in ordered
    ]

    if undated:
        undated.sort(key=lambda t: t.title.casefold())
        title = NO_COMPLETION_TITLE if filters.sort_by == "completed" else UNSCHEDULED_TITLE
        groups.append(TodoGroup(title=title, items=tuple(undated)))

    return groups


# ---------------------------------------------------------------------------
# Filter controls
# ---------------------------------------------------------------------------

def context_tag_options(todos: list[Todo]) -> list[str]:
    """Sorted context tags of active todos; UNCATEGORIZED_LABEL first if any todo has none."""
    active = [t for t in todos if not t.is_archived]
    options = sorted({tag for t in active for tag in t.context_tags})
    if any(not t.context_tags for t in active):
        options.insert(0, UNCATEGORIZED_LABEL)
    return options


def apply_quick_filter(filters: TodoFilters, value: QuickFilter) -> TodoFilters:
    """Quick-filter chips: each one resets status/priority/date preset."""
    if value == "today":
        update = {"status": "pending", "priority": ALL, "date_preset": "today"}
    elif value == "completed":
        return filters.model_copy(update={"status": "completed", "priority": ALL, "date_preset": ALL})
    elif value == "flagged":
        update = {"status": ALL, "priority": "high", "date_preset": ALL}
    else:
        update = {"status": ALL, "priority": ALL, "date_preset": ALL}
    if filters.sort_by == "completed":
        update["sort_by"] = "scheduled"
    return filters.model_copy(update=update)


def empty_state_label(filters: TodoFilters) -> str:
    if filters.date_preset == "today":
        return "Nothing due today."
    if filters.status == "completed":
        return "No completed tasks yet."
    if filters.status == "skipped":
        return "No skipped tasks yet."
    if filters.priority == "high":
        return "No flagged tasks right now."
    return "No todos yet. Add one with the + button."
