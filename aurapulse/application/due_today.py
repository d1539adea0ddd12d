"""
Due-today push: one notification per user listing the pending todos
scheduled for the current local day.

  title: "Due today: 3 tasks"
  body:  "Pay rent, Call mom, Buy milk +2 more"
  url:   "/todos"
"""
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from aurapulse.application.push_service import send_push_to_user
from aurapulse.application.todo_grouping import TodoFilters, filter_todos
from aurapulse.config import get_settings
from aurapulse.domain.todo import Todo
from aurapulse.infrastructure.db.repository import SnapshotRepository

logger = logging.getLogger(__name__)

PREVIEW_TITLES = 3
FALLBACK_BODY = "Open Aura Pulse to review today's schedule."
TODOS_URL = "/todos"

_DUE_TODAY = TodoFilters(status="pending", priority="all", date_preset="today")


def build_due_today_payload(todos: list[Todo], now: datetime, tz: str | None = None) -> dict | None:
    """Push payload for the pending todos due today, or None when nothing is due."""
    due = filter_todos(todos, _DUE_TODAY, now, tz)
    if not due:
        return None

    count = len(due)
    titles = [t.title.strip() for t in due if t.title.strip()][:PREVIEW_TITLES]
    body = ", ".join(titles)
    if body and count > len(titles):
        body += f" +{count - len(titles)} more"

    return {
        "title": f"Due today: {count} task{'s' if count != 1 else ''}",
        "body": body or FALLBACK_BODY,
        "url": TODOS_URL,
    }


def send_due_today_notifications(db: Session, now: datetime | None = None) -> int:
    """Notify every user with a push subscription. Returns the number of users notified."""
    now = now or datetime.now(timezone.utc)
    tz = get_settings().TIMEZONE or None
    repo = SnapshotRepository(db)

    notified = 0
    for user_id in repo.list_push_user_ids():
        try:
            payload = build_due_today_payload(repo.load_due_today(user_id, now, tz), now, tz)
            if payload is None:
                continue
            if send_push_to_user(db, user_id, payload):
                notified += 1
        except Exception:
            logger.exception("Due-today push failed for user %s", user_id)
            db.rollback()

    logger.info("Due-today push: %d user(s) notified", notified)
    return notified
