"""
SQLAlchemy ORM models (habit / todo documents and push subscriptions)
"""
from datetime import datetime

from sqlalchemy import JSON, TIMESTAMP, Integer, SmallInteger, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from aurapulse.infrastructure.db.session import Base


class HabitRecord(Base):
    """Habit document with its full completion / skip history"""
    __tablename__ = "habits"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    habit_type: Mapped[str] = mapped_column(String(16), nullable=False, server_default="positive")
    frequency: Mapped[str] = mapped_column(String(16), nullable=False)  # daily/weekly/monthly/quarterly/half-yearly/yearly
    schedule_selector: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # weekdays, [day] or [month, day]
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)

    completion_dates: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # ["YYYY-MM-DD", ...]
    skipped_dates: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    grace_misses: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default="0")
    context_tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    trigger_after_habit_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    milestone_notified_level: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    archived_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)


class TodoRecord(Base):
    """One-off todo"""
    __tablename__ = "todos"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending")  # pending/completed/skipped
    priority: Mapped[str] = mapped_column(String(8), nullable=False, server_default="medium")  # low/medium/high
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    context_tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    scheduled_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True, index=True)
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    skipped_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    archived_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class PushSubscription(Base):
    """Web Push subscription for a user device."""
    __tablename__ = "push_subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    endpoint: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    p256dh: Mapped[str] = mapped_column(Text, nullable=False)
    auth: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
