"""
Background scheduler.

Jobs:
  - Due-today push (daily at DUE_TODAY_HOUR_UTC, 06:00 UTC by default)
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from aurapulse.config import get_settings

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True)


def _run_due_today():
    from aurapulse.infrastructure.db.session import get_session_factory
    from aurapulse.application.due_today import send_due_today_notifications

    Session = get_session_factory()
    db = Session()
    try:
        send_due_today_notifications(db)
    except Exception:
        logger.exception("Due-today push job failed")
    finally:
        db.close()


def start_scheduler():
    """Start the background scheduler with all periodic jobs."""
    hour = get_settings().DUE_TODAY_HOUR_UTC
    scheduler.add_job(
        _run_due_today,
        CronTrigger(hour=hour, minute=0, timezone="UTC"),
        id="due_today",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started: due_today (%02d:00 UTC)", hour)


def shutdown_scheduler():
    """Gracefully stop the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
