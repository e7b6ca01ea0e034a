"""Background cron jobs for maintenance tasks."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from taskshare.db import get_sessionmaker
from taskshare.services.open_tasks import delete_expired_dates, delete_open_tasks_without_dates
from taskshare.services.taskers import delete_expired_availability

logger = logging.getLogger(__name__)


def run_daily_cleanup(db: Session) -> dict[str, int]:
    """Drop past open-task dates, open tasks left without dates and past tasker availability."""

    summary = {
        "expired_dates": delete_expired_dates(db),
        "open_tasks_without_dates": delete_open_tasks_without_dates(db),
        "expired_availability": delete_expired_availability(db),
    }
    logger.info("Daily cleanup finished", extra=summary)
    return summary


def daily_cleanup_once() -> None:
    """Scheduler entry point; opens its own session."""

    db: Session = get_sessionmaker()()
    try:
        run_daily_cleanup(db)
    except Exception:  # noqa: BLE001
        db.rollback()
        logger.exception("Daily cleanup failed")
    finally:
        db.close()
