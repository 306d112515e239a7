"""Daily check-in reminder scheduler using APScheduler.

Runs the reminder job once a day at a configurable hour (UTC). Disabled
unless CHECKIN_REMINDERS_ENABLED is set.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from ..config import get_settings
from ..db.database import PortalDatabase
from .reminder_service import ReminderReport, ReminderService

logger = logging.getLogger(__name__)

JOB_ID = "daily_checkin_reminders"


class ReminderScheduler:
    """Manages the scheduled check-in reminder job.

    Usage:
        scheduler = ReminderScheduler(db)
        scheduler.start()
        # ... app runs ...
        scheduler.stop()
    """

    def __init__(self, db: PortalDatabase, reminder_service: Optional[ReminderService] = None):
        self.reminder_service = reminder_service or ReminderService(db)
        self.scheduler: Optional[AsyncIOScheduler] = None
        self._is_running = False
        self._last_report: Optional[ReminderReport] = None

    @property
    def is_running(self) -> bool:
        return self._is_running and self.scheduler is not None

    @property
    def last_report(self) -> Optional[ReminderReport]:
        return self._last_report

    def start(self) -> None:
        """Start the scheduler with the daily reminder job."""
        if self._is_running:
            logger.warning("Reminder scheduler is already running")
            return

        settings = get_settings()
        if not settings.checkin_reminders_enabled:
            logger.info("Check-in reminders are disabled in configuration")
            return

        self.scheduler = AsyncIOScheduler()
        self.scheduler.add_job(
            self._run_reminders,
            CronTrigger(hour=settings.checkin_reminder_hour, minute=0),
            id=JOB_ID,
            name="Daily Check-in Reminders",
            replace_existing=True,
            max_instances=1,
        )
        self.scheduler.start()
        self._is_running = True
        logger.info(
            f"Reminder scheduler started (daily at {settings.checkin_reminder_hour}:00 UTC)"
        )

    def stop(self) -> None:
        """Gracefully shutdown the scheduler."""
        if not self._is_running or self.scheduler is None:
            return

        logger.info("Shutting down reminder scheduler...")
        self.scheduler.shutdown(wait=True)
        self._is_running = False
        self.scheduler = None

    async def _run_reminders(self) -> None:
        """Scheduled job body; SMTP is blocking, so it runs in a worker thread."""
        logger.info("Starting scheduled check-in reminders")
        try:
            self._last_report = await asyncio.to_thread(self.reminder_service.run)
        except Exception:
            # Next run is tomorrow regardless
            logger.exception("Scheduled check-in reminders failed")

    def get_next_run_time(self) -> Optional[datetime]:
        if not self.is_running or self.scheduler is None:
            return None
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None


_reminder_scheduler: Optional[ReminderScheduler] = None


def get_reminder_scheduler(db: PortalDatabase) -> ReminderScheduler:
    """Get or create the global reminder scheduler instance."""
    global _reminder_scheduler
    if _reminder_scheduler is None:
        _reminder_scheduler = ReminderScheduler(db)
    return _reminder_scheduler


def shutdown_reminder_scheduler() -> None:
    """Shutdown the global reminder scheduler instance if running."""
    global _reminder_scheduler
    if _reminder_scheduler is not None:
        _reminder_scheduler.stop()
        _reminder_scheduler = None
