"""Check-in reminder job.

Emails every client whose plan is at least a week old and who has not
checked in for two weeks.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..db.database import PortalDatabase
from ..db.repositories.feedback_repository import FeedbackRepository
from .email_service import EmailService, get_email_service

logger = logging.getLogger(__name__)

PDF_AGE_DAYS = 7
FEEDBACK_GAP_DAYS = 14


@dataclass
class ReminderReport:
    """Outcome of one reminder run."""

    candidates: int = 0
    sent: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "candidates": self.candidates,
            "sent": len(self.sent),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
        }


class ReminderService:
    """Finds clients due a check-in and emails them."""

    def __init__(self, db: PortalDatabase, email_service: Optional[EmailService] = None):
        self.feedbacks = FeedbackRepository(db)
        self.email_service = email_service or get_email_service()

    def run(self, dry_run: bool = False) -> ReminderReport:
        report = ReminderReport()
        candidates = self.feedbacks.reminder_candidates(PDF_AGE_DAYS, FEEDBACK_GAP_DAYS)
        report.candidates = len(candidates)
        logger.info(f"Check-in reminders: {len(candidates)} candidate(s)")

        for candidate in candidates:
            user_id = candidate["user_id"]
            if not candidate["email"]:
                logger.warning(f"No email address for user {user_id}, skipping reminder")
                report.skipped.append(user_id)
                continue
            if dry_run:
                logger.info(f"[dry run] Would remind user {user_id}")
                report.skipped.append(user_id)
                continue
            if self.email_service.send_checkin_reminder(candidate["email"], candidate["name"]):
                report.sent.append(user_id)
            else:
                report.failed.append(user_id)

        logger.info(
            f"Check-in reminders done: {len(report.sent)} sent, "
            f"{len(report.failed)} failed, {len(report.skipped)} skipped"
        )
        return report
