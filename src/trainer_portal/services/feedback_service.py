"""Check-in scheduling rules.

The dashboard offers the check-in form once a plan has settled in:

1. no plan uploaded -> hidden (``no_pdf``)
2. plan changed less than 7 days ago -> hidden (``too_soon``)
3. a check-in already filed against this plan version less than 14 days
   ago -> hidden (``too_soon_since_last``)
4. otherwise shown
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from ..utils.dates import parse_db_timestamp, to_iso, utcnow

PDF_SETTLE_PERIOD = timedelta(days=7)
FEEDBACK_INTERVAL = timedelta(days=14)

REASON_NO_PDF = "no_pdf"
REASON_TOO_SOON = "too_soon"
REASON_TOO_SOON_SINCE_LAST = "too_soon_since_last"


@dataclass
class FeedbackWindow:
    should_show: bool
    reason: Optional[str] = None
    pdf_updated_at: Optional[datetime] = None
    last_feedback_at: Optional[datetime] = None
    next_available_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"shouldShow": self.should_show}
        if self.reason:
            data["reason"] = self.reason
        if self.pdf_updated_at:
            data["pdfUpdatedAt"] = to_iso(self.pdf_updated_at)
        if self.last_feedback_at:
            data["lastFeedbackAt"] = to_iso(self.last_feedback_at)
        if self.next_available_at:
            data["nextAvailableAt"] = to_iso(self.next_available_at)
        return data


def evaluate_feedback_window(
    pdf_updated_at: Optional[str],
    last_feedback_at: Optional[str],
    now: Optional[datetime] = None,
) -> FeedbackWindow:
    """Decide whether the check-in form should be offered right now.

    Args:
        pdf_updated_at: When the user's plan was last uploaded or replaced
        last_feedback_at: When the user last checked in, if ever
        now: Reference time (UTC); defaults to the current time
    """
    now = now or utcnow()
    pdf_changed = parse_db_timestamp(pdf_updated_at)
    if pdf_changed is None:
        return FeedbackWindow(should_show=False, reason=REASON_NO_PDF)

    if now - pdf_changed < PDF_SETTLE_PERIOD:
        return FeedbackWindow(
            should_show=False,
            reason=REASON_TOO_SOON,
            pdf_updated_at=pdf_changed,
            next_available_at=pdf_changed + PDF_SETTLE_PERIOD,
        )

    last_feedback = parse_db_timestamp(last_feedback_at)
    if (
        last_feedback is not None
        and last_feedback > pdf_changed
        and now - last_feedback < FEEDBACK_INTERVAL
    ):
        return FeedbackWindow(
            should_show=False,
            reason=REASON_TOO_SOON_SINCE_LAST,
            pdf_updated_at=pdf_changed,
            last_feedback_at=last_feedback,
            next_available_at=last_feedback + FEEDBACK_INTERVAL,
        )

    return FeedbackWindow(
        should_show=True,
        pdf_updated_at=pdf_changed,
        last_feedback_at=last_feedback,
    )
