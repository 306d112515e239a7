"""Client check-in (feedback) API routes."""

import logging
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query, status
from pydantic import Field

from ..dependencies import get_feedback_repository, get_pdf_repository, get_user_repository
from ..middleware.auth import CurrentUser, get_current_user, require_admin
from ..responses import success
from ..schemas import CamelModel
from ...db.repositories import FeedbackRepository, PdfRepository, UserRepository
from ...db.schema import DEFAULT_TRAINER_NAME
from ...exceptions import NotFoundError
from ...services.email_service import EmailService, get_email_service
from ...services.feedback_service import evaluate_feedback_window

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/feedback", tags=["feedback"])


class FeedbackRequest(CamelModel):
    """A weekly check-in as submitted from the client dashboard."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")
    energy_level: Literal["high", "medium", "low"]
    workouts_completed: Literal["all", "almost_all", "few_or_none"]
    meal_plan_followed: Literal["completely", "mostly", "sometimes", "no"]
    sleep_quality: Literal["excellent", "good", "fair", "poor"]
    physical_discomfort: Literal["none", "minor", "significant"]
    discomfort_details: Optional[str] = Field(default=None, max_length=2000)
    motivation_level: Literal["very_high", "good", "medium", "low"]
    weekly_highlights: Optional[str] = Field(default=None, max_length=2000)
    current_weight: Optional[float] = Field(default=None, gt=0, lt=500)


class MarkSeenRequest(CamelModel):
    trainer_id: Optional[int] = None


def _notify_admin(email_service: EmailService, feedback: Dict[str, Any], trainer_name: str) -> None:
    try:
        if not email_service.send_feedback_notification(feedback, trainer_name=trainer_name):
            logger.warning(f"Feedback notification for feedback {feedback['id']} was not sent")
    except Exception:
        logger.exception(f"Feedback notification for feedback {feedback['id']} failed")


@router.get("/my-feedbacks")
async def list_my_feedbacks(
    current_user: CurrentUser = Depends(get_current_user),
    feedbacks: FeedbackRepository = Depends(get_feedback_repository),
):
    return success(feedbacks.list_for_user(current_user.user_id))


@router.get("/should-show")
async def should_show_feedback(
    current_user: CurrentUser = Depends(get_current_user),
    pdfs: PdfRepository = Depends(get_pdf_repository),
    feedbacks: FeedbackRepository = Depends(get_feedback_repository),
):
    """Whether the dashboard should offer the check-in form right now."""
    latest = feedbacks.latest_for_user(current_user.user_id)
    window = evaluate_feedback_window(
        pdfs.last_changed_at(current_user.user_id),
        latest["created_at"] if latest else None,
    )
    return success(window.to_dict())


@router.post("", status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    feedback_request: FeedbackRequest,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
    pdfs: PdfRepository = Depends(get_pdf_repository),
    feedbacks: FeedbackRepository = Depends(get_feedback_repository),
    email_service: EmailService = Depends(get_email_service),
):
    """Store a check-in against the current plan version and notify the trainer."""
    feedback = feedbacks.create(
        current_user.user_id,
        feedback_request.model_dump(),
        pdf_change_date=pdfs.last_changed_at(current_user.user_id),
    )

    user = users.get_by_id(current_user.user_id)
    trainer_name = users.get_trainer_name(user.trainer_id if user else None) or DEFAULT_TRAINER_NAME
    background_tasks.add_task(_notify_admin, email_service, feedback, trainer_name)

    return success(feedback, message="Feedback submitted successfully")


# ----------------------------------------------------------------------
# Admin
# ----------------------------------------------------------------------

@router.get("/admin/all")
async def list_all_feedbacks(
    trainer_id: Optional[int] = Query(default=None, alias="trainerId"),
    current_user: CurrentUser = Depends(require_admin),
    feedbacks: FeedbackRepository = Depends(get_feedback_repository),
):
    return success(feedbacks.list_all(trainer_id))


@router.get("/admin/user/{user_id}")
async def list_user_feedbacks(
    user_id: int,
    current_user: CurrentUser = Depends(require_admin),
    feedbacks: FeedbackRepository = Depends(get_feedback_repository),
):
    return success(feedbacks.list_for_user(user_id))


@router.get("/admin/unread-count")
async def unread_feedback_count(
    trainer_id: Optional[int] = Query(default=None, alias="trainerId"),
    current_user: CurrentUser = Depends(require_admin),
    feedbacks: FeedbackRepository = Depends(get_feedback_repository),
):
    return success({
        "unreadCount": feedbacks.unread_count(current_user.user_id, trainer_id),
        "lastSeenAt": feedbacks.last_seen_at(current_user.user_id, trainer_id),
    })


@router.post("/admin/mark-seen")
async def mark_feedbacks_seen(
    seen_request: Optional[MarkSeenRequest] = Body(default=None),
    current_user: CurrentUser = Depends(require_admin),
    feedbacks: FeedbackRepository = Depends(get_feedback_repository),
):
    trainer_id = seen_request.trainer_id if seen_request else None
    last_seen = feedbacks.mark_seen(current_user.user_id, trainer_id)
    return success({"lastSeenAt": last_seen}, message="Feedbacks marked as seen")


@router.delete("/{feedback_id}")
async def delete_feedback(
    feedback_id: int,
    current_user: CurrentUser = Depends(require_admin),
    feedbacks: FeedbackRepository = Depends(get_feedback_repository),
):
    if not feedbacks.delete(feedback_id):
        raise NotFoundError("Feedback", feedback_id)
    logger.info(f"Admin {current_user.username} deleted feedback {feedback_id}")
    return success(None, message="Feedback deleted successfully")
