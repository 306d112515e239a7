"""Admin API routes for a client's training days.

Placing a video on a day grants the client access to it; taking it off
the last day that holds it revokes that access again.
"""

import logging
import sqlite3
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import Field

from ..dependencies import get_training_day_repository, get_user_repository
from ..middleware.auth import CurrentUser, require_admin
from ..responses import success
from ..schemas import CamelModel
from ...db.repositories import TrainingDayRepository, UserRepository
from ...db.repositories.training_day_repository import DuplicateAssignmentError
from ...exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users/{user_id}/training-days", tags=["training-days"])


class CreateDayRequest(CamelModel):
    day_number: int = Field(ge=1)
    day_name: Optional[str] = None


class RenameDayRequest(CamelModel):
    day_name: str = Field(min_length=1)


class VideoOrder(CamelModel):
    video_id: int
    order_index: int = Field(ge=0)


class ReorderRequest(CamelModel):
    video_orders: List[VideoOrder]


@router.get("")
async def list_training_days(
    user_id: int,
    current_user: CurrentUser = Depends(require_admin),
    days: TrainingDayRepository = Depends(get_training_day_repository),
):
    return success([day.to_dict() for day in days.list_for_user(user_id)])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_training_day(
    user_id: int,
    day_request: CreateDayRequest,
    current_user: CurrentUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
    days: TrainingDayRepository = Depends(get_training_day_repository),
):
    if users.get_active_by_id(user_id) is None:
        raise NotFoundError("User", user_id)
    try:
        day = days.create(user_id, day_request.day_number, day_request.day_name)
    except sqlite3.IntegrityError:
        raise ConflictError(f"Training day {day_request.day_number} already exists for this user")
    return success(day.to_dict(), message="Training day created successfully")


@router.put("/{day_id}")
async def rename_training_day(
    user_id: int,
    day_id: int,
    rename_request: RenameDayRequest,
    current_user: CurrentUser = Depends(require_admin),
    days: TrainingDayRepository = Depends(get_training_day_repository),
):
    day = days.rename(user_id, day_id, rename_request.day_name)
    if day is None:
        raise NotFoundError("Training day", day_id)
    return success(day.to_dict(), message="Training day updated successfully")


@router.delete("/{day_id}")
async def delete_training_day(
    user_id: int,
    day_id: int,
    current_user: CurrentUser = Depends(require_admin),
    days: TrainingDayRepository = Depends(get_training_day_repository),
):
    """Delete a day; videos no other day holds lose their permission."""
    revoked = days.delete(user_id, day_id)
    if revoked is None:
        raise NotFoundError("Training day", day_id)
    logger.info(f"Deleted training day {day_id} of user {user_id}, revoked videos {revoked}")
    return success({"revokedVideoIds": revoked}, message="Training day deleted successfully")


@router.post("/{day_id}/videos/{video_id}")
async def add_video_to_day(
    user_id: int,
    day_id: int,
    video_id: int,
    current_user: CurrentUser = Depends(require_admin),
    days: TrainingDayRepository = Depends(get_training_day_repository),
):
    try:
        assignment, permission = days.add_video(user_id, day_id, video_id, current_user.user_id)
    except LookupError as e:
        raise NotFoundError(str(e.args[0]), message=f"{e.args[0]} not found")
    except DuplicateAssignmentError as e:
        raise ValidationError(str(e))

    return success(
        {
            "assignmentId": assignment["id"],
            "dayId": day_id,
            "videoId": video_id,
            "orderIndex": assignment["order_index"],
            "permission": permission,
        },
        message="Video assigned to training day successfully",
    )


@router.put("/{day_id}/videos/reorder")
async def reorder_day_videos(
    user_id: int,
    day_id: int,
    reorder_request: ReorderRequest,
    current_user: CurrentUser = Depends(require_admin),
    days: TrainingDayRepository = Depends(get_training_day_repository),
):
    orders = [(item.video_id, item.order_index) for item in reorder_request.video_orders]
    updated = days.reorder(user_id, day_id, orders)
    if updated is None:
        raise NotFoundError("Training day", day_id)
    return success({"updated": updated}, message="Videos reordered successfully")


@router.delete("/{day_id}/videos/{video_id}")
async def remove_video_from_day(
    user_id: int,
    day_id: int,
    video_id: int,
    current_user: CurrentUser = Depends(require_admin),
    days: TrainingDayRepository = Depends(get_training_day_repository),
):
    revoked = days.remove_video(user_id, day_id, video_id)
    if revoked is None:
        raise NotFoundError("Assignment", message="Video not assigned to this training day")
    return success(
        {"permissionRevoked": revoked},
        message="Video removed from training day successfully",
    )
