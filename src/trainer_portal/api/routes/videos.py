"""Client video API routes.

Clients only ever see videos they can effectively access. Every video
carries a short-lived signed URL; a URL that cannot be minted comes back
as null without failing the response.
"""

import asyncio
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request

from ..dependencies import get_training_day_repository, get_video_repository
from ..middleware.auth import CurrentUser, get_current_user
from ..responses import success
from ...db.repositories import TrainingDayRepository, Video, VideoRepository
from ...exceptions import NotFoundError
from ...services.storage_service import StorageService, get_storage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["videos"])


async def _with_signed_urls(storage: StorageService, videos: List[Video]) -> List[Dict[str, Any]]:
    urls = await storage.signed_urls(video.file_path for video in videos)
    return [{**video.to_dict(), "signedUrl": urls.get(video.file_path)} for video in videos]


@router.get("")
async def list_videos(
    current_user: CurrentUser = Depends(get_current_user),
    videos: VideoRepository = Depends(get_video_repository),
    storage: StorageService = Depends(get_storage_service),
):
    accessible = videos.list_accessible(current_user.user_id)
    return success(await _with_signed_urls(storage, accessible))


@router.get("/categories")
async def list_categories(
    current_user: CurrentUser = Depends(get_current_user),
    videos: VideoRepository = Depends(get_video_repository),
):
    return success(videos.list_accessible_categories(current_user.user_id))


@router.get("/category/{category}")
async def list_videos_in_category(
    category: str,
    current_user: CurrentUser = Depends(get_current_user),
    videos: VideoRepository = Depends(get_video_repository),
    storage: StorageService = Depends(get_storage_service),
):
    accessible = videos.list_accessible(current_user.user_id, category=category)
    return success(await _with_signed_urls(storage, accessible))


@router.get("/training-days")
async def list_my_training_days(
    current_user: CurrentUser = Depends(get_current_user),
    days: TrainingDayRepository = Depends(get_training_day_repository),
    storage: StorageService = Depends(get_storage_service),
):
    """The caller's training days, each with its ordered, watchable videos."""
    training_days = days.list_for_user(current_user.user_id, accessible_only=True)
    urls = await storage.signed_urls(
        video["file_path"] for day in training_days for video in day.videos
    )
    result = []
    for day in training_days:
        data = day.to_dict()
        data["videos"] = [
            {**video, "signedUrl": urls.get(video["file_path"])} for video in day.videos
        ]
        result.append(data)
    return success(result)


@router.get("/{video_id}")
async def get_video(
    video_id: int,
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    videos: VideoRepository = Depends(get_video_repository),
    storage: StorageService = Depends(get_storage_service),
):
    video = videos.get_accessible(current_user.user_id, video_id)
    if video is None:
        raise NotFoundError("Video", video_id, message="Video not found or access denied")

    try:
        videos.log_access(
            current_user.user_id,
            video_id,
            request.client.host if request.client else None,
            request.headers.get("user-agent"),
        )
    except Exception as e:
        logger.warning(f"Failed to log access to video {video_id}: {e}")

    signed_url = await asyncio.to_thread(storage.try_signed_url, video.file_path)
    return success({**video.to_dict(), "signedUrl": signed_url})
