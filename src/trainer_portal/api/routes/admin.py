"""Admin API routes for clients, trainers, video permissions and the video library.

Every endpoint requires the admin role, which is read from the database
on each request.
"""

import asyncio
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from pydantic import Field

from ..dependencies import get_user_repository, get_video_repository
from ..middleware.auth import CurrentUser, require_admin
from ..responses import success
from ..schemas import CamelModel
from ...config import get_settings
from ...db.repositories import User, UserRepository, VideoRepository
from ...db.repositories.video_repository import GRANT_ALREADY_ACTIVE, GRANT_CREATED
from ...exceptions import ConflictError, NotFoundError, ValidationError
from ...services.auth_service import AuthService, get_auth_service
from ...services.storage_service import StorageService, get_storage_service
from ...utils.dates import to_db_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# Request Models
class CreateUserRequest(CamelModel):
    """Request model for creating (or reactivating) a client."""

    username: str = Field(min_length=1, max_length=100)
    password: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_paying: bool = True
    trainer_id: int = 1
    is_admin: bool = False


class UpdateUserRequest(CamelModel):
    """Partial update; only the fields present in the body are changed."""

    username: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=1)
    is_paying: Optional[bool] = None
    is_active: Optional[bool] = None
    trainer_id: Optional[int] = None
    is_admin: Optional[bool] = None


class GrantVideoRequest(CamelModel):
    expires_at: Optional[datetime] = None


class UploadUrlRequest(CamelModel):
    file_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    file_type: str = "video/mp4"


class VideoRequest(CamelModel):
    """Request model for creating or replacing a video's metadata."""

    title: str = Field(min_length=1)
    file_path: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)
    thumbnail_path: Optional[str] = None
    category: Optional[str] = None


def _conflict(error: sqlite3.IntegrityError) -> ConflictError:
    if "users.email" in str(error):
        return ConflictError("Email already exists")
    return ConflictError("Username already exists")


def _login_link(auth_service: AuthService, user: User) -> dict:
    token = auth_service.create_login_link_token(user.id, user.username)
    return {
        "loginToken": token,
        "loginUrl": f"{get_settings().frontend_url}/dashboard/{token}",
    }


# ----------------------------------------------------------------------
# Trainers and users
# ----------------------------------------------------------------------

@router.get("/trainers")
async def list_trainers(
    current_user: CurrentUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
):
    return success(users.list_trainers())


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    user_request: CreateUserRequest,
    current_user: CurrentUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create a client and mint their first login link.

    A username that belongs to a deleted client brings that client back,
    together with the video permissions they had.
    """
    password_hash = (
        auth_service.hash_password(user_request.password) if user_request.password else None
    )
    try:
        user, reactivated = users.create_user(
            username=user_request.username.strip(),
            password_hash=password_hash,
            email=user_request.email or None,
            first_name=user_request.first_name,
            last_name=user_request.last_name,
            is_paying=user_request.is_paying,
            trainer_id=user_request.trainer_id,
            is_admin=user_request.is_admin,
        )
    except sqlite3.IntegrityError as e:
        raise _conflict(e)

    logger.info(
        f"Admin {current_user.username} {'reactivated' if reactivated else 'created'} user {user.id}"
    )
    return success(
        {"user": user.to_dict(), **_login_link(auth_service, user)},
        message="User reactivated successfully" if reactivated else "User created successfully",
    )


@router.get("/users")
async def list_users(
    current_user: CurrentUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
):
    return success(users.list_with_summary())


@router.put("/users/{user_id}")
async def update_user(
    user_id: int,
    user_request: UpdateUserRequest,
    current_user: CurrentUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
    auth_service: AuthService = Depends(get_auth_service),
):
    fields = user_request.model_dump(exclude_unset=True)
    if "password" in fields:
        password = fields.pop("password")
        if password:
            fields["password_hash"] = auth_service.hash_password(password)
    if "email" in fields and not fields["email"]:
        fields["email"] = None
    for flag in ("is_paying", "is_active", "is_admin", "trainer_id", "username"):
        if flag in fields and fields[flag] is None:
            fields.pop(flag)

    try:
        user = users.update(user_id, fields)
    except ValueError as e:
        raise ValidationError(str(e))
    except sqlite3.IntegrityError as e:
        raise _conflict(e)

    if user is None:
        raise NotFoundError("User", user_id)
    return success(user.to_dict(), message="User updated successfully")


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    current_user: CurrentUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
):
    """Soft delete a client; their video permissions go with them."""
    if not users.soft_delete(user_id):
        raise NotFoundError("User", user_id)
    logger.info(f"Admin {current_user.username} deactivated user {user_id}")
    return success(None, message="User deactivated successfully")


@router.get("/users/{user_id}/videos")
async def list_user_videos(
    user_id: int,
    current_user: CurrentUser = Depends(require_admin),
    videos: VideoRepository = Depends(get_video_repository),
):
    return success(videos.list_user_permissions(user_id))


@router.post("/users/{user_id}/generate-link")
async def generate_login_link(
    user_id: int,
    current_user: CurrentUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
    auth_service: AuthService = Depends(get_auth_service),
):
    user = users.get_active_by_id(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return success(
        {**_login_link(auth_service, user), "expiresIn": auth_service.login_link_expires_in},
        message="Login link generated successfully",
    )


# ----------------------------------------------------------------------
# Video permissions
# ----------------------------------------------------------------------

@router.post("/users/{user_id}/videos/{video_id}")
async def grant_video_access(
    user_id: int,
    video_id: int,
    grant_request: Optional[GrantVideoRequest] = Body(default=None),
    current_user: CurrentUser = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
    videos: VideoRepository = Depends(get_video_repository),
):
    """Grant a client access to a video, reviving a revoked permission if there is one."""
    if users.get_active_by_id(user_id) is None:
        raise NotFoundError("User", user_id)
    if videos.get(video_id) is None:
        raise NotFoundError("Video", video_id)

    expires_at = None
    if grant_request is not None and grant_request.expires_at is not None:
        expires_at = to_db_timestamp(grant_request.expires_at)

    outcome = videos.grant(user_id, video_id, current_user.user_id, expires_at)
    if outcome == GRANT_ALREADY_ACTIVE:
        raise ValidationError("User already has access to this video")

    logger.info(f"Admin {current_user.username} granted video {video_id} to user {user_id} ({outcome})")
    return success(
        {"userId": user_id, "videoId": video_id, "expiresAt": expires_at},
        message="Video access granted successfully"
        if outcome == GRANT_CREATED
        else "Video access restored successfully",
    )


@router.delete("/users/{user_id}/videos/{video_id}")
async def revoke_video_access(
    user_id: int,
    video_id: int,
    current_user: CurrentUser = Depends(require_admin),
    videos: VideoRepository = Depends(get_video_repository),
):
    """Revoke access and take the video off the client's training days."""
    if not videos.revoke(user_id, video_id):
        raise NotFoundError("Permission", message="Permission not found")
    logger.info(f"Admin {current_user.username} revoked video {video_id} from user {user_id}")
    return success(None, message="Video access revoked successfully")


# ----------------------------------------------------------------------
# Video library
# ----------------------------------------------------------------------

@router.get("/videos")
async def list_videos(
    current_user: CurrentUser = Depends(require_admin),
    videos: VideoRepository = Depends(get_video_repository),
):
    return success(videos.list_with_user_count())


@router.get("/videos/{video_id}/preview")
async def preview_video(
    video_id: int,
    current_user: CurrentUser = Depends(require_admin),
    videos: VideoRepository = Depends(get_video_repository),
    storage: StorageService = Depends(get_storage_service),
):
    video = videos.get(video_id)
    if video is None:
        raise NotFoundError("Video", video_id)
    signed_url = await asyncio.to_thread(storage.try_signed_url, video.file_path)
    return success({**video.to_dict(), "signedUrl": signed_url})


@router.post("/videos/upload-url")
async def create_upload_url(
    upload_request: UploadUrlRequest,
    current_user: CurrentUser = Depends(require_admin),
    storage: StorageService = Depends(get_storage_service),
):
    """Presigned PUT URL so the browser uploads straight to the bucket."""
    key = f"{upload_request.category}/{upload_request.file_name}"
    upload_url = storage.get_upload_url(key, content_type=upload_request.file_type)
    return success({
        "uploadUrl": upload_url,
        "filePath": key,
        "expiresIn": storage.settings.upload_url_expire_seconds,
    })


@router.post("/videos", status_code=status.HTTP_201_CREATED)
async def create_video(
    video_request: VideoRequest,
    current_user: CurrentUser = Depends(require_admin),
    videos: VideoRepository = Depends(get_video_repository),
):
    if not video_request.file_path:
        raise ValidationError("Title and file path are required", field="filePath")
    video = videos.create(
        title=video_request.title,
        file_path=video_request.file_path,
        description=video_request.description,
        duration=video_request.duration,
        thumbnail_path=video_request.thumbnail_path,
        category=video_request.category,
    )
    return success(video.to_dict(), message="Video created successfully")


@router.put("/videos/{video_id}")
async def update_video(
    video_id: int,
    video_request: VideoRequest,
    current_user: CurrentUser = Depends(require_admin),
    videos: VideoRepository = Depends(get_video_repository),
):
    video = videos.update(
        video_id,
        title=video_request.title,
        description=video_request.description,
        duration=video_request.duration,
        thumbnail_path=video_request.thumbnail_path,
        category=video_request.category,
    )
    if video is None:
        raise NotFoundError("Video", video_id)
    return success(video.to_dict(), message="Video updated successfully")


@router.delete("/videos/{video_id}")
async def delete_video(
    video_id: int,
    current_user: CurrentUser = Depends(require_admin),
    videos: VideoRepository = Depends(get_video_repository),
):
    """Soft delete a video and cut every client's access to it."""
    changes = videos.soft_delete(video_id)
    if not changes:
        raise NotFoundError("Video", video_id)
    logger.info(f"Admin {current_user.username} deleted video {video_id}: {changes}")
    return success(changes, message="Video deleted successfully")
