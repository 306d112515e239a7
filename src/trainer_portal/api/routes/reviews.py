"""Review API routes: public listings, a client's own review, and admin moderation."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field, StrictBool, field_validator

from ..dependencies import get_review_repository
from ..middleware.auth import CurrentUser, get_current_user, require_admin
from ..responses import success
from ..schemas import CamelModel
from ...db.repositories import ReviewRepository
from ...exceptions import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["reviews"])
admin_router = APIRouter(prefix="/admin/reviews", tags=["reviews"])

FEATURED_LIMIT = 6


class ReviewRequest(CamelModel):
    """Request model for creating or editing the caller's review."""

    rating: int = Field(ge=1, le=5, strict=True)
    title: Optional[str] = Field(default=None, max_length=200)
    comment: str

    @field_validator("comment")
    @classmethod
    def comment_length(cls, value: str) -> str:
        value = value.strip()
        if not 10 <= len(value) <= 1000:
            raise ValueError("Comment must be between 10 and 1000 characters")
        return value

    @field_validator("title")
    @classmethod
    def blank_title_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class ApproveRequest(CamelModel):
    approved: StrictBool


class FeatureRequest(CamelModel):
    featured: StrictBool


# ----------------------------------------------------------------------
# Public and client endpoints
# ----------------------------------------------------------------------

@router.get("/public")
async def list_public_reviews(reviews: ReviewRepository = Depends(get_review_repository)):
    return success(reviews.list_public())


@router.get("/featured")
async def list_featured_reviews(reviews: ReviewRepository = Depends(get_review_repository)):
    return success(reviews.list_public(featured_only=True, limit=FEATURED_LIMIT))


@router.get("/my")
async def get_my_review(
    current_user: CurrentUser = Depends(get_current_user),
    reviews: ReviewRepository = Depends(get_review_repository),
):
    return success(reviews.get_for_user(current_user.user_id))


@router.post("")
async def submit_review(
    review_request: ReviewRequest,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    reviews: ReviewRepository = Depends(get_review_repository),
):
    """Create or edit the caller's review; an edit goes back to moderation."""
    review, created = reviews.upsert(
        current_user.user_id,
        rating=review_request.rating,
        comment=review_request.comment,
        title=review_request.title,
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return success(
        review,
        message="Review submitted successfully" if created else "Review updated successfully",
    )


@router.delete("/my")
async def delete_my_review(
    current_user: CurrentUser = Depends(get_current_user),
    reviews: ReviewRepository = Depends(get_review_repository),
):
    if not reviews.delete_for_user(current_user.user_id):
        raise NotFoundError("Review", message="Review not found")
    return success(None, message="Review deleted successfully")


# ----------------------------------------------------------------------
# Moderation
# ----------------------------------------------------------------------

@admin_router.get("")
async def list_all_reviews(
    current_user: CurrentUser = Depends(require_admin),
    reviews: ReviewRepository = Depends(get_review_repository),
):
    all_reviews = reviews.list_all()
    return success(
        all_reviews,
        totalCount=len(all_reviews),
        pendingCount=sum(1 for r in all_reviews if not r["is_approved"]),
        approvedCount=sum(1 for r in all_reviews if r["is_approved"]),
        featuredCount=sum(1 for r in all_reviews if r["is_featured"]),
    )


@admin_router.put("/{review_id}/approve")
async def approve_review(
    review_id: int,
    approve_request: ApproveRequest,
    current_user: CurrentUser = Depends(require_admin),
    reviews: ReviewRepository = Depends(get_review_repository),
):
    review = reviews.set_approved(review_id, approve_request.approved, current_user.user_id)
    if review is None:
        raise NotFoundError("Review", review_id)
    return success(
        review,
        message="Review approved" if approve_request.approved else "Review approval removed",
    )


@admin_router.put("/{review_id}/feature")
async def feature_review(
    review_id: int,
    feature_request: FeatureRequest,
    current_user: CurrentUser = Depends(require_admin),
    reviews: ReviewRepository = Depends(get_review_repository),
):
    review = reviews.set_featured(review_id, feature_request.featured)
    if review is None:
        raise NotFoundError("Review", review_id)
    return success(
        review,
        message="Review featured" if feature_request.featured else "Review unfeatured",
    )


@admin_router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    current_user: CurrentUser = Depends(require_admin),
    reviews: ReviewRepository = Depends(get_review_repository),
):
    if not reviews.delete(review_id):
        raise NotFoundError("Review", review_id)
    logger.info(f"Admin {current_user.username} deleted review {review_id}")
    return success(None, message="Review deleted successfully")
