"""FastAPI dependencies that bind repositories to the shared database.

Tests swap the database by overriding ``get_database`` in
``app.dependency_overrides``; every repository below follows.
"""

from fastapi import Depends

from ..db.database import PortalDatabase, get_database
from ..db.repositories import (
    FeedbackRepository,
    PdfRepository,
    ReviewRepository,
    TrainingDayRepository,
    UserRepository,
    VideoRepository,
)


def get_user_repository(db: PortalDatabase = Depends(get_database)) -> UserRepository:
    return UserRepository(db)


def get_video_repository(db: PortalDatabase = Depends(get_database)) -> VideoRepository:
    return VideoRepository(db)


def get_training_day_repository(
    db: PortalDatabase = Depends(get_database),
) -> TrainingDayRepository:
    return TrainingDayRepository(db)


def get_pdf_repository(db: PortalDatabase = Depends(get_database)) -> PdfRepository:
    return PdfRepository(db)


def get_review_repository(db: PortalDatabase = Depends(get_database)) -> ReviewRepository:
    return ReviewRepository(db)


def get_feedback_repository(db: PortalDatabase = Depends(get_database)) -> FeedbackRepository:
    return FeedbackRepository(db)
