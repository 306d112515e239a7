"""Repositories over the shared portal database."""

from .user_repository import User, UserRepository
from .video_repository import Video, VideoRepository
from .training_day_repository import TrainingDay, TrainingDayRepository, DuplicateAssignmentError
from .pdf_repository import PdfFile, PdfRepository
from .review_repository import ReviewRepository
from .feedback_repository import FeedbackRepository

__all__ = [
    "User",
    "UserRepository",
    "Video",
    "VideoRepository",
    "TrainingDay",
    "TrainingDayRepository",
    "DuplicateAssignmentError",
    "PdfFile",
    "PdfRepository",
    "ReviewRepository",
    "FeedbackRepository",
]
