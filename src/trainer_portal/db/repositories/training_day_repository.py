"""SQLite-backed repository for training days and their video assignments.

A video placed on any of a user's training days implies an active
permission for that user; taking it off the last day revokes the
permission. Every mutation that touches both sides runs in one
transaction, so the two never drift apart.
"""

import sqlite3
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Dict, Any, Sequence, Tuple

from ..database import PortalDatabase
from .video_repository import (
    EFFECTIVE_ACCESS_SQL,
    activate_permission,
    count_day_assignments,
    revoke_unreferenced_permissions,
)


class DuplicateAssignmentError(Exception):
    """The video is already on this training day."""


@dataclass
class TrainingDay:
    """A numbered day of a user's plan with its ordered videos."""

    id: int
    user_id: int
    day_number: int
    day_name: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    videos: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _row_to_day(row: sqlite3.Row) -> TrainingDay:
    return TrainingDay(
        id=row["id"],
        user_id=row["user_id"],
        day_number=row["day_number"],
        day_name=row["day_name"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class TrainingDayRepository:
    """
    SQLite-backed repository for TrainingDay entities.
    """

    def __init__(self, db: PortalDatabase):
        self.db = db

    def _day_videos(
        self, conn: sqlite3.Connection, day_id: int, accessible_to: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        query = """
            SELECT v.id, v.title, v.description, v.file_path, v.duration,
                   v.thumbnail_path, v.category,
                   tdv.id AS assignment_id, tdv.order_index, tdv.added_at
            FROM training_day_videos tdv
            JOIN videos v ON v.id = tdv.video_id
        """
        params: List[Any] = []
        if accessible_to is not None:
            query += " JOIN user_video_permissions p ON p.video_id = v.id AND p.user_id = ?"
            params.append(accessible_to)
        query += " WHERE tdv.training_day_id = ? AND tdv.is_active = 1 AND v.is_active = 1"
        params.append(day_id)
        if accessible_to is not None:
            query += f" AND {EFFECTIVE_ACCESS_SQL}"
        query += " ORDER BY tdv.order_index, tdv.id"
        return [dict(row) for row in conn.execute(query, params).fetchall()]

    def list_for_user(self, user_id: int, accessible_only: bool = False) -> List[TrainingDay]:
        """
        Active days ordered by day number, each with its ordered videos.

        Args:
            user_id: Owner of the days
            accessible_only: Only include videos the user can currently watch
        """
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM user_training_days WHERE user_id = ? AND is_active = 1 "
                "ORDER BY day_number",
                (user_id,),
            ).fetchall()
            days = []
            for row in rows:
                day = _row_to_day(row)
                day.videos = self._day_videos(
                    conn, day.id, accessible_to=user_id if accessible_only else None
                )
                days.append(day)
        return days

    def get(self, user_id: int, day_id: int) -> Optional[TrainingDay]:
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM user_training_days WHERE id = ? AND user_id = ? AND is_active = 1",
                (day_id, user_id),
            ).fetchone()
            if row is None:
                return None
            day = _row_to_day(row)
            day.videos = self._day_videos(conn, day.id)
        return day

    def create(self, user_id: int, day_number: int, day_name: Optional[str] = None) -> TrainingDay:
        """
        Raises:
            sqlite3.IntegrityError: If the user already has this day number
        """
        with self.db.connection() as conn:
            cursor = conn.execute(
                "INSERT INTO user_training_days (user_id, day_number, day_name) VALUES (?, ?, ?)",
                (user_id, day_number, day_name or f"Giorno {day_number}"),
            )
            day_id = cursor.lastrowid
        return self.get(user_id, day_id)

    def rename(self, user_id: int, day_id: int, day_name: str) -> Optional[TrainingDay]:
        with self.db.connection() as conn:
            cursor = conn.execute(
                "UPDATE user_training_days SET day_name = ?, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = ? AND user_id = ? AND is_active = 1",
                (day_name, day_id, user_id),
            )
            if cursor.rowcount == 0:
                return None
        return self.get(user_id, day_id)

    def delete(self, user_id: int, day_id: int) -> Optional[List[int]]:
        """
        Delete a day and revoke permissions it alone was holding up.

        Returns:
            Video ids whose permission was revoked, or None if the day
            does not belong to the user.
        """
        with self.db.transaction() as conn:
            day = conn.execute(
                "SELECT id FROM user_training_days WHERE id = ? AND user_id = ?",
                (day_id, user_id),
            ).fetchone()
            if day is None:
                return None

            video_ids = [
                row["video_id"]
                for row in conn.execute(
                    "SELECT video_id FROM training_day_videos WHERE training_day_id = ?",
                    (day_id,),
                ).fetchall()
            ]
            conn.execute("DELETE FROM training_day_videos WHERE training_day_id = ?", (day_id,))
            conn.execute("DELETE FROM user_training_days WHERE id = ?", (day_id,))
            return revoke_unreferenced_permissions(conn, user_id, video_ids)

    def add_video(
        self, user_id: int, day_id: int, video_id: int, added_by: Optional[int]
    ) -> Tuple[Dict[str, Any], str]:
        """
        Append a video to a day and make sure the user may watch it.

        Returns:
            (assignment row, permission outcome)

        Raises:
            LookupError: If the day is not the user's or the video is inactive
            DuplicateAssignmentError: If the video is already on the day
        """
        with self.db.transaction() as conn:
            day = conn.execute(
                "SELECT id FROM user_training_days WHERE id = ? AND user_id = ? AND is_active = 1",
                (day_id, user_id),
            ).fetchone()
            if day is None:
                raise LookupError("Training day")
            video = conn.execute(
                "SELECT id FROM videos WHERE id = ? AND is_active = 1", (video_id,)
            ).fetchone()
            if video is None:
                raise LookupError("Video")

            existing = conn.execute(
                "SELECT id FROM training_day_videos WHERE training_day_id = ? AND video_id = ?",
                (day_id, video_id),
            ).fetchone()
            if existing is not None:
                raise DuplicateAssignmentError("Video already assigned to this training day")

            next_index = conn.execute(
                "SELECT COALESCE(MAX(order_index), -1) + 1 AS next_index "
                "FROM training_day_videos WHERE training_day_id = ?",
                (day_id,),
            ).fetchone()["next_index"]

            cursor = conn.execute(
                """
                INSERT INTO training_day_videos (training_day_id, video_id, order_index, added_by)
                VALUES (?, ?, ?, ?)
                """,
                (day_id, video_id, next_index, added_by),
            )
            permission = activate_permission(conn, user_id, video_id, added_by)
            row = conn.execute(
                "SELECT * FROM training_day_videos WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        return dict(row), permission

    def remove_video(self, user_id: int, day_id: int, video_id: int) -> Optional[bool]:
        """
        Take a video off a day.

        Returns:
            None if there was no such assignment, otherwise whether the
            user's permission was revoked because no other day uses it.
        """
        with self.db.transaction() as conn:
            cursor = conn.execute(
                """
                DELETE FROM training_day_videos
                WHERE training_day_id = ? AND video_id = ?
                  AND training_day_id IN (SELECT id FROM user_training_days WHERE user_id = ?)
                """,
                (day_id, video_id, user_id),
            )
            if cursor.rowcount == 0:
                return None
            if count_day_assignments(conn, user_id, video_id) > 0:
                return False
            revoked = revoke_unreferenced_permissions(conn, user_id, [video_id])
        return bool(revoked)

    def reorder(self, user_id: int, day_id: int, orders: Sequence[Tuple[int, int]]) -> Optional[int]:
        """
        Apply (video_id, order_index) pairs to a day in one transaction.

        Returns:
            Number of assignments updated, or None if the day is not the user's.
        """
        with self.db.transaction() as conn:
            day = conn.execute(
                "SELECT id FROM user_training_days WHERE id = ? AND user_id = ? AND is_active = 1",
                (day_id, user_id),
            ).fetchone()
            if day is None:
                return None
            updated = 0
            for video_id, order_index in orders:
                updated += conn.execute(
                    "UPDATE training_day_videos SET order_index = ? "
                    "WHERE training_day_id = ? AND video_id = ?",
                    (order_index, day_id, video_id),
                ).rowcount
        return updated
