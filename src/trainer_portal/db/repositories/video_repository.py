"""SQLite-backed repository for videos, video permissions and access logs.

A user can watch a video when all of these hold:
- the (user, video) permission row is active
- the permission has no expiry, or the expiry is in the future
- the video itself is active
"""

import sqlite3
from dataclasses import dataclass, asdict
from typing import Optional, List, Dict, Any, Iterable

from ..database import PortalDatabase

EFFECTIVE_ACCESS_SQL = """
    p.is_active = 1
    AND (p.expires_at IS NULL OR p.expires_at > CURRENT_TIMESTAMP)
    AND v.is_active = 1
"""

VIDEO_COLUMNS = (
    "v.id, v.title, v.description, v.file_path, v.duration, v.thumbnail_path, "
    "v.category, v.is_active, v.created_at, v.updated_at"
)

GRANT_CREATED = "created"
GRANT_REACTIVATED = "reactivated"
GRANT_ALREADY_ACTIVE = "already_active"


@dataclass
class Video:
    """Video entity; file_path is the object storage key."""

    id: int
    title: str
    file_path: str
    description: Optional[str] = None
    duration: Optional[int] = None
    thumbnail_path: Optional[str] = None
    category: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _row_to_video(row: sqlite3.Row) -> Video:
    return Video(
        id=row["id"],
        title=row["title"],
        file_path=row["file_path"],
        description=row["description"],
        duration=row["duration"],
        thumbnail_path=row["thumbnail_path"],
        category=row["category"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


# ----------------------------------------------------------------------
# Permission helpers shared with the training-day cascade. They run on a
# connection that is already inside a transaction.
# ----------------------------------------------------------------------

def activate_permission(
    conn: sqlite3.Connection,
    user_id: int,
    video_id: int,
    granted_by: Optional[int],
    expires_at: Optional[str] = None,
) -> str:
    """Insert or reactivate the (user, video) permission row."""
    row = conn.execute(
        "SELECT id, is_active FROM user_video_permissions WHERE user_id = ? AND video_id = ?",
        (user_id, video_id),
    ).fetchone()

    if row is None:
        conn.execute(
            """
            INSERT INTO user_video_permissions (user_id, video_id, granted_by, expires_at)
            VALUES (?, ?, ?, ?)
            """,
            (user_id, video_id, granted_by, expires_at),
        )
        return GRANT_CREATED

    if row["is_active"]:
        return GRANT_ALREADY_ACTIVE

    conn.execute(
        """
        UPDATE user_video_permissions
        SET is_active = 1, granted_by = ?, granted_at = CURRENT_TIMESTAMP, expires_at = ?
        WHERE id = ?
        """,
        (granted_by, expires_at, row["id"]),
    )
    return GRANT_REACTIVATED


def count_day_assignments(conn: sqlite3.Connection, user_id: int, video_id: int) -> int:
    """How many of the user's active training days still contain the video."""
    row = conn.execute(
        """
        SELECT COUNT(*) AS n
        FROM training_day_videos tdv
        JOIN user_training_days td ON td.id = tdv.training_day_id
        WHERE td.user_id = ? AND tdv.video_id = ?
          AND td.is_active = 1 AND tdv.is_active = 1
        """,
        (user_id, video_id),
    ).fetchone()
    return row["n"]


def revoke_unreferenced_permissions(
    conn: sqlite3.Connection, user_id: int, video_ids: Iterable[int]
) -> List[int]:
    """Deactivate permissions for videos no training day of the user references.

    Returns:
        The video ids whose permission was switched off.
    """
    revoked = []
    for video_id in sorted(set(video_ids)):
        if count_day_assignments(conn, user_id, video_id) > 0:
            continue
        cursor = conn.execute(
            "UPDATE user_video_permissions SET is_active = 0 "
            "WHERE user_id = ? AND video_id = ? AND is_active = 1",
            (user_id, video_id),
        )
        if cursor.rowcount:
            revoked.append(video_id)
    return revoked


class VideoRepository:
    """
    SQLite-backed repository for Video entities and their permissions.
    """

    def __init__(self, db: PortalDatabase):
        self.db = db

    # ------------------------------------------------------------------
    # Admin: video library
    # ------------------------------------------------------------------

    def list_with_user_count(self) -> List[Dict[str, Any]]:
        with self.db.connection() as conn:
            rows = conn.execute(
                f"""
                SELECT {VIDEO_COLUMNS},
                    (
                        SELECT COUNT(*) FROM user_video_permissions p
                        WHERE p.video_id = v.id AND p.is_active = 1
                    ) AS user_count
                FROM videos v
                WHERE v.is_active = 1
                ORDER BY v.created_at DESC, v.id DESC
                """
            ).fetchall()
        videos = []
        for row in rows:
            data = _row_to_video(row).to_dict()
            data["user_count"] = row["user_count"]
            videos.append(data)
        return videos

    def get(self, video_id: int, active_only: bool = True) -> Optional[Video]:
        query = f"SELECT {VIDEO_COLUMNS} FROM videos v WHERE v.id = ?"
        if active_only:
            query += " AND v.is_active = 1"
        with self.db.connection() as conn:
            row = conn.execute(query, (video_id,)).fetchone()
        return _row_to_video(row) if row else None

    def create(
        self,
        title: str,
        file_path: str,
        description: Optional[str] = None,
        duration: Optional[int] = None,
        thumbnail_path: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Video:
        with self.db.connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO videos (title, description, file_path, duration, thumbnail_path, category)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (title, description, file_path, duration, thumbnail_path, category),
            )
            video_id = cursor.lastrowid
        return self.get(video_id)

    def update(
        self,
        video_id: int,
        title: str,
        description: Optional[str] = None,
        duration: Optional[int] = None,
        thumbnail_path: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Optional[Video]:
        with self.db.connection() as conn:
            cursor = conn.execute(
                """
                UPDATE videos
                SET title = ?, description = ?, duration = ?, thumbnail_path = ?,
                    category = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND is_active = 1
                """,
                (title, description, duration, thumbnail_path, category, video_id),
            )
            if cursor.rowcount == 0:
                return None
        return self.get(video_id)

    def soft_delete(self, video_id: int) -> Dict[str, int]:
        """
        Deactivate a video and everything that grants access to it.

        Returns:
            Counts of what changed; empty dict if the video was not active.
        """
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE videos SET is_active = 0, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = ? AND is_active = 1",
                (video_id,),
            )
            if cursor.rowcount == 0:
                return {}
            permissions = conn.execute(
                "UPDATE user_video_permissions SET is_active = 0 "
                "WHERE video_id = ? AND is_active = 1",
                (video_id,),
            ).rowcount
            assignments = conn.execute(
                "DELETE FROM training_day_videos WHERE video_id = ?", (video_id,)
            ).rowcount
        return {"permissions_revoked": permissions, "assignments_removed": assignments}

    # ------------------------------------------------------------------
    # Admin: permissions
    # ------------------------------------------------------------------

    def grant(
        self,
        user_id: int,
        video_id: int,
        granted_by: Optional[int],
        expires_at: Optional[str] = None,
    ) -> str:
        """Grant access; returns one of the GRANT_* outcomes."""
        with self.db.transaction() as conn:
            return activate_permission(conn, user_id, video_id, granted_by, expires_at)

    def revoke(self, user_id: int, video_id: int) -> bool:
        """
        Revoke access and pull the video out of the user's training days.

        Returns:
            False if there was no active permission (nothing is changed).
        """
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE user_video_permissions SET is_active = 0 "
                "WHERE user_id = ? AND video_id = ? AND is_active = 1",
                (user_id, video_id),
            )
            if cursor.rowcount == 0:
                return False
            conn.execute(
                """
                DELETE FROM training_day_videos
                WHERE video_id = ?
                  AND training_day_id IN (SELECT id FROM user_training_days WHERE user_id = ?)
                """,
                (video_id, user_id),
            )
        return True

    def list_user_permissions(self, user_id: int) -> List[Dict[str, Any]]:
        with self.db.connection() as conn:
            rows = conn.execute(
                f"""
                SELECT {VIDEO_COLUMNS},
                    p.granted_at, p.expires_at, p.granted_by
                FROM user_video_permissions p
                JOIN videos v ON v.id = p.video_id
                WHERE p.user_id = ? AND p.is_active = 1 AND v.is_active = 1
                ORDER BY p.granted_at DESC, v.id DESC
                """,
                (user_id,),
            ).fetchall()
        return [dict(row) for row in rows]

    # ------------------------------------------------------------------
    # Client access
    # ------------------------------------------------------------------

    def list_accessible(self, user_id: int, category: Optional[str] = None) -> List[Video]:
        query = f"""
            SELECT {VIDEO_COLUMNS}
            FROM videos v
            JOIN user_video_permissions p ON p.video_id = v.id
            WHERE p.user_id = ? AND {EFFECTIVE_ACCESS_SQL}
        """
        params: List[Any] = [user_id]
        if category is not None:
            query += " AND v.category = ?"
            params.append(category)
        query += " ORDER BY v.category, v.title"
        with self.db.connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_video(row) for row in rows]

    def get_accessible(self, user_id: int, video_id: int) -> Optional[Video]:
        with self.db.connection() as conn:
            row = conn.execute(
                f"""
                SELECT {VIDEO_COLUMNS}
                FROM videos v
                JOIN user_video_permissions p ON p.video_id = v.id
                WHERE p.user_id = ? AND v.id = ? AND {EFFECTIVE_ACCESS_SQL}
                """,
                (user_id, video_id),
            ).fetchone()
        return _row_to_video(row) if row else None

    def list_accessible_categories(self, user_id: int) -> List[str]:
        with self.db.connection() as conn:
            rows = conn.execute(
                f"""
                SELECT DISTINCT v.category
                FROM videos v
                JOIN user_video_permissions p ON p.video_id = v.id
                WHERE p.user_id = ? AND v.category IS NOT NULL AND {EFFECTIVE_ACCESS_SQL}
                ORDER BY v.category
                """,
                (user_id,),
            ).fetchall()
        return [row["category"] for row in rows]

    def log_access(
        self,
        user_id: int,
        video_id: int,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> None:
        with self.db.connection() as conn:
            conn.execute(
                "INSERT INTO access_logs (user_id, video_id, ip_address, user_agent) "
                "VALUES (?, ?, ?, ?)",
                (user_id, video_id, ip_address, user_agent),
            )
