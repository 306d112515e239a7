"""SQLite-backed repository for client reviews and their moderation."""

import sqlite3
from typing import Optional, List, Dict, Any, Tuple

from ..database import PortalDatabase

REVIEW_FLAGS = ("is_approved", "is_featured")


def _review_dict(row: sqlite3.Row) -> Dict[str, Any]:
    data = dict(row)
    for flag in REVIEW_FLAGS:
        if flag in data:
            data[flag] = bool(data[flag])
    return data


def display_name(first_name: Optional[str], last_name: Optional[str], username: str) -> str:
    """Public author label: "Mario R." or the username when no name is set."""
    if first_name:
        if last_name:
            return f"{first_name} {last_name[0].upper()}."
        return first_name
    return username


class ReviewRepository:
    """
    SQLite-backed repository for reviews. One review per user.
    """

    def __init__(self, db: PortalDatabase):
        self.db = db

    def upsert(
        self, user_id: int, rating: int, comment: str, title: Optional[str] = None
    ) -> Tuple[Dict[str, Any], bool]:
        """
        Create the user's review or overwrite it.

        Any edit sends the review back to moderation. The row id is kept.

        Returns:
            (review, created)
        """
        with self.db.transaction() as conn:
            existing = conn.execute(
                "SELECT id FROM reviews WHERE user_id = ?", (user_id,)
            ).fetchone()
            conn.execute(
                """
                INSERT INTO reviews (user_id, rating, title, comment)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    rating = excluded.rating,
                    title = excluded.title,
                    comment = excluded.comment,
                    is_approved = 0,
                    approved_at = NULL,
                    approved_by = NULL,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (user_id, rating, title, comment),
            )
            row = conn.execute("SELECT * FROM reviews WHERE user_id = ?", (user_id,)).fetchone()
        return _review_dict(row), existing is None

    def get_for_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        with self.db.connection() as conn:
            row = conn.execute("SELECT * FROM reviews WHERE user_id = ?", (user_id,)).fetchone()
        return _review_dict(row) if row else None

    def delete_for_user(self, user_id: int) -> bool:
        with self.db.connection() as conn:
            return conn.execute("DELETE FROM reviews WHERE user_id = ?", (user_id,)).rowcount > 0

    def list_public(self, featured_only: bool = False, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Approved reviews, featured first, with a public display name."""
        query = """
            SELECT r.id, r.rating, r.title, r.comment, r.is_featured, r.created_at,
                   u.first_name, u.last_name, u.username
            FROM reviews r
            JOIN users u ON u.id = r.user_id
            WHERE r.is_approved = 1
        """
        if featured_only:
            query += " AND r.is_featured = 1"
        query += " ORDER BY r.is_featured DESC, r.created_at DESC, r.id DESC"
        params: List[Any] = []
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)

        with self.db.connection() as conn:
            rows = conn.execute(query, params).fetchall()

        reviews = []
        for row in rows:
            review = _review_dict(row)
            review["displayName"] = display_name(
                review.pop("first_name"), review.pop("last_name"), review.pop("username")
            )
            reviews.append(review)
        return reviews

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    def list_all(self) -> List[Dict[str, Any]]:
        with self.db.connection() as conn:
            rows = conn.execute(
                """
                SELECT r.*, u.username, u.first_name, u.last_name, u.email,
                       a.username AS approved_by_username
                FROM reviews r
                JOIN users u ON u.id = r.user_id
                LEFT JOIN users a ON a.id = r.approved_by
                ORDER BY r.created_at DESC, r.id DESC
                """
            ).fetchall()
        return [_review_dict(row) for row in rows]

    def set_approved(self, review_id: int, approved: bool, admin_id: int) -> Optional[Dict[str, Any]]:
        with self.db.connection() as conn:
            if approved:
                cursor = conn.execute(
                    "UPDATE reviews SET is_approved = 1, approved_by = ?, "
                    "approved_at = CURRENT_TIMESTAMP, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (admin_id, review_id),
                )
            else:
                cursor = conn.execute(
                    "UPDATE reviews SET is_approved = 0, approved_by = NULL, "
                    "approved_at = NULL, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (review_id,),
                )
            if cursor.rowcount == 0:
                return None
            row = conn.execute("SELECT * FROM reviews WHERE id = ?", (review_id,)).fetchone()
        return _review_dict(row)

    def set_featured(self, review_id: int, featured: bool) -> Optional[Dict[str, Any]]:
        with self.db.connection() as conn:
            cursor = conn.execute(
                "UPDATE reviews SET is_featured = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (int(featured), review_id),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute("SELECT * FROM reviews WHERE id = ?", (review_id,)).fetchone()
        return _review_dict(row)

    def delete(self, review_id: int) -> bool:
        with self.db.connection() as conn:
            return conn.execute("DELETE FROM reviews WHERE id = ?", (review_id,)).rowcount > 0
