"""SQLite-backed repository for client check-ins and admin read tracking."""

from typing import Optional, List, Dict, Any

from ..database import PortalDatabase

FEEDBACK_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "energy_level",
    "workouts_completed",
    "meal_plan_followed",
    "sleep_quality",
    "physical_discomfort",
    "discomfort_details",
    "motivation_level",
    "weekly_highlights",
    "current_weight",
)

# Stored as 0 when the mark is not scoped to a trainer
ALL_TRAINERS = 0


class FeedbackRepository:
    """
    SQLite-backed repository for user feedbacks.
    """

    def __init__(self, db: PortalDatabase):
        self.db = db

    def create(
        self, user_id: int, fields: Dict[str, Any], pdf_change_date: Optional[str]
    ) -> Dict[str, Any]:
        """Store a check-in, tagged with the plan version it refers to."""
        columns = ["user_id", *FEEDBACK_FIELDS, "pdf_change_date"]
        values = [user_id, *(fields.get(name) for name in FEEDBACK_FIELDS), pdf_change_date]
        placeholders = ", ".join("?" for _ in columns)
        with self.db.connection() as conn:
            cursor = conn.execute(
                f"INSERT INTO user_feedbacks ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
            row = conn.execute(
                "SELECT * FROM user_feedbacks WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        return dict(row)

    def list_for_user(self, user_id: int) -> List[Dict[str, Any]]:
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT * FROM user_feedbacks WHERE user_id = ? ORDER BY created_at DESC, id DESC",
                (user_id,),
            ).fetchall()
        return [dict(row) for row in rows]

    def latest_for_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM user_feedbacks WHERE user_id = ? "
                "ORDER BY created_at DESC, id DESC LIMIT 1",
                (user_id,),
            ).fetchone()
        return dict(row) if row else None

    def list_all(self, trainer_id: Optional[int] = None) -> List[Dict[str, Any]]:
        query = """
            SELECT f.*, u.username, u.trainer_id, t.name AS trainer_name
            FROM user_feedbacks f
            JOIN users u ON u.id = f.user_id
            LEFT JOIN trainers t ON t.id = u.trainer_id
        """
        params: List[Any] = []
        if trainer_id is not None:
            query += " WHERE u.trainer_id = ?"
            params.append(trainer_id)
        query += " ORDER BY f.created_at DESC, f.id DESC"
        with self.db.connection() as conn:
            rows = conn.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def delete(self, feedback_id: int) -> bool:
        with self.db.connection() as conn:
            return conn.execute(
                "DELETE FROM user_feedbacks WHERE id = ?", (feedback_id,)
            ).rowcount > 0

    # ------------------------------------------------------------------
    # Admin unread tracking
    # ------------------------------------------------------------------

    def last_seen_at(self, admin_id: int, trainer_id: Optional[int] = None) -> Optional[str]:
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT last_seen_at FROM admin_feedback_seen "
                "WHERE admin_user_id = ? AND trainer_id = ?",
                (admin_id, trainer_id if trainer_id is not None else ALL_TRAINERS),
            ).fetchone()
        return row["last_seen_at"] if row else None

    def unread_count(self, admin_id: int, trainer_id: Optional[int] = None) -> int:
        """Feedbacks created after the admin's last-seen mark (all of them if never seen)."""
        last_seen = self.last_seen_at(admin_id, trainer_id)
        query = """
            SELECT COUNT(*) AS n
            FROM user_feedbacks f
            JOIN users u ON u.id = f.user_id
            WHERE 1 = 1
        """
        params: List[Any] = []
        if last_seen is not None:
            query += " AND f.created_at > ?"
            params.append(last_seen)
        if trainer_id is not None:
            query += " AND u.trainer_id = ?"
            params.append(trainer_id)
        with self.db.connection() as conn:
            return conn.execute(query, params).fetchone()["n"]

    def mark_seen(self, admin_id: int, trainer_id: Optional[int] = None) -> str:
        with self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO admin_feedback_seen (admin_user_id, trainer_id, last_seen_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(admin_user_id, trainer_id) DO UPDATE SET
                    last_seen_at = excluded.last_seen_at
                """,
                (admin_id, trainer_id if trainer_id is not None else ALL_TRAINERS),
            )
            row = conn.execute(
                "SELECT last_seen_at FROM admin_feedback_seen "
                "WHERE admin_user_id = ? AND trainer_id = ?",
                (admin_id, trainer_id if trainer_id is not None else ALL_TRAINERS),
            ).fetchone()
        return row["last_seen_at"]

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    def reminder_candidates(self, pdf_age_days: int = 7, feedback_gap_days: int = 14) -> List[Dict[str, Any]]:
        """
        Clients due a check-in reminder.

        A client is due when their plan is at least pdf_age_days old and
        they have not checked in during the last feedback_gap_days. The
        address is the one from their latest check-in, falling back to the
        account email.
        """
        with self.db.connection() as conn:
            rows = conn.execute(
                """
                SELECT
                    u.id AS user_id,
                    u.username,
                    COALESCE(
                        (SELECT f.first_name FROM user_feedbacks f WHERE f.user_id = u.id
                         ORDER BY f.created_at DESC, f.id DESC LIMIT 1),
                        u.first_name,
                        u.username
                    ) AS name,
                    COALESCE(
                        (SELECT f.email FROM user_feedbacks f WHERE f.user_id = u.id
                         ORDER BY f.created_at DESC, f.id DESC LIMIT 1),
                        u.email
                    ) AS email,
                    pdf.updated_at AS pdf_updated_at,
                    (SELECT MAX(f.created_at) FROM user_feedbacks f WHERE f.user_id = u.id)
                        AS last_feedback_at
                FROM users u
                JOIN user_pdf_files pdf ON pdf.user_id = u.id
                WHERE u.is_active = 1
                  AND u.is_admin = 0
                  AND pdf.updated_at <= datetime('now', ?)
                """,
                (f"-{pdf_age_days} days",),
            ).fetchall()
            cutoff = conn.execute(
                "SELECT datetime('now', ?) AS cutoff", (f"-{feedback_gap_days} days",)
            ).fetchone()["cutoff"]

        return [
            dict(row)
            for row in rows
            if row["last_feedback_at"] is None or row["last_feedback_at"] <= cutoff
        ]
