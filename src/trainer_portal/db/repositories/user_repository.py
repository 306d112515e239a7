"""SQLite-backed repository for users and trainers.

Users are created by admins only. Deleting a user is a soft delete that
also switches off every video permission the user holds; re-creating a
soft-deleted username brings the account and its permissions back.
"""

import sqlite3
from typing import Optional, List, Dict, Any, Tuple
from dataclasses import dataclass, asdict

from ..database import PortalDatabase


@dataclass
class User:
    """User entity, client or admin."""

    id: int
    username: str
    email: Optional[str] = None
    password_hash: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool = True
    is_paying: bool = True
    is_admin: bool = False
    trainer_id: Optional[int] = None
    last_login: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Row-shaped dict without the password hash."""
        data = asdict(self)
        data.pop("password_hash")
        return data

    def to_public_dict(self) -> Dict[str, Any]:
        """Shape returned by the auth endpoints."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "isAdmin": self.is_admin,
        }


# Column name -> User attribute accepted by update()
_UPDATABLE_COLUMNS = (
    "username",
    "email",
    "password_hash",
    "first_name",
    "last_name",
    "is_active",
    "is_paying",
    "is_admin",
    "trainer_id",
)


class UserRepository:
    """
    SQLite-backed repository for User entities.

    Provides creation (with reactivation of soft-deleted accounts),
    retrieval, partial update, soft deletion and login tracking.
    """

    def __init__(self, db: PortalDatabase):
        self.db = db

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            is_active=bool(row["is_active"]),
            is_paying=bool(row["is_paying"]),
            is_admin=bool(row["is_admin"]),
            trainer_id=row["trainer_id"],
            last_login=row["last_login"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def create_user(
        self,
        username: str,
        password_hash: Optional[str] = None,
        email: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        is_paying: bool = True,
        trainer_id: Optional[int] = 1,
        is_admin: bool = False,
    ) -> Tuple[User, bool]:
        """
        Create a user, or reactivate a soft-deleted one with the same username.

        Returns:
            (user, reactivated) where reactivated is True when an existing
            inactive account was brought back.

        Raises:
            sqlite3.IntegrityError: If the username belongs to an active user
                or the email is already taken
        """
        with self.db.transaction() as conn:
            existing = conn.execute(
                "SELECT id, is_active FROM users WHERE username = ?", (username,)
            ).fetchone()

            if existing and not existing["is_active"]:
                user_id = existing["id"]
                conn.execute(
                    """
                    UPDATE users
                    SET is_active = 1,
                        email = ?,
                        password_hash = COALESCE(?, password_hash),
                        first_name = ?,
                        last_name = ?,
                        is_paying = ?,
                        trainer_id = ?,
                        is_admin = ?,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE id = ?
                    """,
                    (
                        email, password_hash, first_name, last_name,
                        int(is_paying), trainer_id, int(is_admin), user_id,
                    ),
                )
                conn.execute(
                    "UPDATE user_video_permissions SET is_active = 1 WHERE user_id = ?",
                    (user_id,),
                )
                reactivated = True
            else:
                cursor = conn.execute(
                    """
                    INSERT INTO users (
                        username, email, password_hash, first_name, last_name,
                        is_paying, trainer_id, is_admin
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        username, email, password_hash, first_name, last_name,
                        int(is_paying), trainer_id, int(is_admin),
                    ),
                )
                user_id = cursor.lastrowid
                reactivated = False

            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()

        return self._row_to_user(row), reactivated

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self.db.connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def get_active_by_id(self, user_id: int) -> Optional[User]:
        user = self.get_by_id(user_id)
        return user if user and user.is_active else None

    def get_by_username(self, username: str) -> Optional[User]:
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE username = ?", (username,)
            ).fetchone()
        return self._row_to_user(row) if row else None

    def update(self, user_id: int, fields: Dict[str, Any]) -> Optional[User]:
        """
        Update the given columns of a user.

        Only keys listed in _UPDATABLE_COLUMNS are applied.

        Returns:
            The updated User, or None if no such user exists

        Raises:
            ValueError: If no updatable field was supplied
            sqlite3.IntegrityError: On username/email collisions
        """
        updates = []
        params: List[Any] = []
        for column in _UPDATABLE_COLUMNS:
            if column not in fields:
                continue
            value = fields[column]
            if isinstance(value, bool):
                value = int(value)
            updates.append(f"{column} = ?")
            params.append(value)

        if not updates:
            raise ValueError("No fields to update")

        updates.append("updated_at = CURRENT_TIMESTAMP")
        params.append(user_id)

        with self.db.connection() as conn:
            cursor = conn.execute(
                f"UPDATE users SET {', '.join(updates)} WHERE id = ?", params
            )
            if cursor.rowcount == 0:
                return None

        return self.get_by_id(user_id)

    def soft_delete(self, user_id: int) -> bool:
        """Deactivate a user and every permission they hold, atomically."""
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE users SET is_active = 0, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = ? AND is_active = 1",
                (user_id,),
            )
            if cursor.rowcount == 0:
                return False
            conn.execute(
                "UPDATE user_video_permissions SET is_active = 0 WHERE user_id = ?",
                (user_id,),
            )
        return True

    def update_last_login(self, user_id: int) -> bool:
        with self.db.connection() as conn:
            cursor = conn.execute(
                "UPDATE users SET last_login = CURRENT_TIMESTAMP WHERE id = ?",
                (user_id,),
            )
            return cursor.rowcount > 0

    def is_admin(self, user_id: int) -> bool:
        """Role check against the database, not the token."""
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM users WHERE id = ? AND is_active = 1 AND is_admin = 1",
                (user_id,),
            ).fetchone()
        return row is not None

    def list_with_summary(self) -> List[Dict[str, Any]]:
        """
        Active users with trainer, permission count and PDF info.

        Ordered by PDF expiration (users without a PDF last), newest first
        among ties.
        """
        with self.db.connection() as conn:
            rows = conn.execute(
                """
                SELECT
                    u.id, u.username, u.email, u.first_name, u.last_name,
                    u.is_active, u.is_paying, u.is_admin, u.trainer_id,
                    u.last_login, u.created_at, u.updated_at,
                    t.name AS trainer_name,
                    (
                        SELECT COUNT(*) FROM user_video_permissions p
                        WHERE p.user_id = u.id AND p.is_active = 1
                    ) AS video_count,
                    pdf.original_name AS pdf_name,
                    pdf.expiration_date AS pdf_expiration_date,
                    pdf.duration_months AS pdf_duration_months,
                    pdf.duration_days AS pdf_duration_days,
                    pdf.updated_at AS pdf_updated_at
                FROM users u
                LEFT JOIN trainers t ON t.id = u.trainer_id
                LEFT JOIN user_pdf_files pdf ON pdf.user_id = u.id
                WHERE u.is_active = 1
                ORDER BY
                    CASE WHEN pdf.expiration_date IS NULL THEN 1 ELSE 0 END,
                    pdf.expiration_date ASC,
                    u.created_at DESC,
                    u.id DESC
                """
            ).fetchall()

        users = []
        for row in rows:
            data = dict(row)
            for flag in ("is_active", "is_paying", "is_admin"):
                data[flag] = bool(data[flag])
            users.append(data)
        return users

    def get_all(self, include_inactive: bool = True) -> List[User]:
        query = "SELECT * FROM users"
        if not include_inactive:
            query += " WHERE is_active = 1"
        query += " ORDER BY id"
        with self.db.connection() as conn:
            rows = conn.execute(query).fetchall()
        return [self._row_to_user(row) for row in rows]

    # ------------------------------------------------------------------
    # Trainers
    # ------------------------------------------------------------------

    def list_trainers(self) -> List[Dict[str, Any]]:
        with self.db.connection() as conn:
            rows = conn.execute(
                "SELECT id, name, email, created_at FROM trainers "
                "WHERE is_active = 1 ORDER BY id"
            ).fetchall()
        return [dict(row) for row in rows]

    def get_trainer_name(self, trainer_id: Optional[int]) -> Optional[str]:
        if trainer_id is None:
            return None
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT name FROM trainers WHERE id = ?", (trainer_id,)
            ).fetchone()
        return row["name"] if row else None
