"""SQLite-backed repository for per-user PDF training plans.

Each user has at most one plan (UNIQUE user_id). The file is kept
base64-encoded in the row. Expiration dates are computed by SQLite date
arithmetic: from now on upload, from the previous expiration on extend.
"""

import base64
import sqlite3
from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any, Tuple

from ..database import PortalDatabase

METADATA_COLUMNS = (
    "id, user_id, original_name, file_size, mime_type, uploaded_by, uploaded_at, "
    "updated_at, duration_months, duration_days, expiration_date"
)


def _months(value: int) -> str:
    return f"{value:+d} months"


def _days(value: int) -> str:
    return f"{value:+d} days"


@dataclass
class PdfFile:
    """PDF plan metadata; file_data is only loaded for downloads."""

    id: int
    user_id: int
    original_name: str
    file_size: int
    mime_type: str
    uploaded_by: Optional[int]
    uploaded_at: Optional[str]
    updated_at: Optional[str]
    duration_months: int
    duration_days: int
    expiration_date: Optional[str]
    file_data: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("file_data")
        return data

    def content(self) -> bytes:
        """Decoded PDF bytes."""
        if self.file_data is None:
            raise ValueError("PDF data was not loaded")
        return base64.b64decode(self.file_data)


def _row_to_pdf(row: sqlite3.Row) -> PdfFile:
    keys = row.keys()
    return PdfFile(
        id=row["id"],
        user_id=row["user_id"],
        original_name=row["original_name"],
        file_size=row["file_size"],
        mime_type=row["mime_type"],
        uploaded_by=row["uploaded_by"],
        uploaded_at=row["uploaded_at"],
        updated_at=row["updated_at"],
        duration_months=row["duration_months"],
        duration_days=row["duration_days"],
        expiration_date=row["expiration_date"],
        file_data=row["file_data"] if "file_data" in keys else None,
    )


class PdfRepository:
    """
    SQLite-backed repository for PdfFile entities.
    """

    def __init__(self, db: PortalDatabase):
        self.db = db

    def get(self, user_id: int, with_data: bool = False) -> Optional[PdfFile]:
        columns = METADATA_COLUMNS + (", file_data" if with_data else "")
        with self.db.connection() as conn:
            row = conn.execute(
                f"SELECT {columns} FROM user_pdf_files WHERE user_id = ?", (user_id,)
            ).fetchone()
        return _row_to_pdf(row) if row else None

    def upsert(
        self,
        user_id: int,
        original_name: str,
        content: bytes,
        uploaded_by: Optional[int],
        duration_months: int = 2,
        duration_days: int = 0,
        mime_type: str = "application/pdf",
    ) -> Tuple[PdfFile, bool]:
        """
        Store the user's plan, replacing any previous one.

        The expiration restarts from now on every upload.

        Returns:
            (pdf, created) where created is False when a plan was replaced.
        """
        encoded = base64.b64encode(content).decode("ascii")
        with self.db.transaction() as conn:
            existing = conn.execute(
                "SELECT id FROM user_pdf_files WHERE user_id = ?", (user_id,)
            ).fetchone()
            conn.execute(
                """
                INSERT INTO user_pdf_files (
                    user_id, original_name, file_data, file_size, mime_type, uploaded_by,
                    uploaded_at, updated_at, duration_months, duration_days, expiration_date
                ) VALUES (
                    ?, ?, ?, ?, ?, ?,
                    CURRENT_TIMESTAMP, CURRENT_TIMESTAMP, ?, ?, datetime('now', ?, ?)
                )
                ON CONFLICT(user_id) DO UPDATE SET
                    original_name = excluded.original_name,
                    file_data = excluded.file_data,
                    file_size = excluded.file_size,
                    mime_type = excluded.mime_type,
                    uploaded_by = excluded.uploaded_by,
                    updated_at = CURRENT_TIMESTAMP,
                    duration_months = excluded.duration_months,
                    duration_days = excluded.duration_days,
                    expiration_date = excluded.expiration_date
                """,
                (
                    user_id, original_name, encoded, len(content), mime_type, uploaded_by,
                    duration_months, duration_days,
                    _months(duration_months), _days(duration_days),
                ),
            )
            row = conn.execute(
                f"SELECT {METADATA_COLUMNS} FROM user_pdf_files WHERE user_id = ?", (user_id,)
            ).fetchone()
        return _row_to_pdf(row), existing is None

    def extend(self, user_id: int, additional_months: int, additional_days: int) -> Optional[PdfFile]:
        """
        Push the expiration further out from its current value.

        Extensions compound: two one-month extensions add two months to the
        original expiration no matter when they are applied. A plan with no
        expiration yet is extended from its upload time.
        """
        with self.db.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE user_pdf_files
                SET duration_months = duration_months + ?,
                    duration_days = duration_days + ?,
                    expiration_date = datetime(COALESCE(expiration_date, uploaded_at), ?, ?)
                WHERE user_id = ?
                """,
                (
                    additional_months, additional_days,
                    _months(additional_months), _days(additional_days),
                    user_id,
                ),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                f"SELECT {METADATA_COLUMNS} FROM user_pdf_files WHERE user_id = ?", (user_id,)
            ).fetchone()
        return _row_to_pdf(row)

    def delete(self, user_id: int) -> bool:
        with self.db.connection() as conn:
            cursor = conn.execute("DELETE FROM user_pdf_files WHERE user_id = ?", (user_id,))
            return cursor.rowcount > 0

    def last_changed_at(self, user_id: int) -> Optional[str]:
        """When the user's current plan was last uploaded or replaced."""
        with self.db.connection() as conn:
            row = conn.execute(
                "SELECT updated_at FROM user_pdf_files WHERE user_id = ?", (user_id,)
            ).fetchone()
        return row["updated_at"] if row else None
