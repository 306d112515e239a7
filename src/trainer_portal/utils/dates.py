"""Helpers for the UTC timestamps SQLite stores as text."""

from datetime import datetime, timezone
from typing import Optional

DB_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse 'YYYY-MM-DD HH:MM:SS' (or ISO 8601) into an aware UTC datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    """Format a datetime the way CURRENT_TIMESTAMP does, in UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(DB_FORMAT)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
