"""SQLite database for the trainer portal."""

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union
import sqlite3

from .connection_pool import SQLiteConnectionPool, get_connection_pool
from .schema import SCHEMA, DEFAULT_TRAINERS

logger = logging.getLogger(__name__)


def get_default_db_path() -> Path:
    """Get the database path from settings."""
    from ..config import get_settings

    return Path(get_settings().database_path)


class PortalDatabase:
    """Owns the connection pool and the schema.

    Repositories borrow connections from here; they never open their own.
    """

    def __init__(
        self,
        db_path: Optional[Union[str, Path]] = None,
        pool_size: int = 5,
        pool: Optional[SQLiteConnectionPool] = None,
    ):
        self.db_path = Path(db_path) if db_path else get_default_db_path()
        self.pool = pool or SQLiteConnectionPool(self.db_path, pool_size=pool_size)
        self._init_db()

    def _init_db(self) -> None:
        """Create tables and seed the default trainers."""
        with self.pool.connection() as conn:
            conn.executescript(SCHEMA)
        with self.pool.transaction() as conn:
            for trainer_id, name in DEFAULT_TRAINERS:
                conn.execute(
                    "INSERT OR IGNORE INTO trainers (id, name) VALUES (?, ?)",
                    (trainer_id, name),
                )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Autocommit connection for reads and single-statement writes."""
        with self.pool.connection() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Atomic, write-locked unit of work."""
        with self.pool.transaction() as conn:
            yield conn

    def list_tables(self) -> List[str]:
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            ).fetchall()
        return [row["name"] for row in rows]

    def table_counts(self) -> Dict[str, int]:
        """Row count per table, for the debug endpoint."""
        counts = {}
        tables = self.list_tables()
        with self.connection() as conn:
            for table in tables:
                # Table names come from sqlite_master, not from user input
                row = conn.execute(f'SELECT COUNT(*) AS n FROM "{table}"').fetchone()
                counts[table] = row["n"]
        return counts

    def close(self) -> None:
        self.pool.close()


_database: Optional[PortalDatabase] = None
_database_lock = threading.Lock()


def get_database() -> PortalDatabase:
    """Get or create the process-wide database (FastAPI dependency)."""
    global _database

    with _database_lock:
        if _database is None or _database.pool.is_closed:
            from ..config import get_settings

            settings = get_settings()
            pool = get_connection_pool(
                settings.database_path,
                pool_size=settings.db_pool_size,
                timeout=settings.db_timeout_seconds,
            )
            _database = PortalDatabase(settings.database_path, pool=pool)
            logger.info(f"Database ready at {settings.database_path}")
        return _database


def close_database() -> None:
    global _database

    with _database_lock:
        if _database is not None:
            _database.close()
            _database = None
