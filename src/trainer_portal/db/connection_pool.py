"""
SQLite connection pool shared by every request.

This module implements a connection pool for SQLite databases with:
- Configurable pool size
- WAL mode for concurrent reads
- Foreign key enforcement
- Thread-safe connection management
- Two context managers: plain connections for reads and
  BEGIN IMMEDIATE transactions for multi-statement writes

Usage:
    pool = SQLiteConnectionPool("path/to/db.sqlite", pool_size=5)

    with pool.connection() as conn:
        conn.execute("SELECT * FROM users")

    with pool.transaction() as conn:
        conn.execute("UPDATE ...")
        conn.execute("DELETE ...")
        # Committed together, or rolled back together on error

    pool.close()
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from queue import Queue, Empty
from typing import Iterator, Optional, Union

from ..exceptions import DatabaseError

logger = logging.getLogger(__name__)


class SQLiteConnectionPool:
    """
    Thread-safe SQLite connection pool.

    Attributes:
        db_path: Path to the SQLite database file
        pool_size: Maximum number of connections in the pool
        timeout: Timeout in seconds for acquiring a connection
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        pool_size: int = 5,
        timeout: float = 30.0,
    ):
        """
        Initialize the connection pool.

        Args:
            db_path: Path to the SQLite database file
            pool_size: Maximum number of connections to maintain (default: 5)
            timeout: Timeout in seconds for acquiring a connection (default: 30)
        """
        self.db_path = Path(db_path)
        self.pool_size = pool_size
        self.timeout = timeout
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self._lock = threading.Lock()
        self._closed = False

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        for _ in range(self.pool_size):
            self._pool.put(self._create_connection())

    def _create_connection(self) -> sqlite3.Connection:
        """
        Create a new database connection.

        Settings applied:
        - WAL journal mode: readers do not block the single writer
        - NORMAL synchronous: faster writes with acceptable durability
        - foreign_keys: enforce ON DELETE CASCADE / SET NULL
        - busy_timeout: wait for the write lock instead of failing at once
        - Row factory: sqlite3.Row for dict-like access
        """
        conn = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,  # Connections move between worker threads
            isolation_level=None,  # Autocommit mode, we manage transactions manually
        )
        conn.row_factory = sqlite3.Row

        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute(f"PRAGMA busy_timeout={int(self.timeout * 1000)}")

        return conn

    def _acquire(self) -> sqlite3.Connection:
        if self._closed:
            raise RuntimeError("Connection pool is closed")
        try:
            return self._pool.get(timeout=self.timeout)
        except Empty:
            raise DatabaseError(
                "Timed out waiting for a database connection", operation="acquire"
            )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """
        Borrow a connection in autocommit mode.

        Each statement commits on its own; use this for reads and
        single-statement writes.
        """
        conn = self._acquire()
        try:
            yield conn
        finally:
            self._return_connection(conn)

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Borrow a connection inside a BEGIN IMMEDIATE transaction.

        The write lock is taken up front, so two conflicting transactions
        run one after the other rather than interleaving. Commits when the
        block exits normally and rolls back if it raises.

        Raises:
            RuntimeError: If the pool is closed
            DatabaseError: If timeout expires waiting for a connection
        """
        conn = self._acquire()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                try:
                    conn.execute("ROLLBACK")
                except sqlite3.Error:
                    # Connection might be broken, it is replaced on return
                    logger.warning("Rollback failed on %s", self.db_path)
                raise
            conn.execute("COMMIT")
        finally:
            self._return_connection(conn)

    def _return_connection(self, conn: sqlite3.Connection) -> None:
        """
        Return a connection to the pool.

        If the connection appears broken, create a new one instead.
        """
        if self._closed:
            conn.close()
            return
        try:
            conn.execute("SELECT 1")
            self._pool.put(conn)
        except sqlite3.Error:
            try:
                conn.close()
            except sqlite3.Error:
                pass
            self._pool.put(self._create_connection())

    def close(self) -> None:
        """
        Close all connections in the pool.

        This should be called during application shutdown.
        """
        with self._lock:
            self._closed = True

            while not self._pool.empty():
                try:
                    conn = self._pool.get_nowait()
                    conn.close()
                except Empty:
                    break
                except sqlite3.Error:
                    pass  # Ignore errors during cleanup

    @property
    def available_connections(self) -> int:
        """Return the number of connections currently available in the pool."""
        return self._pool.qsize()

    @property
    def is_closed(self) -> bool:
        """Return True if the pool has been closed."""
        return self._closed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


_default_pool: Optional[SQLiteConnectionPool] = None
_pool_lock = threading.Lock()


def get_connection_pool(
    db_path: Union[str, Path],
    pool_size: int = 5,
    timeout: float = 30.0,
) -> SQLiteConnectionPool:
    """
    Get or create the process-wide connection pool.

    Only one pool exists at a time; asking for a different path closes
    the old pool and opens a new one.
    """
    global _default_pool

    with _pool_lock:
        if (
            _default_pool is None
            or _default_pool.is_closed
            or _default_pool.db_path != Path(db_path)
        ):
            if _default_pool is not None and not _default_pool.is_closed:
                _default_pool.close()
            _default_pool = SQLiteConnectionPool(db_path, pool_size=pool_size, timeout=timeout)

        return _default_pool


def close_default_pool() -> None:
    """Close the process-wide connection pool."""
    global _default_pool

    with _pool_lock:
        if _default_pool is not None:
            _default_pool.close()
            _default_pool = None
