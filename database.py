import logging
import queue
import sqlite3
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Sequence

from errors import DuplicateEntryError, StoreError

logger = logging.getLogger(__name__)

SCHEMA = """
    CREATE TABLE IF NOT EXISTS books (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        book_name TEXT NOT NULL,
        description TEXT,
        author TEXT NOT NULL,
        published_date TEXT NOT NULL,
        created_at TIMESTAMP NOT NULL DEFAULT (strftime('%Y-%m-%d %H:%M:%f', 'now')),
        UNIQUE (book_name, author)
    )
"""


class WriteResult(NamedTuple):
    last_row_id: Optional[int]
    row_count: int


class BookStore:
    """Parameterized-query executor over a bounded pool of sqlite3 connections.

    Connections are opened lazily up to ``pool_size``. When every connection is
    checked out, callers wait for one to be returned for at most
    ``acquire_timeout`` seconds.
    """

    def __init__(self, db_file: str, pool_size: int = 10, timeout: float = 5.0,
                 acquire_timeout: Optional[float] = 30.0) -> None:
        if pool_size < 1:
            raise ValueError("pool_size must be at least 1")
        self.db_file = db_file
        self.pool_size = pool_size
        self.timeout = timeout
        self.acquire_timeout = acquire_timeout
        self._pool: "queue.Queue[sqlite3.Connection]" = queue.Queue(maxsize=pool_size)
        self._lock = threading.Lock()
        self._opened = 0
        self._closed = False

    @classmethod
    def from_settings(cls, settings) -> "BookStore":
        return cls(
            settings.database_file,
            pool_size=settings.database_pool_size,
            timeout=settings.database_timeout,
            acquire_timeout=settings.database_acquire_timeout,
        )

    # ------------------------- Pool ------------------------- #
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_file, timeout=self.timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        return conn

    def get_db_connection(self) -> sqlite3.Connection:
        """Check a connection out of the pool, opening a new one while below capacity."""
        if self._closed:
            raise StoreError("Store is closed")
        try:
            return self._pool.get_nowait()
        except queue.Empty:
            pass

        with self._lock:
            can_open = self._opened < self.pool_size
            if can_open:
                self._opened += 1
        if can_open:
            try:
                return self._connect()
            except sqlite3.Error as e:
                with self._lock:
                    self._opened -= 1
                raise StoreError(f"Could not open database {self.db_file}: {e}") from e

        try:
            return self._pool.get(timeout=self.acquire_timeout)
        except queue.Empty:
            raise StoreError(
                f"Timed out after {self.acquire_timeout}s waiting for a database connection"
            ) from None

    def return_connection_to_pool(self, conn: sqlite3.Connection) -> None:
        if self._closed:
            conn.close()
            with self._lock:
                self._opened -= 1
            return
        self._pool.put_nowait(conn)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.get_db_connection()
        try:
            yield conn
        finally:
            self.return_connection_to_pool(conn)

    # ------------------------- Statements ------------------------- #
    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a read statement and return its rows as column -> value dicts."""
        with self.connection() as conn:
            try:
                rows = conn.execute(sql, tuple(params)).fetchall()
            except sqlite3.Error as e:
                raise self._translate(e, sql) from e
        return [dict(row) for row in rows]

    def execute(self, sql: str, params: Sequence[Any] = ()) -> WriteResult:
        """Run a write statement in its own transaction."""
        with self.connection() as conn:
            try:
                with conn:
                    cursor = conn.execute(sql, tuple(params))
            except sqlite3.Error as e:
                raise self._translate(e, sql) from e
        return WriteResult(cursor.lastrowid, cursor.rowcount)

    @staticmethod
    def _translate(error: sqlite3.Error, sql: str) -> StoreError:
        if isinstance(error, sqlite3.IntegrityError) and "UNIQUE" in str(error):
            return DuplicateEntryError(str(error))
        logger.error("Statement failed: %s | %s", " ".join(sql.split()), error)
        return StoreError(str(error))

    # ------------------------- Lifecycle ------------------------- #
    def create_tables(self) -> None:
        """Create the books table and its index if they do not exist."""
        with self.connection() as conn:
            try:
                with conn:
                    conn.execute(SCHEMA)
                    conn.execute("CREATE INDEX IF NOT EXISTS idx_books_created_at ON books(created_at)")
            except sqlite3.Error as e:
                raise self._translate(e, SCHEMA) from e

    def initialize(self) -> None:
        self.create_tables()
        logger.info("Database ready at %s (pool size %d)", self.db_file, self.pool_size)

    def ping(self) -> None:
        """Startup connectivity check; raises StoreError when the database is unreachable."""
        self.query("SELECT 1")

    def close(self) -> None:
        """Drain the pool and close every idle connection."""
        self._closed = True
        while True:
            try:
                conn = self._pool.get_nowait()
            except queue.Empty:
                break
            conn.close()
            with self._lock:
                self._opened -= 1
        logger.info("Database connections closed")
