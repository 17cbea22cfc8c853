"""
Store connection management for the API.

The transaction store is a single SQLite table.  One process-wide
connection pool is created on startup (or lazily on first use), ensures the
schema exists, and is closed on shutdown by the app lifespan.  Request
handlers receive a pooled connection through the get_db() dependency.

Connections run in autocommit mode with WAL journaling, so a reseed's table
swap is atomic for concurrent readers.
"""

import os
import queue
import sqlite3
import threading
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from pathlib import Path

from api.errors import StoreFailure
from utils.database import init_pragmas, table_exists

TRANSACTIONS_TABLE = "transactions"

# Column order shared by the schema, the seed loader and SELECTs.
TRANSACTION_COLUMNS = [
    "id", "title", "description", "price", "category", "date_of_sale", "sold",
]

TRANSACTION_COLUMNS_DDL = """
    row_key INTEGER PRIMARY KEY,
    id INTEGER,
    title TEXT,
    description TEXT,
    price REAL NOT NULL CHECK (price >= 0),
    category TEXT,
    date_of_sale TEXT NOT NULL,
    sold INTEGER NOT NULL
"""

_DB_PATH: Path = Path(os.getenv("APP_DB_PATH", "transactions.sqlite"))
_POOL_SIZE: int = int(os.getenv("APP_DB_POOL_SIZE", "10"))


def get_db_path() -> Path:
    """Return the configured database path."""
    return _DB_PATH


def _casefold(value):
    """SQL function ``casefold(x)``: Unicode-aware lower-casing for search."""
    if isinstance(value, str):
        return value.casefold()
    return value


def open_connection(db_path: Path) -> sqlite3.Connection:
    """Open a single read-write connection with standard pragmas."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=False,
                           timeout=10, isolation_level=None)
    conn.row_factory = sqlite3.Row
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    init_pragmas(conn)
    return conn


def ensure_schema(conn: sqlite3.Connection) -> None:
    """Create the transactions table if it does not exist yet."""
    if not table_exists(conn, TRANSACTIONS_TABLE):
        conn.execute(
            f"CREATE TABLE IF NOT EXISTS {TRANSACTIONS_TABLE} ({TRANSACTION_COLUMNS_DDL})"
        )


class _ConnectionPool:
    """Simple SQLite connection pool using a queue for thread-safety.

    Connections are created lazily up to ``max_size``.  When a connection is
    released it is returned to the pool (not closed) so subsequent requests
    can reuse it.
    """

    def __init__(self, db_path: Path, max_size: int = 10) -> None:
        self._db_path = db_path
        self._max_size = max_size
        self._pool: queue.Queue[sqlite3.Connection] = queue.Queue(maxsize=max_size)
        self._active = 0
        self._lock = threading.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def acquire(self) -> sqlite3.Connection:
        """Acquire a connection from the pool (create if needed, block if full)."""
        try:
            return self._pool.get_nowait()
        except queue.Empty:
            pass
        with self._lock:
            if self._active < self._max_size:
                self._active += 1
                return open_connection(self._db_path)
        # Pool is full; wait for one to be released
        return self._pool.get(timeout=30)

    def release(self, conn: sqlite3.Connection) -> None:
        """Return a connection to the pool."""
        if conn.in_transaction:
            conn.rollback()
        try:
            self._pool.put_nowait(conn)
        except queue.Full:
            conn.close()
            with self._lock:
                self._active -= 1

    def close_all(self) -> None:
        """Close all pooled connections (call on shutdown)."""
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except queue.Empty:
                break
        with self._lock:
            self._active = 0


_pool: _ConnectionPool | None = None
_pool_lock = threading.Lock()


def init_pool(db_path: Path | None = None, pool_size: int | None = None) -> _ConnectionPool:
    """Create the process-wide pool and make sure the schema exists.

    Calling it again with a different path closes the old pool first.
    """
    global _pool, _DB_PATH
    with _pool_lock:
        if db_path is not None:
            _DB_PATH = Path(db_path)
        if _pool is not None and _pool.db_path == _DB_PATH:
            return _pool
        if _pool is not None:
            _pool.close_all()
        pool = _ConnectionPool(_DB_PATH, pool_size or _POOL_SIZE)
        conn = pool.acquire()
        try:
            ensure_schema(conn)
        finally:
            pool.release(conn)
        _pool = pool
        return pool


def configure(db_path: Path | None = None, pool_size: int | None = None) -> None:
    """Point future connections at ``db_path`` without opening anything.

    An existing pool for a different path is closed; the next init_pool()
    or get_db() call creates a fresh one.
    """
    global _pool, _DB_PATH, _POOL_SIZE
    with _pool_lock:
        if pool_size is not None:
            _POOL_SIZE = pool_size
        if db_path is None or Path(db_path) == _DB_PATH:
            return
        _DB_PATH = Path(db_path)
        if _pool is not None:
            _pool.close_all()
            _pool = None


def close_pool() -> None:
    """Close every pooled connection and forget the pool."""
    global _pool
    with _pool_lock:
        if _pool is not None:
            _pool.close_all()
            _pool = None


def _get_pool() -> _ConnectionPool:
    """Return the singleton connection pool, creating it if needed."""
    if _pool is None:
        return init_pool()
    return _pool


def get_db() -> Generator[sqlite3.Connection, None, None]:
    """FastAPI dependency: yield a pooled connection, release on exit.

    Raises StoreFailure (500) when the store cannot be opened.

    Usage in a route::

        from api.database import get_db
        from fastapi import Depends

        @router.get("/example")
        def example(conn=Depends(get_db)):
            ...
    """
    try:
        pool = _get_pool()
        conn = pool.acquire()
    except (sqlite3.Error, OSError, queue.Empty) as exc:
        raise StoreFailure(error="Database unavailable") from exc
    try:
        yield conn
    finally:
        pool.release(conn)


@contextmanager
def connection() -> Iterator[sqlite3.Connection]:
    """Context-manager form of get_db() for callers outside a dependency.

    Raises StoreFailure when the store cannot be opened, like get_db().
    """
    yield from get_db()
