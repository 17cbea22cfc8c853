"""Database utilities for the transaction store.

Provides reusable functions for:
- Connection pragmas
- Explicit transactions on autocommit connections
- Batch insert operations
- Atomic whole-table replacement (staging table + rename swap)
- Small query helpers
"""

import sqlite3
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List


def init_pragmas(conn: sqlite3.Connection) -> None:
    """Initialize SQLite performance and reliability pragmas.

    - WAL mode so readers keep a consistent snapshot while a reseed writes
    - NORMAL synchronous mode for speed without data loss
    - busy_timeout so concurrent writers wait instead of failing at once

    Args:
        conn: SQLite connection to configure
    """
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA busy_timeout=5000")


@contextmanager
def transaction(conn: sqlite3.Connection, immediate: bool = False) -> Iterator[sqlite3.Connection]:
    """Run a block inside BEGIN ... COMMIT on an autocommit connection.

    Rolls back and re-raises on any exception.

    Args:
        conn: SQLite connection opened with isolation_level=None
        immediate: Take the write lock up front (BEGIN IMMEDIATE)
    """
    conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


def batch_insert(conn: sqlite3.Connection, query: str, rows: List[tuple],
                 batch_size: int = 1000) -> int:
    """Execute batch insert operations efficiently.

    Inserts rows in batches, one transaction per batch.

    Args:
        conn: SQLite connection
        query: SQL INSERT query with ? placeholders
        rows: List of tuples to insert
        batch_size: Number of rows per batch (default: 1000)

    Returns:
        Total number of rows inserted

    Example:
        rows = [(1, 'name1'), (2, 'name2'), ...]
        batch_insert(conn, 'INSERT INTO table (id, name) VALUES (?, ?)', rows)
    """
    total_inserted = 0

    for i in range(0, len(rows), batch_size):
        batch = rows[i:i + batch_size]
        with transaction(conn):
            conn.executemany(query, batch)
        total_inserted += len(batch)

    return total_inserted


def get_table_count(conn: sqlite3.Connection, table: str) -> int:
    """Get row count for a table.

    Args:
        conn: SQLite connection
        table: Table name

    Returns:
        Number of rows in table
    """
    result = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
    return result[0] if result else 0


def table_exists(conn: sqlite3.Connection, table: str) -> bool:
    """Check if a table exists in the database.

    Args:
        conn: SQLite connection
        table: Table name

    Returns:
        True if table exists, False otherwise
    """
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (table,)
    )
    return cursor.fetchone() is not None


def query_to_dicts(conn: sqlite3.Connection, query: str,
                   params: tuple | list = ()) -> List[Dict[str, Any]]:
    """Execute query and return results as list of dicts.

    Args:
        conn: SQLite connection (must have row_factory set)
        query: SQL query string
        params: Query parameters

    Returns:
        List of row dicts
    """
    cursor = conn.execute(query, params)
    return [dict(row) for row in cursor.fetchall()]


def replace_table(
    conn: sqlite3.Connection,
    table: str,
    columns_ddl: str,
    columns: List[str],
    rows: List[tuple],
    batch_size: int = 1000,
) -> int:
    """Replace the whole contents of ``table`` without an observable gap.

    Rows are loaded into a uniquely named staging table first.  The swap
    (rename live away, rename staging in, drop old) then runs in a single
    BEGIN IMMEDIATE transaction, so readers see either the old rows or the
    new rows, never an empty table.  If loading or swapping fails the live
    table is untouched and the staging table is dropped.

    Args:
        conn: SQLite connection opened with isolation_level=None
        table: Live table name
        columns_ddl: Column definitions used in CREATE TABLE (...)
        columns: Column names matching each row tuple
        rows: Row tuples to load
        batch_size: Rows per insert transaction

    Returns:
        Number of rows now in ``table``.
    """
    token = uuid.uuid4().hex[:12]
    staging = f"{table}_staging_{token}"
    retired = f"{table}_retired_{token}"

    conn.execute(f"CREATE TABLE {staging} ({columns_ddl})")
    try:
        placeholders = ", ".join("?" * len(columns))
        inserted = batch_insert(
            conn,
            f"INSERT INTO {staging} ({', '.join(columns)}) VALUES ({placeholders})",
            rows,
            batch_size=batch_size,
        )
        with transaction(conn, immediate=True):
            if table_exists(conn, table):
                conn.execute(f"ALTER TABLE {table} RENAME TO {retired}")
            conn.execute(f"ALTER TABLE {staging} RENAME TO {table}")
            conn.execute(f"DROP TABLE IF EXISTS {retired}")
    except BaseException:
        conn.execute(f"DROP TABLE IF EXISTS {staging}")
        raise
    return inserted
