"""
Database connection management for coderoom.

Provides the Database context manager and transaction helper.
Uses SQLite with WAL mode so readers keep working while a writer holds
the lock; concurrent writers wait on SQLite's own locking.
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator

from .schema import ensure_schema

# Milliseconds a writer waits for another connection's lock
BUSY_TIMEOUT_MS = 5000


def get_db_path(config: Optional[dict] = None) -> Path:
    """
    Get the database file path.

    Checks in order:
    1. CODEROOM_DB environment variable
    2. config['database']['path'] if provided
    3. Default: ~/.coderoom/coderoom.db

    Args:
        config: Optional configuration dictionary

    Returns:
        Path to database file
    """
    if 'CODEROOM_DB' in os.environ:
        return Path(os.environ['CODEROOM_DB'])

    if config and config.get('database', {}).get('path'):
        return Path(config['database']['path']).expanduser()

    return Path.home() / '.coderoom' / 'coderoom.db'


def get_connection(
    db_path: Optional[Path] = None,
    config: Optional[dict] = None,
    read_only: bool = False
) -> sqlite3.Connection:
    """
    Get a database connection.

    Creates the database and applies schema if it doesn't exist.

    Args:
        db_path: Optional explicit path to database
        config: Optional configuration dictionary
        read_only: If True, open in read-only mode

    Returns:
        SQLite connection
    """
    if db_path is None:
        db_path = get_db_path(config)
    db_path = Path(db_path)

    if read_only:
        conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True)
    else:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(db_path))

    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    conn.execute(f"PRAGMA busy_timeout = {BUSY_TIMEOUT_MS}")

    if not read_only:
        conn.execute("PRAGMA journal_mode = WAL")
        conn.execute("PRAGMA synchronous = NORMAL")
        ensure_schema(conn)

    return conn


class Database:
    """
    Database context manager for coderoom.

    Provides a clean interface for database operations with
    automatic connection management. Pending writes are committed
    when the block exits without an exception.

    Usage:
        with Database() as db:
            db.execute("SELECT * FROM repos")
            for row in db.fetchall():
                print(row['name'])

        # Or with explicit path
        with Database(db_path=Path("/tmp/index.db")) as db:
            ...

        # Read-only mode
        with Database(read_only=True) as db:
            ...
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        config: Optional[dict] = None,
        read_only: bool = False
    ):
        self.db_path = db_path
        self.config = config
        self.read_only = read_only
        self._conn: Optional[sqlite3.Connection] = None
        self._cursor: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> 'Database':
        self._conn = get_connection(
            db_path=self.db_path,
            config=self.config,
            read_only=self.read_only
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._cursor:
            self._cursor.close()
        if self._conn:
            if exc_type is None and not self.read_only:
                self._conn.commit()
            else:
                self._conn.rollback()
            self._conn.close()
            self._conn = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Get the underlying connection."""
        if self._conn is None:
            raise RuntimeError("Database not connected. Use 'with Database() as db:'")
        return self._conn

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute SQL statement."""
        self._cursor = self.conn.execute(sql, params)
        return self._cursor

    def executemany(self, sql: str, params_seq) -> sqlite3.Cursor:
        """Execute SQL statement with multiple parameter sets."""
        self._cursor = self.conn.executemany(sql, params_seq)
        return self._cursor

    def fetchone(self) -> Optional[sqlite3.Row]:
        """Fetch one row from last query."""
        if self._cursor is None:
            return None
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        """Fetch all rows from last query."""
        if self._cursor is None:
            return []
        return self._cursor.fetchall()

    def commit(self) -> None:
        """Commit current transaction."""
        self.conn.commit()

    def rollback(self) -> None:
        """Rollback current transaction."""
        self.conn.rollback()

    @property
    def in_transaction(self) -> bool:
        return self.conn.in_transaction

    @property
    def lastrowid(self) -> Optional[int]:
        """Get last inserted row ID."""
        if self._cursor is None:
            return None
        return self._cursor.lastrowid

    @property
    def rowcount(self) -> int:
        """Get number of rows affected by last statement."""
        if self._cursor is None:
            return 0
        return self._cursor.rowcount


@contextmanager
def transaction(db: Database) -> Generator[None, None, None]:
    """
    Context manager for explicit all-or-nothing transactions.

    Writes already pending on the connection are committed first, so a
    rollback only undoes the statements inside the block. The block takes
    SQLite's write lock up front; other connections keep reading the
    previous state until the commit.

    Usage:
        with Database() as db:
            with transaction(db):
                db.execute("DELETE ...")
                db.execute("INSERT ...")
                # Commits on success, rolls back on exception
    """
    if db.in_transaction:
        db.commit()
    db.execute("BEGIN IMMEDIATE")
    try:
        yield
        db.commit()
    except BaseException:
        db.rollback()
        raise


def reset_database(config: Optional[dict] = None) -> None:
    """
    Delete and recreate the database.

    Use with caution - this destroys all data, tags included!

    Args:
        config: Optional configuration dictionary
    """
    db_path = get_db_path(config)
    for suffix in ('', '-wal', '-shm'):
        candidate = Path(f"{db_path}{suffix}")
        if candidate.exists():
            candidate.unlink()

    # Recreate with fresh schema
    with Database(config=config) as _db:
        pass


def get_database_info(config: Optional[dict] = None) -> dict:
    """
    Get information about the database.

    Returns:
        Dictionary with database stats
    """
    db_path = get_db_path(config)

    if not db_path.exists():
        return {
            'exists': False,
            'path': str(db_path),
        }

    with Database(config=config, read_only=True) as db:
        counts = {}
        for table in ('repos', 'tags', 'branch_tips', 'commits'):
            db.execute(f"SELECT COUNT(*) FROM {table}")
            row = db.fetchone()
            counts[table] = row[0] if row else 0

        db.execute("SELECT MAX(version) FROM _schema_info")
        row = db.fetchone()
        schema_version = row[0] if row else 0

    file_size = db_path.stat().st_size

    return {
        'exists': True,
        'path': str(db_path),
        'size_bytes': file_size,
        'size_human': _human_size(file_size),
        'schema_version': schema_version,
        **counts,
    }


def _human_size(size_bytes: int) -> str:
    """Convert bytes to human-readable size."""
    size: float = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
