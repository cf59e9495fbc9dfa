"""SQLite connection manager with WAL mode, foreign keys and transactions."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from fantasycorps.errors import TransientError
from fantasycorps.paths import DB_PATH


def _ensure_schema(conn: sqlite3.Connection) -> None:
    """Create tables if missing (handles mid-run DB deletion)."""
    row = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='season'"
    ).fetchone()
    if row is None:
        from fantasycorps.db.migrations import apply_migrations
        apply_migrations(conn)


def get_connection(db_path: Path | None = None) -> sqlite3.Connection:
    """Open a SQLite connection with WAL journal mode, FKs, and Row factory.

    Parameters
    ----------
    db_path:
        Path to the database file.  Defaults to ``DB_PATH`` from
        :mod:`fantasycorps.paths`.
    """
    db = Path(db_path or DB_PATH)
    db.parent.mkdir(parents=True, exist_ok=True)
    try:
        conn = sqlite3.connect(str(db), timeout=10.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        _ensure_schema(conn)
    except sqlite3.OperationalError as exc:
        raise TransientError(f"Could not open database {db}: {exc}") from exc
    return conn


@contextmanager
def connect(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Context manager that yields a connection and closes it on exit.

    Usage::

        with connect() as conn:
            conn.execute("SELECT ...")
    """
    conn = get_connection(db_path)
    try:
        yield conn
    except sqlite3.OperationalError as exc:
        raise TransientError(f"Database operation failed: {exc}") from exc
    finally:
        conn.close()


@contextmanager
def transaction(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Yield a connection inside ``BEGIN IMMEDIATE``; commit or roll back.

    Every read and write made through the yielded connection belongs to one
    atomic unit: either all of it is visible after the block, or none of it.
    The write lock is taken up front so two concurrent submissions serialize
    instead of both reading a stale lineup claim.
    """
    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn
        conn.commit()
    except sqlite3.OperationalError as exc:
        conn.rollback()
        raise TransientError(f"Transaction failed: {exc}") from exc
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
