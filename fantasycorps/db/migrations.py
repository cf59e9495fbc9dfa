"""Versioned database migration system.

A ``schema_version`` table records the last applied migration; numbered
migration functions bring the database forward one version at a time.
"""

from __future__ import annotations

import sqlite3
from typing import Callable

from fantasycorps.db.schema import init_schema
from fantasycorps.logging_config import get_logger

logger = get_logger(__name__)

# ── Version tracking table ─────────────────────────────────────────────

_VERSION_DDL = """\
CREATE TABLE IF NOT EXISTS schema_version (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    version INTEGER NOT NULL DEFAULT 0
);
"""


def _ensure_version_table(conn: sqlite3.Connection) -> None:
    """Create the ``schema_version`` table if it does not exist."""
    conn.executescript(_VERSION_DDL)
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    if row is None:
        conn.execute("INSERT INTO schema_version (id, version) VALUES (1, 0)")
        conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the current schema version (0 means brand-new database)."""
    _ensure_version_table(conn)
    row = conn.execute("SELECT version FROM schema_version WHERE id = 1").fetchone()
    return row[0] if row else 0


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    conn.execute(
        "UPDATE schema_version SET version = ? WHERE id = 1", (version,)
    )
    conn.commit()


# ── Migrations ─────────────────────────────────────────────────────────

def _migration_001_initial_schema(conn: sqlite3.Connection) -> None:
    """Migration 1: create all tables (season, corps_value, final_ranking,
    historical_event, live_score, user_profile, corps_profile, active_lineup,
    recap, league, league_member, league_matchup, season_record).
    """
    init_schema(conn)


def _migration_002_processing_marker(conn: sqlite3.Connection) -> None:
    """Add last_processed_day to season and last_scored_day to corps_profile."""
    for ddl in (
        "ALTER TABLE season ADD COLUMN last_processed_day INTEGER",
        "ALTER TABLE corps_profile ADD COLUMN last_scored_day INTEGER",
    ):
        try:
            conn.execute(ddl)
        except sqlite3.OperationalError:
            pass  # Column already exists
    conn.commit()


def _migration_003_job_tables(conn: sqlite3.Connection) -> None:
    """Create trophy, corps_stats and league_champion tables."""
    # init_schema is idempotent (CREATE TABLE IF NOT EXISTS)
    init_schema(conn)
    conn.commit()


# Registry: version number -> migration function.
# Each migration brings the DB from (version - 1) to (version).
_MIGRATIONS: dict[int, Callable[[sqlite3.Connection], None]] = {
    1: _migration_001_initial_schema,
    2: _migration_002_processing_marker,
    3: _migration_003_job_tables,
}

LATEST_VERSION: int = max(_MIGRATIONS)


# ── Public API ─────────────────────────────────────────────────────────

def apply_migrations(conn: sqlite3.Connection) -> None:
    """Apply any pending migrations to bring the database up to date.

    Safe to call on every startup; already-applied migrations are skipped.
    """
    current = get_schema_version(conn)
    if current >= LATEST_VERSION:
        return

    for version in range(current + 1, LATEST_VERSION + 1):
        migration_fn = _MIGRATIONS.get(version)
        if migration_fn is None:
            raise RuntimeError(
                f"Missing migration function for version {version}"
            )
        logger.info("Applying migration %d: %s", version, migration_fn.__doc__.strip().split('\n')[0])
        migration_fn(conn)
        _set_schema_version(conn, version)

    logger.info("Database schema is now at version %d", LATEST_VERSION)
