"""Database schema — all CREATE TABLE statements."""

from __future__ import annotations

import sqlite3

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS season (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    season_uid TEXT NOT NULL,
    name TEXT NOT NULL,
    status TEXT NOT NULL,
    season_year INTEGER,
    start_date TEXT,
    end_date TEXT,
    point_cap INTEGER NOT NULL DEFAULT 150,
    data_doc_id TEXT,
    events_json TEXT NOT NULL DEFAULT '[]',
    last_processed_day INTEGER,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS corps_value (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    dataset_id TEXT NOT NULL,
    corps_name TEXT NOT NULL,
    source_year TEXT NOT NULL,
    points INTEGER NOT NULL,
    UNIQUE(dataset_id, corps_name)
);

CREATE TABLE IF NOT EXISTS final_ranking (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    year TEXT NOT NULL,
    corps_name TEXT NOT NULL,
    points INTEGER,
    UNIQUE(year, corps_name)
);

CREATE TABLE IF NOT EXISTS historical_event (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    year TEXT NOT NULL,
    event_name TEXT NOT NULL,
    event_date TEXT NOT NULL,
    location TEXT,
    off_season_day INTEGER,
    scores_json TEXT NOT NULL DEFAULT '[]',
    UNIQUE(year, event_name, event_date)
);

CREATE TABLE IF NOT EXISTS live_score (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    season_uid TEXT NOT NULL,
    corps_name TEXT NOT NULL,
    day INTEGER NOT NULL,
    event_name TEXT,
    captions_json TEXT NOT NULL DEFAULT '{}',
    UNIQUE(season_uid, corps_name, day)
);

CREATE TABLE IF NOT EXISTS user_profile (
    uid TEXT PRIMARY KEY,
    username TEXT,
    active_season_id TEXT,
    legacy_corps_json TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS corps_profile (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uid TEXT NOT NULL REFERENCES user_profile(uid),
    corps_class TEXT NOT NULL,
    corps_name TEXT,
    location TEXT,
    lineup_json TEXT,
    lineup_key TEXT,
    total_season_score REAL NOT NULL DEFAULT 0,
    selected_shows_json TEXT NOT NULL DEFAULT '{}',
    weekly_trades_json TEXT,
    last_scored_day INTEGER,
    registered_at TEXT,
    registered_season_id TEXT,
    season_history_json TEXT NOT NULL DEFAULT '[]',
    UNIQUE(uid, corps_class)
);

CREATE TABLE IF NOT EXISTS active_lineup (
    lineup_key TEXT PRIMARY KEY,
    uid TEXT NOT NULL,
    season_id TEXT NOT NULL,
    corps_class TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS recap (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    season_uid TEXT NOT NULL,
    season_name TEXT,
    day INTEGER NOT NULL,
    recap_json TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE(season_uid, day)
);

CREATE TABLE IF NOT EXISTS league (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS league_member (
    league_id INTEGER NOT NULL REFERENCES league(id) ON DELETE CASCADE,
    uid TEXT NOT NULL,
    PRIMARY KEY (league_id, uid)
);

CREATE TABLE IF NOT EXISTS league_matchup (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    league_id INTEGER NOT NULL REFERENCES league(id) ON DELETE CASCADE,
    season_uid TEXT NOT NULL,
    week INTEGER NOT NULL,
    corps_class TEXT NOT NULL,
    matchups_json TEXT NOT NULL DEFAULT '[]',
    UNIQUE(league_id, season_uid, week, corps_class)
);

CREATE TABLE IF NOT EXISTS season_record (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uid TEXT NOT NULL,
    season_uid TEXT NOT NULL,
    corps_class TEXT NOT NULL,
    wins INTEGER NOT NULL DEFAULT 0,
    losses INTEGER NOT NULL DEFAULT 0,
    ties INTEGER NOT NULL DEFAULT 0,
    UNIQUE(uid, season_uid, corps_class)
);

CREATE TABLE IF NOT EXISTS trophy (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uid TEXT NOT NULL,
    season_uid TEXT NOT NULL,
    day INTEGER NOT NULL,
    event_name TEXT NOT NULL,
    corps_class TEXT NOT NULL,
    trophy_type TEXT NOT NULL,
    rank INTEGER,
    score REAL,
    UNIQUE(uid, season_uid, day, event_name, corps_class, trophy_type)
);

CREATE TABLE IF NOT EXISTS corps_stats (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    season_uid TEXT NOT NULL,
    corps_name TEXT NOT NULL,
    source_year TEXT NOT NULL,
    points INTEGER,
    stats_json TEXT NOT NULL DEFAULT '{}',
    UNIQUE(season_uid, corps_name)
);

CREATE TABLE IF NOT EXISTS league_champion (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    league_id INTEGER NOT NULL REFERENCES league(id) ON DELETE CASCADE,
    season_uid TEXT NOT NULL,
    season_name TEXT,
    uid TEXT NOT NULL,
    username TEXT,
    total_score REAL NOT NULL,
    archived_at TEXT NOT NULL DEFAULT (datetime('now')),
    UNIQUE(league_id, season_uid)
);
"""


def init_schema(conn: sqlite3.Connection) -> None:
    """Execute the full schema DDL on *conn*."""
    conn.executescript(SCHEMA_SQL)
