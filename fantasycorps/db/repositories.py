"""Repository classes — one per table group.

Each repository takes a ``db_path`` in ``__init__``.  Every method also
accepts an optional ``conn``: when given, the statement joins the caller's
transaction (see :func:`fantasycorps.db.connection.transaction`) and the
caller commits; otherwise the repository opens, commits and closes its own
connection.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Generator, Iterable

from fantasycorps.db.connection import connect
from fantasycorps.logging_config import get_logger
from fantasycorps.paths import DB_PATH
from fantasycorps.schemas.season import CorpsProfile, Season, UserProfile

logger = get_logger(__name__)


def _dumps(value) -> str | None:
    return None if value is None else json.dumps(value, default=str)


def _loads(value, default=None):
    if value is None or value == "":
        return default
    return json.loads(value)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class _Repository:
    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or DB_PATH

    @contextmanager
    def _use(self, conn: sqlite3.Connection | None) -> Generator[sqlite3.Connection, None, None]:
        if conn is not None:
            yield conn
            return
        with connect(self.db_path) as own:
            yield own
            own.commit()


# ---------------------------------------------------------------------------
# SeasonRepository
# ---------------------------------------------------------------------------

class SeasonRepository(_Repository):
    """CRUD for the singleton ``season`` row."""

    def get_row(self, conn: sqlite3.Connection | None = None) -> dict | None:
        with self._use(conn) as c:
            row = c.execute("SELECT * FROM season WHERE id = 1").fetchone()
        return dict(row) if row else None

    def get(self, conn: sqlite3.Connection | None = None) -> Season | None:
        """Return the active season, or None if there is none.

        Raises ``pydantic.ValidationError`` for a malformed row.
        """
        row = self.get_row(conn)
        if row is None:
            return None
        return Season(
            season_uid=row["season_uid"],
            name=row["name"],
            status=row["status"],
            season_year=row["season_year"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            point_cap=row["point_cap"],
            data_doc_id=row["data_doc_id"],
            events=_loads(row["events_json"], []),
            last_processed_day=row["last_processed_day"],
        )

    def save(self, season: Season, conn: sqlite3.Connection | None = None) -> None:
        with self._use(conn) as c:
            c.execute(
                """INSERT INTO season
                   (id, season_uid, name, status, season_year, start_date, end_date,
                    point_cap, data_doc_id, events_json, last_processed_day)
                   VALUES (1, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                     season_uid=excluded.season_uid,
                     name=excluded.name,
                     status=excluded.status,
                     season_year=excluded.season_year,
                     start_date=excluded.start_date,
                     end_date=excluded.end_date,
                     point_cap=excluded.point_cap,
                     data_doc_id=excluded.data_doc_id,
                     events_json=excluded.events_json,
                     last_processed_day=excluded.last_processed_day,
                     created_at=datetime('now')""",
                (
                    season.season_uid,
                    season.name,
                    season.status.value,
                    season.season_year,
                    _iso(season.start_date),
                    _iso(season.end_date),
                    season.point_cap,
                    season.data_doc_id,
                    _dumps([d.model_dump() for d in season.events]),
                    season.last_processed_day,
                ),
            )

    def set_last_processed_day(self, day: int, conn: sqlite3.Connection | None = None) -> None:
        with self._use(conn) as c:
            c.execute("UPDATE season SET last_processed_day=? WHERE id = 1", (day,))


# ---------------------------------------------------------------------------
# DatasetRepository
# ---------------------------------------------------------------------------

class DatasetRepository(_Repository):
    """CRUD for ``corps_value`` (season datasets) and ``final_ranking``."""

    def replace_dataset(
        self, dataset_id: str, entries: Iterable[dict], conn: sqlite3.Connection | None = None,
    ) -> None:
        with self._use(conn) as c:
            c.execute("DELETE FROM corps_value WHERE dataset_id=?", (dataset_id,))
            c.executemany(
                """INSERT INTO corps_value (dataset_id, corps_name, source_year, points)
                   VALUES (?, ?, ?, ?)""",
                [
                    (dataset_id, e["corps_name"], str(e["source_year"]), int(e["points"]))
                    for e in entries
                ],
            )

    def get_dataset(self, dataset_id: str, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._use(conn) as c:
            rows = c.execute(
                """SELECT corps_name, source_year, points FROM corps_value
                   WHERE dataset_id=? ORDER BY points DESC, corps_name""",
                (dataset_id,),
            ).fetchall()
        return [dict(r) for r in rows]

    def save_final_rankings(
        self, year: str | int, rankings: Iterable[dict], conn: sqlite3.Connection | None = None,
    ) -> None:
        with self._use(conn) as c:
            c.executemany(
                """INSERT INTO final_ranking (year, corps_name, points)
                   VALUES (?, ?, ?)
                   ON CONFLICT(year, corps_name) DO UPDATE SET
                     points=excluded.points""",
                [(str(year), r["corps_name"], r.get("points")) for r in rankings],
            )

    def get_final_rankings(
        self, year: str | int | None = None, conn: sqlite3.Connection | None = None,
    ) -> list[dict]:
        with self._use(conn) as c:
            if year is None:
                rows = c.execute(
                    "SELECT year, corps_name, points FROM final_ranking ORDER BY year, points DESC"
                ).fetchall()
            else:
                rows = c.execute(
                    """SELECT year, corps_name, points FROM final_ranking
                       WHERE year=? ORDER BY points DESC""",
                    (str(year),),
                ).fetchall()
        return [dict(r) for r in rows]


# ---------------------------------------------------------------------------
# HistoricalRepository
# ---------------------------------------------------------------------------

class HistoricalRepository(_Repository):
    """CRUD for the ``historical_event`` table."""

    @staticmethod
    def _row(row: sqlite3.Row) -> dict:
        d = dict(row)
        d["scores"] = _loads(d.pop("scores_json"), [])
        return d

    def get_event(
        self, year: str, event_name: str, event_date: str, conn: sqlite3.Connection | None = None,
    ) -> dict | None:
        with self._use(conn) as c:
            row = c.execute(
                """SELECT * FROM historical_event
                   WHERE year=? AND event_name=? AND event_date=?""",
                (str(year), event_name, event_date),
            ).fetchone()
        return self._row(row) if row else None

    def upsert_event(self, event: dict, conn: sqlite3.Connection | None = None) -> None:
        with self._use(conn) as c:
            c.execute(
                """INSERT INTO historical_event
                   (year, event_name, event_date, location, off_season_day, scores_json)
                   VALUES (?, ?, ?, ?, ?, ?)
                   ON CONFLICT(year, event_name, event_date) DO UPDATE SET
                     location=COALESCE(excluded.location, historical_event.location),
                     off_season_day=excluded.off_season_day,
                     scores_json=excluded.scores_json""",
                (
                    str(event["year"]),
                    event["event_name"],
                    event["event_date"],
                    event.get("location"),
                    event.get("off_season_day"),
                    _dumps(event.get("scores", [])),
                ),
            )

    def events_for_year(self, year: str | int, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._use(conn) as c:
            rows = c.execute(
                """SELECT * FROM historical_event WHERE year=?
                   ORDER BY off_season_day, event_date, id""",
                (str(year),),
            ).fetchall()
        return [self._row(r) for r in rows]

    def all_events(self, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._use(conn) as c:
            rows = c.execute(
                "SELECT * FROM historical_event ORDER BY year, off_season_day, id"
            ).fetchall()
        return [self._row(r) for r in rows]


# ---------------------------------------------------------------------------
# LiveScoreRepository
# ---------------------------------------------------------------------------

class LiveScoreRepository(_Repository):
    """CRUD for the ``live_score`` table (keyed by live-calendar day)."""

    @staticmethod
    def _row(row: sqlite3.Row) -> dict:
        d = dict(row)
        d["captions"] = _loads(d.pop("captions_json"), {})
        return d

    def upsert(
        self,
        season_uid: str,
        corps_name: str,
        day: int,
        captions: dict[str, float],
        event_name: str | None = None,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        with self._use(conn) as c:
            c.execute(
                """INSERT INTO live_score (season_uid, corps_name, day, event_name, captions_json)
                   VALUES (?, ?, ?, ?, ?)
                   ON CONFLICT(season_uid, corps_name, day) DO UPDATE SET
                     event_name=COALESCE(excluded.event_name, live_score.event_name),
                     captions_json=excluded.captions_json""",
                (season_uid, corps_name, day, event_name, _dumps(captions)),
            )

    def for_day(self, season_uid: str, day: int, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._use(conn) as c:
            rows = c.execute(
                "SELECT * FROM live_score WHERE season_uid=? AND day=? ORDER BY corps_name",
                (season_uid, day),
            ).fetchall()
        return [self._row(r) for r in rows]

    def for_season(self, season_uid: str, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._use(conn) as c:
            rows = c.execute(
                "SELECT * FROM live_score WHERE season_uid=? ORDER BY corps_name, day",
                (season_uid,),
            ).fetchall()
        return [self._row(r) for r in rows]


# ---------------------------------------------------------------------------
# ProfileRepository
# ---------------------------------------------------------------------------

class ProfileRepository(_Repository):
    """CRUD for ``user_profile`` + ``corps_profile``.

    Profiles written before multi-class support kept a single corps as flat
    JSON on the user row (``legacy_corps_json``).  On first read that shape
    is moved into a ``worldClass`` corps row, so callers only ever see the
    class-keyed map.
    """

    @staticmethod
    def _corps(row: sqlite3.Row) -> CorpsProfile:
        return CorpsProfile(
            corps_class=row["corps_class"],
            corps_name=row["corps_name"],
            location=row["location"],
            lineup=_loads(row["lineup_json"]),
            lineup_key=row["lineup_key"],
            total_season_score=row["total_season_score"] or 0.0,
            selected_shows=_loads(row["selected_shows_json"], {}),
            weekly_trades=_loads(row["weekly_trades_json"]),
            last_scored_day=row["last_scored_day"],
            registered_at=row["registered_at"],
            registered_season_id=row["registered_season_id"],
            season_history=_loads(row["season_history_json"], []),
        )

    def _normalize_legacy(self, c: sqlite3.Connection, user: sqlite3.Row) -> None:
        legacy = _loads(user["legacy_corps_json"])
        if not legacy:
            return
        exists = c.execute(
            "SELECT 1 FROM corps_profile WHERE uid=? AND corps_class='worldClass'",
            (user["uid"],),
        ).fetchone()
        if exists is None:
            self.save_corps(
                user["uid"],
                CorpsProfile(
                    corps_class="worldClass",
                    corps_name=legacy.get("corpsName"),
                    location=legacy.get("location"),
                    lineup=legacy.get("lineup"),
                    lineup_key=legacy.get("lineupKey"),
                    total_season_score=legacy.get("totalSeasonScore") or 0.0,
                    selected_shows=legacy.get("selectedShows") or {},
                    season_history=legacy.get("seasonHistory") or [],
                ),
                conn=c,
            )
        c.execute("UPDATE user_profile SET legacy_corps_json=NULL WHERE uid=?", (user["uid"],))
        logger.info("Normalized legacy corps profile for %s", user["uid"])

    def get(self, uid: str, conn: sqlite3.Connection | None = None) -> UserProfile | None:
        with self._use(conn) as c:
            user = c.execute("SELECT * FROM user_profile WHERE uid=?", (uid,)).fetchone()
            if user is None:
                return None
            if user["legacy_corps_json"]:
                self._normalize_legacy(c, user)
            rows = c.execute(
                "SELECT * FROM corps_profile WHERE uid=? ORDER BY id", (uid,)
            ).fetchall()
        return UserProfile(
            uid=user["uid"],
            username=user["username"],
            active_season_id=user["active_season_id"],
            corps={r["corps_class"]: self._corps(r) for r in rows},
        )

    def ensure_user(
        self, uid: str, username: str | None = None, conn: sqlite3.Connection | None = None,
    ) -> None:
        with self._use(conn) as c:
            c.execute(
                """INSERT INTO user_profile (uid, username) VALUES (?, ?)
                   ON CONFLICT(uid) DO UPDATE SET
                     username=COALESCE(excluded.username, user_profile.username)""",
                (uid, username),
            )

    def save_legacy(self, uid: str, legacy: dict, username: str | None = None,
                    conn: sqlite3.Connection | None = None) -> None:
        """Store a flat single-corps profile (import path for old records)."""
        self.ensure_user(uid, username, conn=conn)
        with self._use(conn) as c:
            c.execute(
                "UPDATE user_profile SET legacy_corps_json=? WHERE uid=?",
                (_dumps(legacy), uid),
            )

    def save_corps(
        self, uid: str, corps: CorpsProfile, conn: sqlite3.Connection | None = None,
    ) -> None:
        with self._use(conn) as c:
            c.execute(
                """INSERT INTO corps_profile
                   (uid, corps_class, corps_name, location, lineup_json, lineup_key,
                    total_season_score, selected_shows_json, weekly_trades_json,
                    last_scored_day, registered_at, registered_season_id,
                    season_history_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(uid, corps_class) DO UPDATE SET
                     corps_name=excluded.corps_name,
                     location=excluded.location,
                     lineup_json=excluded.lineup_json,
                     lineup_key=excluded.lineup_key,
                     total_season_score=excluded.total_season_score,
                     selected_shows_json=excluded.selected_shows_json,
                     weekly_trades_json=excluded.weekly_trades_json,
                     last_scored_day=excluded.last_scored_day,
                     registered_at=excluded.registered_at,
                     registered_season_id=excluded.registered_season_id,
                     season_history_json=excluded.season_history_json""",
                (
                    uid,
                    corps.corps_class,
                    corps.corps_name,
                    corps.location,
                    _dumps(corps.lineup),
                    corps.lineup_key,
                    corps.total_season_score,
                    _dumps(corps.selected_shows),
                    _dumps(corps.weekly_trades.model_dump() if corps.weekly_trades else None),
                    corps.last_scored_day,
                    _iso(corps.registered_at),
                    corps.registered_season_id,
                    _dumps(corps.season_history),
                ),
            )

    def set_active_season(
        self, uid: str, season_uid: str | None, conn: sqlite3.Connection | None = None,
    ) -> None:
        with self._use(conn) as c:
            c.execute(
                "UPDATE user_profile SET active_season_id=? WHERE uid=?", (season_uid, uid)
            )

    def update_score(
        self,
        uid: str,
        corps_class: str,
        total: float,
        day: int,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        with self._use(conn) as c:
            c.execute(
                """UPDATE corps_profile SET total_season_score=?, last_scored_day=?
                   WHERE uid=? AND corps_class=?""",
                (total, day, uid, corps_class),
            )

    def active_uids(self, season_uid: str, conn: sqlite3.Connection | None = None) -> list[str]:
        with self._use(conn) as c:
            rows = c.execute(
                "SELECT uid FROM user_profile WHERE active_season_id=? ORDER BY uid",
                (season_uid,),
            ).fetchall()
        return [r["uid"] for r in rows]

    def active_profiles(
        self, season_uid: str, conn: sqlite3.Connection | None = None,
    ) -> list[UserProfile]:
        with self._use(conn) as c:
            uids = self.active_uids(season_uid, conn=c)
            profiles = [self.get(uid, conn=c) for uid in uids]
        return [p for p in profiles if p is not None]

    def reset_for_season(self, season_uid: str, conn: sqlite3.Connection | None = None) -> int:
        """Clear season-specific fields of every profile in *season_uid*.

        Name, location and season history survive; the user is detached from
        the season.  Returns the number of users reset.
        """
        with self._use(conn) as c:
            uids = self.active_uids(season_uid, conn=c)
            for uid in uids:
                c.execute(
                    """UPDATE corps_profile SET
                         lineup_json=NULL,
                         lineup_key=NULL,
                         selected_shows_json='{}',
                         weekly_trades_json=NULL,
                         total_season_score=0,
                         last_scored_day=NULL
                       WHERE uid=?""",
                    (uid,),
                )
                c.execute("UPDATE user_profile SET active_season_id=NULL WHERE uid=?", (uid,))
        return len(uids)


# ---------------------------------------------------------------------------
# LineupClaimRepository
# ---------------------------------------------------------------------------

class LineupClaimRepository(_Repository):
    """CRUD for ``active_lineup``: one holder per lineup key."""

    def get(self, lineup_key: str, conn: sqlite3.Connection | None = None) -> dict | None:
        with self._use(conn) as c:
            row = c.execute(
                "SELECT * FROM active_lineup WHERE lineup_key=?", (lineup_key,)
            ).fetchone()
        return dict(row) if row else None

    def claim(
        self,
        lineup_key: str,
        uid: str,
        season_uid: str,
        corps_class: str,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        with self._use(conn) as c:
            c.execute(
                """INSERT INTO active_lineup (lineup_key, uid, season_id, corps_class)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(lineup_key) DO UPDATE SET
                     uid=excluded.uid,
                     season_id=excluded.season_id,
                     corps_class=excluded.corps_class""",
                (lineup_key, uid, season_uid, corps_class),
            )

    def release(self, lineup_key: str, conn: sqlite3.Connection | None = None) -> None:
        with self._use(conn) as c:
            c.execute("DELETE FROM active_lineup WHERE lineup_key=?", (lineup_key,))

    def delete_for_season(self, season_uid: str, conn: sqlite3.Connection | None = None) -> int:
        with self._use(conn) as c:
            cur = c.execute("DELETE FROM active_lineup WHERE season_id=?", (season_uid,))
        return cur.rowcount

    def count_for_season(self, season_uid: str, conn: sqlite3.Connection | None = None) -> int:
        with self._use(conn) as c:
            row = c.execute(
                "SELECT COUNT(*) FROM active_lineup WHERE season_id=?", (season_uid,)
            ).fetchone()
        return row[0]


# ---------------------------------------------------------------------------
# RecapRepository
# ---------------------------------------------------------------------------

class RecapRepository(_Repository):
    """CRUD for the ``recap`` table: one entry per (season, day)."""

    def replace(
        self,
        season_uid: str,
        season_name: str,
        day: int,
        recap: dict,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        with self._use(conn) as c:
            c.execute(
                """INSERT INTO recap (season_uid, season_name, day, recap_json)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(season_uid, day) DO UPDATE SET
                     season_name=excluded.season_name,
                     recap_json=excluded.recap_json,
                     created_at=datetime('now')""",
                (season_uid, season_name, day, _dumps(recap)),
            )

    def get(self, season_uid: str, day: int, conn: sqlite3.Connection | None = None) -> dict | None:
        with self._use(conn) as c:
            row = c.execute(
                "SELECT recap_json FROM recap WHERE season_uid=? AND day=?",
                (season_uid, day),
            ).fetchone()
        return _loads(row["recap_json"]) if row else None

    def for_season(self, season_uid: str, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._use(conn) as c:
            rows = c.execute(
                "SELECT recap_json FROM recap WHERE season_uid=? ORDER BY day",
                (season_uid,),
            ).fetchall()
        return [_loads(r["recap_json"]) for r in rows]


# ---------------------------------------------------------------------------
# TrophyRepository
# ---------------------------------------------------------------------------

class TrophyRepository(_Repository):
    """CRUD for the ``trophy`` table."""

    def award(self, trophies: Iterable[dict], conn: sqlite3.Connection | None = None) -> int:
        rows = [
            (
                t["uid"], t["season_uid"], t["day"], t["event_name"],
                t["corps_class"], t["trophy_type"], t.get("rank"), t.get("score"),
            )
            for t in trophies
        ]
        with self._use(conn) as c:
            before = c.total_changes
            c.executemany(
                """INSERT OR IGNORE INTO trophy
                   (uid, season_uid, day, event_name, corps_class, trophy_type, rank, score)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                rows,
            )
            added = c.total_changes - before
        return added

    def for_user(self, uid: str, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._use(conn) as c:
            rows = c.execute(
                "SELECT * FROM trophy WHERE uid=? ORDER BY season_uid, day, trophy_type",
                (uid,),
            ).fetchall()
        return [dict(r) for r in rows]


# ---------------------------------------------------------------------------
# LeagueRepository
# ---------------------------------------------------------------------------

class LeagueRepository(_Repository):
    """CRUD for leagues, members, weekly matchups, records and champions."""

    def create_league(
        self, name: str, members: Iterable[str] = (), conn: sqlite3.Connection | None = None,
    ) -> int:
        with self._use(conn) as c:
            cur = c.execute("INSERT INTO league (name) VALUES (?)", (name,))
            league_id = cur.lastrowid
            c.executemany(
                "INSERT OR IGNORE INTO league_member (league_id, uid) VALUES (?, ?)",
                [(league_id, uid) for uid in members],
            )
        return league_id

    def list_leagues(self, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._use(conn) as c:
            rows = c.execute("SELECT * FROM league ORDER BY id").fetchall()
        return [dict(r) for r in rows]

    def get_league(self, league_id: int, conn: sqlite3.Connection | None = None) -> dict | None:
        with self._use(conn) as c:
            row = c.execute("SELECT * FROM league WHERE id=?", (league_id,)).fetchone()
        return dict(row) if row else None

    def members(self, league_id: int, conn: sqlite3.Connection | None = None) -> list[str]:
        with self._use(conn) as c:
            rows = c.execute(
                "SELECT uid FROM league_member WHERE league_id=? ORDER BY uid", (league_id,)
            ).fetchall()
        return [r["uid"] for r in rows]

    def get_matchups(
        self,
        league_id: int,
        season_uid: str,
        week: int,
        corps_class: str,
        conn: sqlite3.Connection | None = None,
    ) -> list[dict] | None:
        with self._use(conn) as c:
            row = c.execute(
                """SELECT matchups_json FROM league_matchup
                   WHERE league_id=? AND season_uid=? AND week=? AND corps_class=?""",
                (league_id, season_uid, week, corps_class),
            ).fetchone()
        return _loads(row["matchups_json"]) if row else None

    def week_matchups(
        self, league_id: int, season_uid: str, week: int, conn: sqlite3.Connection | None = None,
    ) -> dict[str, list[dict]]:
        with self._use(conn) as c:
            rows = c.execute(
                """SELECT corps_class, matchups_json FROM league_matchup
                   WHERE league_id=? AND season_uid=? AND week=? ORDER BY corps_class""",
                (league_id, season_uid, week),
            ).fetchall()
        return {r["corps_class"]: _loads(r["matchups_json"], []) for r in rows}

    def insert_matchups(
        self,
        league_id: int,
        season_uid: str,
        week: int,
        corps_class: str,
        matchups: list[dict],
        conn: sqlite3.Connection | None = None,
    ) -> bool:
        """Insert a bracket unless one already exists.  Returns True if written."""
        with self._use(conn) as c:
            cur = c.execute(
                """INSERT INTO league_matchup (league_id, season_uid, week, corps_class, matchups_json)
                   VALUES (?, ?, ?, ?, ?)
                   ON CONFLICT(league_id, season_uid, week, corps_class) DO NOTHING""",
                (league_id, season_uid, week, corps_class, _dumps(matchups)),
            )
        return cur.rowcount > 0

    def update_matchups(
        self,
        league_id: int,
        season_uid: str,
        week: int,
        corps_class: str,
        matchups: list[dict],
        conn: sqlite3.Connection | None = None,
    ) -> None:
        with self._use(conn) as c:
            c.execute(
                """UPDATE league_matchup SET matchups_json=?
                   WHERE league_id=? AND season_uid=? AND week=? AND corps_class=?""",
                (_dumps(matchups), league_id, season_uid, week, corps_class),
            )

    def increment_record(
        self,
        uid: str,
        season_uid: str,
        corps_class: str,
        outcome: str,
        conn: sqlite3.Connection | None = None,
    ) -> None:
        column = {"win": "wins", "loss": "losses", "tie": "ties"}[outcome]
        with self._use(conn) as c:
            c.execute(
                f"""INSERT INTO season_record (uid, season_uid, corps_class, {column})
                    VALUES (?, ?, ?, 1)
                    ON CONFLICT(uid, season_uid, corps_class) DO UPDATE SET
                      {column}=season_record.{column} + 1""",
                (uid, season_uid, corps_class),
            )

    def get_record(
        self, uid: str, season_uid: str, corps_class: str, conn: sqlite3.Connection | None = None,
    ) -> dict:
        with self._use(conn) as c:
            row = c.execute(
                """SELECT wins, losses, ties FROM season_record
                   WHERE uid=? AND season_uid=? AND corps_class=?""",
                (uid, season_uid, corps_class),
            ).fetchone()
        return dict(row) if row else {"wins": 0, "losses": 0, "ties": 0}

    def save_champion(self, league_id: int, season_uid: str, champion: dict,
                      conn: sqlite3.Connection | None = None) -> None:
        with self._use(conn) as c:
            c.execute(
                """INSERT INTO league_champion
                   (league_id, season_uid, season_name, uid, username, total_score)
                   VALUES (?, ?, ?, ?, ?, ?)
                   ON CONFLICT(league_id, season_uid) DO UPDATE SET
                     season_name=excluded.season_name,
                     uid=excluded.uid,
                     username=excluded.username,
                     total_score=excluded.total_score,
                     archived_at=datetime('now')""",
                (
                    league_id, season_uid, champion.get("season_name"),
                    champion["uid"], champion.get("username"), champion["total_score"],
                ),
            )

    def champions(self, league_id: int, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._use(conn) as c:
            rows = c.execute(
                "SELECT * FROM league_champion WHERE league_id=? ORDER BY archived_at",
                (league_id,),
            ).fetchall()
        return [dict(r) for r in rows]


# ---------------------------------------------------------------------------
# StatsRepository
# ---------------------------------------------------------------------------

class StatsRepository(_Repository):
    """CRUD for ``corps_stats`` (per-season caption statistics)."""

    def replace(self, season_uid: str, stats: Iterable[dict],
                conn: sqlite3.Connection | None = None) -> None:
        with self._use(conn) as c:
            c.execute("DELETE FROM corps_stats WHERE season_uid=?", (season_uid,))
            c.executemany(
                """INSERT INTO corps_stats (season_uid, corps_name, source_year, points, stats_json)
                   VALUES (?, ?, ?, ?, ?)""",
                [
                    (season_uid, s["corps_name"], str(s["source_year"]), s.get("points"),
                     _dumps(s["stats"]))
                    for s in stats
                ],
            )

    def for_season(self, season_uid: str, conn: sqlite3.Connection | None = None) -> list[dict]:
        with self._use(conn) as c:
            rows = c.execute(
                "SELECT * FROM corps_stats WHERE season_uid=? ORDER BY points DESC, corps_name",
                (season_uid,),
            ).fetchall()
        out = []
        for r in rows:
            d = dict(r)
            d["stats"] = _loads(d.pop("stats_json"), {})
            out.append(d)
        return out
