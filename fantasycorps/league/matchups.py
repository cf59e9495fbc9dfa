"""Weekly head-to-head league matchups.

Brackets are generated once per (league, season, week, class) and resolved
at the end of the week from each member's season total in that class.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from fantasycorps.config import CORPS_CLASSES, schedule_cfg
from fantasycorps.db.connection import transaction
from fantasycorps.db.repositories import LeagueRepository, ProfileRepository, SeasonRepository
from fantasycorps.errors import NotFoundError, ValidationError
from fantasycorps.logging_config import get_logger
from fantasycorps.paths import DB_PATH
from fantasycorps.schemas.season import Season, UserProfile
from fantasycorps.season.state_machine import week_of

logger = get_logger(__name__)

BYE = "BYE"
TIE = "TIE"
MAX_WEEK = week_of(schedule_cfg.season_length)


@dataclass
class WeekSummary:
    week: int
    brackets: int = 0
    resolved: int = 0
    skipped: list[str] = field(default_factory=list)


def pair_members(members: list[str], rng: random.Random) -> list[dict]:
    """Shuffle *members* and pair neighbours; an odd member out gets a bye."""
    shuffled = list(members)
    rng.shuffle(shuffled)
    matchups = []
    for i in range(0, len(shuffled) - 1, 2):
        matchups.append({"pair": [shuffled[i], shuffled[i + 1]], "scores": {}, "winner": None})
    if len(shuffled) % 2:
        last = shuffled[-1]
        matchups.append({"pair": [last, BYE], "scores": {last: 0}, "winner": last})
    return matchups


def decide_winner(p1: str, p2: str, s1: float, s2: float) -> str:
    if s1 > s2:
        return p1
    if s2 > s1:
        return p2
    return TIE


def _class_total(profile: UserProfile | None, corps_class: str) -> float:
    if profile is None:
        return 0.0
    corps = profile.corps.get(corps_class)
    return corps.total_season_score if corps else 0.0


class LeagueMatchupEngine:
    """Generates and resolves weekly league brackets."""

    def __init__(self, db_path: Path | None = None, rng: random.Random | None = None):
        self.db_path = db_path or DB_PATH
        self.rng = rng or random.Random()
        self.seasons = SeasonRepository(self.db_path)
        self.leagues = LeagueRepository(self.db_path)
        self.profiles = ProfileRepository(self.db_path)

    def _season(self) -> Season:
        season = self.seasons.get()
        if season is None:
            raise NotFoundError("No active season")
        return season

    def current_week(self, season: Season, now: datetime | None = None) -> int:
        now = now or datetime.now()
        day = season.competition_day(now.date())
        return min(max(week_of(max(day, 1)), 1), MAX_WEEK)

    def _eligible(self, members: list[str], season: Season, corps_class: str, conn) -> list[str]:
        eligible = []
        for uid in members:
            profile = self.profiles.get(uid, conn=conn)
            if profile is None or profile.active_season_id != season.season_uid:
                continue
            corps = profile.corps.get(corps_class)
            if corps and corps.lineup:
                eligible.append(uid)
        return eligible

    def generate_week(self, week: int | None = None, now: datetime | None = None) -> WeekSummary:
        season = self._season()
        if week is None:
            week = self.current_week(season, now)
        if not 1 <= week <= MAX_WEEK:
            raise ValidationError(f"Week must be between 1 and {MAX_WEEK}, got {week}")

        summary = WeekSummary(week=week)
        with transaction(self.db_path) as conn:
            for league in self.leagues.list_leagues(conn=conn):
                members = self.leagues.members(league["id"], conn=conn)
                for corps_class in CORPS_CLASSES:
                    existing = self.leagues.get_matchups(
                        league["id"], season.season_uid, week, corps_class, conn=conn,
                    )
                    if existing is not None:
                        summary.skipped.append(f"{league['id']}:{corps_class}")
                        continue
                    eligible = self._eligible(members, season, corps_class, conn)
                    if len(eligible) < 2:
                        continue
                    bracket = pair_members(eligible, self.rng)
                    self.leagues.insert_matchups(
                        league["id"], season.season_uid, week, corps_class, bracket, conn=conn,
                    )
                    summary.brackets += 1
        logger.info(
            "Generated %d brackets for week %d (%d already existed)",
            summary.brackets, week, len(summary.skipped),
        )
        return summary

    def resolve_week(self, week: int) -> WeekSummary:
        """Score every unresolved matchup of *week* and update season records."""
        season = self._season()
        summary = WeekSummary(week=week)
        with transaction(self.db_path) as conn:
            for league in self.leagues.list_leagues(conn=conn):
                brackets = self.leagues.week_matchups(
                    league["id"], season.season_uid, week, conn=conn,
                )
                for corps_class, matchups in brackets.items():
                    changed = False
                    for matchup in matchups:
                        if matchup.get("winner"):
                            continue
                        p1, p2 = matchup["pair"]
                        s1 = _class_total(self.profiles.get(p1, conn=conn), corps_class)
                        s2 = _class_total(self.profiles.get(p2, conn=conn), corps_class)
                        winner = decide_winner(p1, p2, s1, s2)
                        matchup["scores"] = {p1: s1, p2: s2}
                        matchup["winner"] = winner

                        if winner == TIE:
                            self.leagues.increment_record(p1, season.season_uid, corps_class, "tie", conn=conn)
                            self.leagues.increment_record(p2, season.season_uid, corps_class, "tie", conn=conn)
                        else:
                            loser = p2 if winner == p1 else p1
                            self.leagues.increment_record(winner, season.season_uid, corps_class, "win", conn=conn)
                            self.leagues.increment_record(loser, season.season_uid, corps_class, "loss", conn=conn)
                        summary.resolved += 1
                        changed = True
                    if changed:
                        self.leagues.update_matchups(
                            league["id"], season.season_uid, week, corps_class, matchups, conn=conn,
                        )
        logger.info("Resolved %d matchups for week %d", summary.resolved, week)
        return summary
