"""End-of-season archival of league champions."""

from __future__ import annotations

from pathlib import Path

from fantasycorps.db.connection import transaction
from fantasycorps.db.repositories import LeagueRepository, ProfileRepository, SeasonRepository
from fantasycorps.errors import NotFoundError
from fantasycorps.logging_config import get_logger
from fantasycorps.paths import DB_PATH

logger = get_logger(__name__)


def archive_season_results(db_path: Path | None = None) -> list[dict]:
    """Record each league's champion for the active season.

    The champion is the member (active in the season) with the highest sum
    of class season totals.  Re-running replaces the league's entry.
    """
    db_path = db_path or DB_PATH
    season = SeasonRepository(db_path).get()
    if season is None:
        raise NotFoundError("No active season document found")

    leagues = LeagueRepository(db_path)
    profiles = ProfileRepository(db_path)
    champions = []

    with transaction(db_path) as conn:
        for league in leagues.list_leagues(conn=conn):
            best = None
            for uid in leagues.members(league["id"], conn=conn):
                profile = profiles.get(uid, conn=conn)
                if profile is None or profile.active_season_id != season.season_uid:
                    continue
                total = sum(c.total_season_score for c in profile.corps.values())
                if best is None or total > best["total_score"]:
                    world = profile.corps.get("worldClass")
                    best = {
                        "league_id": league["id"],
                        "season_name": season.name,
                        "uid": uid,
                        "username": profile.username,
                        "corps_name": world.corps_name if world else None,
                        "total_score": total,
                    }
            if best is None:
                continue
            leagues.save_champion(league["id"], season.season_uid, best, conn=conn)
            champions.append(best)
            logger.info("Archived winner for league %r: %s", league["name"], best["uid"])

    logger.info("Archived %d league champions for %s", len(champions), season.name)
    return champions
