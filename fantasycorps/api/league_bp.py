"""League blueprint — weekly matchup brackets."""

from flask import Blueprint, jsonify

from fantasycorps.api.helpers import db_path
from fantasycorps.db.repositories import LeagueRepository, SeasonRepository
from fantasycorps.errors import NotFoundError

league_bp = Blueprint("league", __name__)


@league_bp.route("/<int:league_id>/matchups/<int:week>")
def api_matchups(league_id: int, week: int):
    season = SeasonRepository(db_path()).get()
    if season is None:
        raise NotFoundError("No active season")
    leagues = LeagueRepository(db_path())
    league = leagues.get_league(league_id)
    if league is None:
        raise NotFoundError(f"League {league_id} not found")

    return jsonify({
        "league_id": league_id,
        "league_name": league["name"],
        "season_uid": season.season_uid,
        "week": week,
        "matchups": leagues.week_matchups(league_id, season.season_uid, week),
    })
