"""Season blueprint — current season and daily recaps."""

from flask import Blueprint, jsonify

from fantasycorps.api.helpers import db_path
from fantasycorps.db.repositories import RecapRepository, SeasonRepository
from fantasycorps.errors import NotFoundError

season_bp = Blueprint("season", __name__)


def _active_season():
    season = SeasonRepository(db_path()).get()
    if season is None:
        raise NotFoundError("No active season")
    return season


@season_bp.route("")
def api_season():
    season = _active_season()
    return jsonify(season.model_dump(mode="json"))


@season_bp.route("/recap/<int:day>")
def api_recap(day: int):
    season = _active_season()
    recap = RecapRepository(db_path()).get(season.season_uid, day)
    if recap is None:
        raise NotFoundError(f"No recap for day {day} of {season.name}")
    return jsonify({"season_uid": season.season_uid, "season_name": season.name, **recap})
