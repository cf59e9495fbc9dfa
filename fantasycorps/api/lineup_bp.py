"""Lineup blueprint — lineup submission and weekly show selection."""

from flask import Blueprint, jsonify, request

from fantasycorps.api.helpers import db_path, require_int, require_uid
from fantasycorps.lineup.shows import select_shows
from fantasycorps.lineup.validator import LineupValidator
from fantasycorps.logging_config import get_logger

log = get_logger(__name__)

lineup_bp = Blueprint("lineup", __name__)


@lineup_bp.route("/lineup", methods=["POST"])
def api_save_lineup():
    body = request.get_json(silent=True) or {}
    uid, err = require_uid(body)
    if err:
        return jsonify(err[0]), err[1]

    result = LineupValidator(db_path()).submit(
        uid,
        body.get("lineup"),
        body.get("corps_class"),
        corps_name=body.get("corps_name"),
    )
    return jsonify(result.to_dict())


@lineup_bp.route("/shows", methods=["POST"])
def api_select_shows():
    body = request.get_json(silent=True) or {}
    uid, err = require_uid(body)
    if err:
        return jsonify(err[0]), err[1]
    week, err = require_int(body, "week")
    if err:
        return jsonify(err[0]), err[1]

    shows = body.get("shows")
    if not isinstance(shows, list):
        return jsonify({"error": "shows must be a list."}), 400

    stored = select_shows(uid, week, shows, body.get("corps_class"), db_path=db_path())
    return jsonify({
        "success": True,
        "message": f"Successfully saved selections for week {week}.",
        "shows": stored,
    })
