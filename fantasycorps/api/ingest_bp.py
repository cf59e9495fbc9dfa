"""Ingest blueprint — structured score events from the scraper."""

from flask import Blueprint, jsonify, request

from fantasycorps.api.helpers import db_path
from fantasycorps.logging_config import get_logger
from fantasycorps.scoring.ingest import ingest_historical_scores, ingest_live_scores

log = get_logger(__name__)

ingest_bp = Blueprint("ingest", __name__)


def _payload():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return None, ({"error": "A JSON score event is required."}, 400)
    return body, None


@ingest_bp.route("/historical", methods=["POST"])
def api_ingest_historical():
    body, err = _payload()
    if err:
        return jsonify(err[0]), err[1]
    return jsonify(ingest_historical_scores(body, db_path=db_path()))


@ingest_bp.route("/live", methods=["POST"])
def api_ingest_live():
    body, err = _payload()
    if err:
        return jsonify(err[0]), err[1]
    return jsonify(ingest_live_scores(body, db_path=db_path()))
