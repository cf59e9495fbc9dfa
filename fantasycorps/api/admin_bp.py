"""Admin blueprint — manual job triggers."""

from flask import Blueprint, jsonify, request

from fantasycorps.api.helpers import db_path
from fantasycorps.jobs import run_job

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/run-job", methods=["POST"])
def api_run_job():
    body = request.get_json(silent=True) or {}
    name = body.get("name")
    if not name:
        return jsonify({"error": "name is required."}), 400

    result = run_job(name, db_path=db_path())
    return jsonify(result.to_dict())
