"""Shared helpers for API blueprints."""

from pathlib import Path

from flask import current_app


def db_path() -> Path:
    return current_app.config["DB_PATH"]


def require_uid(args_or_body):
    """Extract the caller uid. Returns (str, None) or (None, error_tuple)."""
    uid = args_or_body.get("uid")
    if not uid or not isinstance(uid, str):
        return None, ({"error": "uid is required."}, 400)
    return uid, None


def require_int(args_or_body, name):
    """Extract an integer field. Returns (int, None) or (None, error_tuple)."""
    value = args_or_body.get(name)
    if value is None or value == "":
        return None, ({"error": f"{name} is required."}, 400)
    try:
        return int(value), None
    except (TypeError, ValueError):
        return None, ({"error": f"{name} must be an integer."}, 400)
