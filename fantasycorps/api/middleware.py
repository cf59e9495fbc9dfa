"""Flask middleware — no-cache headers and error handlers."""

from flask import Flask, jsonify, request

from fantasycorps.errors import EngineError
from fantasycorps.logging_config import get_logger

log = get_logger(__name__)


def register_middleware(app: Flask) -> None:
    """Register middleware on the Flask app."""

    @app.after_request
    def add_no_cache_headers(response):
        if request.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"
        return response

    @app.errorhandler(EngineError)
    def engine_error(exc: EngineError):
        if exc.status_code >= 500:
            log.error("%s on %s: %s", type(exc).__name__, request.path, exc)
        else:
            log.info("%s on %s: %s", type(exc).__name__, request.path, exc)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(404)
    def not_found(_):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(500)
    def internal_error(_):
        return jsonify({"error": "Internal server error"}), 500
