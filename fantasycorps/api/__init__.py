"""Flask application factory."""

from pathlib import Path

from flask import Flask


def create_app(db_path: Path | None = None) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    from fantasycorps.paths import DB_PATH
    app.config["DB_PATH"] = Path(db_path or DB_PATH)

    from fantasycorps.api.middleware import register_middleware
    register_middleware(app)

    from fantasycorps.api.admin_bp import admin_bp
    from fantasycorps.api.ingest_bp import ingest_bp
    from fantasycorps.api.league_bp import league_bp
    from fantasycorps.api.lineup_bp import lineup_bp
    from fantasycorps.api.season_bp import season_bp

    app.register_blueprint(lineup_bp, url_prefix="/api")
    app.register_blueprint(season_bp, url_prefix="/api/season")
    app.register_blueprint(league_bp, url_prefix="/api/leagues")
    app.register_blueprint(ingest_bp, url_prefix="/api/ingest")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    return app
