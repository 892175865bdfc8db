"""
app.py
Gym Management API (admin backend).

Run:  flask --app app run          (or: python app.py)
CLI:  flask --app app init-db
      flask --app app seed-demo
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from time import perf_counter

import click
from flask import Flask, g, jsonify, request
from flask_cors import CORS

import clients
from config import Config
from db import Database
from errors import register_error_handlers

log = logging.getLogger(__name__)


def create_app(config: Config | None = None) -> Flask:
    """Create and configure the Flask application."""
    config = config or Config.from_env()

    app = Flask(__name__)
    app.config["GYM"] = config

    # ── Logging ──────────────────────────────────────────
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    CORS(app, resources={r"/api/*": {"origins": config.frontend_url}}, supports_credentials=True)

    # ── Database ─────────────────────────────────────────
    database = Database(config.database_path)
    database.init_schema()
    app.extensions["gym_db"] = database

    # ── Blueprints ───────────────────────────────────────
    from auth_router import bp as auth_bp
    from clients_router import bp as clients_bp
    from dashboard_router import bp as dashboard_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(clients_bp, url_prefix="/api/clients")
    app.register_blueprint(dashboard_bp, url_prefix="/api/dashboard")

    register_error_handlers(app)
    _register_request_logging(app)
    _register_cli(app)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({
            "success": True,
            "message": "Gym Management API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })

    return app


def _register_request_logging(app: Flask) -> None:
    @app.before_request
    def _start_timer():
        g._start = perf_counter()

    @app.after_request
    def _log_response(resp):
        dur_ms = (perf_counter() - g.get("_start", perf_counter())) * 1000
        log.info("%s %s -> %s (%.1fms)", request.method, request.path, resp.status_code, dur_ms)
        return resp


def _register_cli(app: Flask) -> None:
    @app.cli.command("init-db")
    def init_db_command():
        """Create the database tables."""
        app.extensions["gym_db"].init_schema()
        click.echo(f"Database ready at {app.config['GYM'].database_path}")

    @app.cli.command("seed-demo")
    def seed_demo_command():
        """Insert 3 sample clients with payments (adds new rows each run)."""
        ids = clients.insert_sample_data(app.extensions["gym_db"])
        click.echo(f"Inserted sample clients: {', '.join(str(i) for i in ids)}")


if __name__ == "__main__":
    settings = Config.from_env()
    create_app(settings).run(host="0.0.0.0", port=settings.port)
