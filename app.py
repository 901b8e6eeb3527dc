from __future__ import annotations
import os
from flask import Flask
from sqlalchemy import inspect

from config import config_map
from extensions import db, migrate


def _seed_from_config(app):
    if not app.config.get("SEED_DEMO_DATA"):
        return
    with app.app_context():
        # tables may not exist yet (before `flask db upgrade`)
        if not inspect(db.engine).has_table("teacher"):
            return
        from seed import seed_demo  # local import to avoid cycles
        seed_demo()


def register_blueprints(app: Flask) -> None:
    from blueprints.core import bp as core_bp
    from blueprints.booking.routes import api_bp as booking_api_bp
    from blueprints.availability.routes import api_bp as availability_api_bp
    from blueprints.reports.routes import api_bp as reports_api_bp

    # core without prefix -> '/health' at the root
    app.register_blueprint(core_bp)
    app.register_blueprint(booking_api_bp, url_prefix="/api/v1")
    app.register_blueprint(availability_api_bp, url_prefix="/api/v1")
    app.register_blueprint(reports_api_bp, url_prefix="/api/v1")


def create_app(config_name: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    cfg_name = config_name or os.getenv("FLASK_CONFIG", "default")
    app.config.from_object(config_map[cfg_name])
    # pytest always sets PYTEST_CURRENT_TEST: keep every test on its own in-memory database
    if os.environ.get("PYTEST_CURRENT_TEST"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///:memory:"
        app.config["SEED_DEMO_DATA"] = False
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", {"connect_args": {"check_same_thread": False}})
    app.json.sort_keys = app.config.get("JSON_SORT_KEYS", False)

    os.makedirs(app.instance_path, exist_ok=True)
    db.init_app(app)
    migrate.init_app(app, db, render_as_batch=True)
    register_blueprints(app)
    _seed_from_config(app)
    return app
