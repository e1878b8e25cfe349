# -*- coding: utf-8 -*-
import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config, ensure_instance
from .extensions import db, migrate, login_manager

# blueprints
from .auth import auth_bp
from .modules.schedule import bp as schedule_bp
from .modules.reservations import bp as reservations_bp
from .modules.holidays import bp as holidays_bp
from .modules.permissions import bp as permissions_bp
from .modules.system_config import bp as system_config_bp
from .modules.meetings import bp as meetings_bp

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level) -> None:
    root = logging.getLogger()
    if not any(getattr(h, "_branch_console", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._branch_console = True
        root.addHandler(handler)
    root.setLevel(level)


def create_app(config_object=Config):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    setup_logging(app.config.get("LOG_LEVEL", "INFO"))
    ensure_instance(app)

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # models must be imported before create_all / migrations see the metadata
    from . import models  # noqa: F401

    # --- json errors ---
    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        kind = {401: "unauthorized", 403: "forbidden", 404: "not_found"}.get(e.code, "bad_request")
        return jsonify({"ok": False, "error": kind, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def unexpected_error(e: Exception):
        logger.exception("unhandled error")
        db.session.rollback()
        return jsonify({"ok": False, "error": "internal_error", "message": "Internal server error"}), 500

    # --- blueprints ---
    app.register_blueprint(auth_bp)
    app.register_blueprint(schedule_bp)
    app.register_blueprint(reservations_bp)
    app.register_blueprint(holidays_bp)
    app.register_blueprint(permissions_bp)
    app.register_blueprint(system_config_bp)
    app.register_blueprint(meetings_bp)

    @app.get("/")
    def home():
        return jsonify({"ok": True, "service": "branch-console"})

    logger.info("app created (db=%s)", app.config.get("SQLALCHEMY_DATABASE_URI"))
    return app
