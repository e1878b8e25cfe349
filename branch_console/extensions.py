from flask import jsonify
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()


@login_manager.unauthorized_handler
def _unauthorized():
    # the UI is a SPA: answer with JSON instead of redirecting to a login page
    return jsonify({"ok": False, "error": "unauthorized", "message": "Login required"}), 401
