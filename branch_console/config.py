import os
from pathlib import Path
from dotenv import load_dotenv
load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent  # <project>
INSTANCE_DIR = BASE_DIR / "instance"


def _default_sqlite_uri():
    return f"sqlite:///{(INSTANCE_DIR / 'branch_console.db').as_posix()}"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL") or _default_sqlite_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_AS_ASCII = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # timezone used for "now" stamps (approved_at etc.); never guessed from the request
    APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Asia/Ho_Chi_Minh")

    # work schedule policy defaults; rows in system_config override them
    SCHEDULE_DAILY_LIMIT = int(os.getenv("SCHEDULE_DAILY_LIMIT", "5"))
    ALLOW_WEEKEND_SCHEDULE = _env_bool("ALLOW_WEEKEND_SCHEDULE", False)
    WORK_START_TIME = os.getenv("WORK_START_TIME", "08:00")
    WORK_END_TIME = os.getenv("WORK_END_TIME", "17:30")

    # department whose staff appear on the public board
    BOARD_DEPARTMENT_CODE = os.getenv("BOARD_DEPARTMENT_CODE", "BGD")


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "WARNING"


def ensure_instance(app):
    # Flask instance path
    os.makedirs(app.instance_path, exist_ok=True)
    if app.config.get("SQLALCHEMY_DATABASE_URI", "").startswith(f"sqlite:///{INSTANCE_DIR.as_posix()}"):
        INSTANCE_DIR.mkdir(parents=True, exist_ok=True)
