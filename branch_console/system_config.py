# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from datetime import time
from typing import Optional

from flask import current_app

from .errors import ErrorKind, Outcome
from .extensions import db
from .models.system_config import SystemConfig
from .schedule_rules import SchedulePolicy

logger = logging.getLogger(__name__)

# key -> (config attr used as fallback, type, description, category)
DEFAULTS = [
    ("schedule.daily_limit", "SCHEDULE_DAILY_LIMIT", "number",
     "Maximum number of work schedules per staff member per day", "schedule"),
    ("schedule.allow_weekend", "ALLOW_WEEKEND_SCHEDULE", "boolean",
     "Allow work schedules on Saturday and Sunday", "schedule"),
    ("work_hours.start_time", "WORK_START_TIME", "string",
     "Daily work start time (HH:MM)", "timing"),
    ("work_hours.end_time", "WORK_END_TIME", "string",
     "Daily work end time (HH:MM)", "timing"),
]

_FALLBACK_ATTR = {key: attr for key, attr, *_ in DEFAULTS}


def _fallback(key: str, fallback):
    if fallback is not None:
        return fallback
    attr = _FALLBACK_ATTR.get(key)
    return current_app.config.get(attr) if attr else None


def get_config_value(key: str, fallback: Optional[str] = None) -> Optional[str]:
    row = db.session.execute(
        db.select(SystemConfig.value).where(SystemConfig.key == key)
    ).scalar()
    if row is None or row == "":
        fb = _fallback(key, fallback)
        return None if fb is None else str(fb)
    return row


def get_config_number(key: str, fallback: Optional[int] = None) -> int:
    raw = get_config_value(key)
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("system_config %s=%r is not a number, using fallback", key, raw)
        return int(_fallback(key, fallback) or 0)


def get_config_boolean(key: str, fallback: Optional[bool] = None) -> bool:
    raw = get_config_value(key)
    if raw is None:
        return bool(_fallback(key, fallback))
    return str(raw).strip().lower() in ("1", "true", "yes", "on")


def _parse_hhmm(raw: str) -> time:
    hh, mm = map(int, raw.strip().split(":"))
    return time(hh, mm)


CONFIG_TYPES = ("string", "number", "boolean", "color")

# minimum accepted value for number rows
_NUMBER_FLOOR = {"schedule.daily_limit": 1}


def normalize_config_value(key: str, type_: str, raw) -> str:
    """Canonical stored text for ``raw``; raises ValueError when it does not fit the row type."""
    if type_ == "number":
        if isinstance(raw, bool):
            raise ValueError(f"{key}: expected a number")
        try:
            value = int(str(raw).strip())
        except ValueError:
            raise ValueError(f"{key}: expected a number")
        floor = _NUMBER_FLOOR.get(key, 0)
        if value < floor:
            raise ValueError(f"{key}: must be at least {floor}")
        return str(value)
    if type_ == "boolean":
        if isinstance(raw, bool):
            return "true" if raw else "false"
        text = str(raw).strip().lower()
        if text not in ("true", "false"):
            raise ValueError(f"{key}: expected true or false")
        return text
    if raw is None:
        raise ValueError(f"{key}: value required")
    if key.startswith("work_hours."):
        try:
            t = _parse_hhmm(str(raw))
        except ValueError:
            raise ValueError(f"{key}: expected HH:MM")
        return f"{t.hour:02d}:{t.minute:02d}"
    return str(raw)


def set_config_value(key: str, raw) -> Outcome[SystemConfig]:
    row = db.session.execute(db.select(SystemConfig).where(SystemConfig.key == key)).scalar_one_or_none()
    if row is None:
        return Outcome.fail(ErrorKind.NOT_FOUND, "Config key not found", key=key)
    try:
        value = normalize_config_value(key, row.type, raw)
    except ValueError as e:
        return Outcome.fail(ErrorKind.BAD_REQUEST, str(e), key=key)
    if key.startswith("work_hours."):
        start = value if key == "work_hours.start_time" else get_config_value("work_hours.start_time")
        end = value if key == "work_hours.end_time" else get_config_value("work_hours.end_time")
        try:
            inverted = bool(start and end) and _parse_hhmm(start) >= _parse_hhmm(end)
        except ValueError:
            logger.warning("system_config work_hours pair %r-%r unreadable, skipping order check", start, end)
            inverted = False
        if inverted:
            return Outcome.fail(ErrorKind.BAD_REQUEST, "Work start time must be before end time", key=key)
    row.value = value
    db.session.commit()
    logger.info("system config %s set to %r", key, value)
    return Outcome.success(row)


def create_config(key: str, raw, type_: str = "string", description: str = "", category: str = "general") -> Outcome[SystemConfig]:
    if type_ not in CONFIG_TYPES:
        return Outcome.fail(ErrorKind.BAD_REQUEST, f"type: expected one of {', '.join(CONFIG_TYPES)}", field="type")
    exists = db.session.execute(db.select(SystemConfig.id).where(SystemConfig.key == key)).scalar()
    if exists is not None:
        return Outcome.fail(ErrorKind.BAD_REQUEST, "Config key already exists", key=key)
    try:
        value = normalize_config_value(key, type_, raw)
    except ValueError as e:
        return Outcome.fail(ErrorKind.BAD_REQUEST, str(e), key=key)
    row = SystemConfig(key=key, value=value, type=type_, description=description, category=category)
    db.session.add(row)
    db.session.commit()
    logger.info("created config: %s", key)
    return Outcome.success(row)


def delete_config(key: str) -> Outcome[str]:
    if key in _FALLBACK_ATTR:
        return Outcome.fail(ErrorKind.BAD_REQUEST, "Built-in config keys cannot be deleted", key=key)
    row = db.session.execute(db.select(SystemConfig).where(SystemConfig.key == key)).scalar_one_or_none()
    if row is None:
        return Outcome.fail(ErrorKind.NOT_FOUND, "Config key not found", key=key)
    db.session.delete(row)
    db.session.commit()
    logger.info("deleted config: %s", key)
    return Outcome.success(key)


def load_schedule_policy() -> SchedulePolicy:
    return SchedulePolicy(
        daily_limit=get_config_number("schedule.daily_limit"),
        allow_weekend=get_config_boolean("schedule.allow_weekend"),
        work_start=_parse_hhmm(get_config_value("work_hours.start_time")),
        work_end=_parse_hhmm(get_config_value("work_hours.end_time")),
    )


def seed_defaults() -> int:
    """Insert missing default config rows; existing values are kept."""
    existing = set(db.session.execute(db.select(SystemConfig.key)).scalars())
    created = 0
    for key, attr, type_, description, category in DEFAULTS:
        if key in existing:
            continue
        value = current_app.config.get(attr)
        if isinstance(value, bool):
            value = "true" if value else "false"
        db.session.add(SystemConfig(key=key, value=str(value), type=type_,
                                    description=description, category=category))
        created += 1
        logger.info("created config: %s", key)
    db.session.commit()
    return created
