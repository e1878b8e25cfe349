# -*- coding: utf-8 -*-
"""Branch wall clock. Every stored timestamp is naive local time in APP_TIMEZONE."""
from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

from flask import current_app


def app_timezone() -> ZoneInfo:
    return ZoneInfo(current_app.config.get("APP_TIMEZONE", "UTC"))


def local_now() -> datetime:
    """Naive wall-clock time in the configured branch timezone."""
    return datetime.now(app_timezone()).replace(tzinfo=None, microsecond=0)


def local_today() -> date:
    return local_now().date()
