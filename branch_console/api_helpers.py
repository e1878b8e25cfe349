# -*- coding: utf-8 -*-
"""Small request/response helpers shared by the JSON blueprints."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Optional

from flask import jsonify, request

from .errors import ErrorKind, Failure, Outcome


class BadPayload(ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def failure(self) -> Failure:
        return Failure(ErrorKind.BAD_REQUEST, str(self), {"field": self.field})


def json_payload() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def parse_dt(value: Any, field: str) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except (TypeError, ValueError):
        raise BadPayload(field, f"{field}: expected ISO datetime")
    # stored as naive local time; an explicit offset is dropped, not converted
    return dt.replace(tzinfo=None)


def parse_date(value: Any, field: str) -> date:
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except (TypeError, ValueError):
        raise BadPayload(field, f"{field}: expected YYYY-MM-DD")


def parse_int(value: Any, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadPayload(field, f"{field}: expected integer")


def parse_flag(value: Any, field: str, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    raise BadPayload(field, f"{field}: expected true or false")


def opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def fail_response(failure: Failure):
    return jsonify(failure.to_dict()), failure.http_status


def outcome_response(outcome: Outcome, render, status: int = 200, **extra):
    if not outcome.ok:
        return fail_response(outcome.error)
    body = {"ok": True, "data": render(outcome.value)}
    body.update(extra)
    return jsonify(body), status
