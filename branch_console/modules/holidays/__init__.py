# -*- coding: utf-8 -*-
from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask_login import login_required

from ...acl import AccessLevel, FunctionKey
from ...api_helpers import BadPayload, fail_response, json_payload, opt_str, parse_date, parse_flag, parse_int
from ...errors import ErrorKind, Failure
from ...extensions import db
from ...holiday_calendar import holiday_dates_in_range, holidays_for_year, is_holiday
from ...models.holiday import Holiday
from ...security import permission_required
from ...storage import Storage

logger = logging.getLogger(__name__)

bp = Blueprint("holidays", __name__, url_prefix="/api/holidays")


def _not_found(holiday_id: int):
    return fail_response(Failure(ErrorKind.NOT_FOUND, "Holiday not found", {"id": holiday_id}))


@bp.get("")
@login_required
@permission_required(FunctionKey.HOLIDAYS, AccessLevel.VIEW)
def index():
    holidays = Storage().list_holidays()
    year = request.args.get("year")
    if year:
        try:
            y = parse_int(year, "year")
        except BadPayload as e:
            return fail_response(e.failure())
        return jsonify([
            {"holidayId": o.holiday_id, "name": o.name, "date": o.date.isoformat(), "isRecurring": o.is_recurring}
            for o in holidays_for_year(y, holidays)
        ])
    return jsonify([h.to_dict() for h in holidays])


@bp.get("/check")
@login_required
def check():
    """Used by the entry forms: is the date a holiday / which holidays fall in a range."""
    try:
        day = parse_date(request.args.get("date"), "date")
        until = parse_date(request.args["until"], "until") if request.args.get("until") else None
    except BadPayload as e:
        return fail_response(e.failure())
    holidays = Storage().list_holidays()
    body = {"date": day.isoformat(), "isHoliday": is_holiday(day, holidays)}
    if until is not None:
        body["holidayDates"] = [d.isoformat() for d in holiday_dates_in_range(day, until, holidays)]
    return jsonify(body)


def _apply(h: Holiday, payload: dict, partial: bool) -> None:
    if not partial or "name" in payload:
        name = (opt_str(payload.get("name")) or "").strip()
        if not name:
            raise BadPayload("name", "name: required")
        h.name = name
    if not partial or "date" in payload:
        h.date = parse_date(payload.get("date"), "date")
    if not partial or "isRecurring" in payload:
        h.is_recurring = parse_flag(payload.get("isRecurring"), "isRecurring")


@bp.post("")
@login_required
@permission_required(FunctionKey.HOLIDAYS, AccessLevel.EDIT)
def create():
    h = Holiday()
    try:
        _apply(h, json_payload(), partial=False)
    except BadPayload as e:
        return fail_response(e.failure())
    db.session.add(h)
    db.session.commit()
    logger.info("holiday %s created: %s %s", h.id, h.date, h.name)
    return jsonify(h.to_dict()), 201


@bp.put("/<int:holiday_id>")
@login_required
@permission_required(FunctionKey.HOLIDAYS, AccessLevel.EDIT)
def update(holiday_id: int):
    h = db.session.get(Holiday, holiday_id)
    if h is None:
        return _not_found(holiday_id)
    try:
        _apply(h, json_payload(), partial=True)
    except BadPayload as e:
        db.session.rollback()
        return fail_response(e.failure())
    db.session.commit()
    return jsonify(h.to_dict())


@bp.delete("/<int:holiday_id>")
@login_required
@permission_required(FunctionKey.HOLIDAYS, AccessLevel.EDIT)
def delete(holiday_id: int):
    h = db.session.get(Holiday, holiday_id)
    if h is None:
        return _not_found(holiday_id)
    db.session.delete(h)
    db.session.commit()
    return "", 204
