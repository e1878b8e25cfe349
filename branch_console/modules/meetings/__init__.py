# -*- coding: utf-8 -*-
from __future__ import annotations

from datetime import timedelta

from flask import Blueprint, jsonify, request
from flask_login import login_required

from ...acl import AccessLevel, FunctionKey
from ...api_helpers import BadPayload, fail_response, parse_date, parse_int
from ...clock import local_today
from ...schedule_rules import end_of_day, start_of_day
from ...security import permission_required
from ...storage import Storage

bp = Blueprint("meetings", __name__, url_prefix="/api/meeting-schedules")


@bp.get("")
@login_required
@permission_required(FunctionKey.MEETING_SCHEDULES, AccessLevel.VIEW)
def index():
    """Confirmed room bookings; approving a reservation is the only way rows get here."""
    try:
        d1 = parse_date(request.args["startDate"], "startDate") if request.args.get("startDate") else local_today()
        d2 = parse_date(request.args["endDate"], "endDate") if request.args.get("endDate") else d1 + timedelta(days=6)
        room_id = parse_int(request.args["roomId"], "roomId") if request.args.get("roomId") else None
    except BadPayload as e:
        return fail_response(e.failure())
    rows = Storage().list_meeting_schedules(start_of_day(d1), end_of_day(d2), room_id)
    return jsonify([r.to_dict() for r in rows])
