# -*- coding: utf-8 -*-
from __future__ import annotations

from datetime import timedelta

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required, current_user
from sqlalchemy import select

from ...acl import AccessLevel, FunctionKey, check_schedule_write
from ...clock import local_today
from ...api_helpers import (
    BadPayload,
    fail_response,
    json_payload,
    outcome_response,
    parse_date,
    parse_dt,
    parse_flag,
    parse_int,
    opt_str,
)
from ...extensions import db
from ...models.staff import Department
from ...models.schedule import WorkType
from ...schedule_rules import (
    ScheduleRequest,
    ScheduleService,
    default_entries_for_day,
    end_of_day,
    start_of_day,
)
from ...security import permission_required
from ...storage import Storage
from ...system_config import load_schedule_policy

bp = Blueprint("schedule", __name__, url_prefix="/api")


def _service() -> ScheduleService:
    storage = Storage()
    return ScheduleService(storage, load_schedule_policy(), lambda u, sid: check_schedule_write(u, sid, storage))


def _work_type(raw) -> WorkType:
    try:
        return WorkType(raw)
    except ValueError:
        raise BadPayload("workType", f"workType: unknown value {raw!r}")


def _request_from(payload: dict) -> ScheduleRequest:
    return ScheduleRequest(
        staff_id=parse_int(payload.get("staffId"), "staffId"),
        start=parse_dt(payload.get("startDateTime"), "startDateTime"),
        end=parse_dt(payload.get("endDateTime"), "endDateTime"),
        work_type=_work_type(payload.get("workType")),
        custom_content=opt_str(payload.get("customContent")),
        full_day=parse_flag(payload.get("fullDay"), "fullDay"),
    )


def _patch_from(payload: dict) -> dict:
    patch = {}
    if "staffId" in payload:
        patch["staff_id"] = parse_int(payload["staffId"], "staffId")
    if "startDateTime" in payload:
        patch["start"] = parse_dt(payload["startDateTime"], "startDateTime")
    if "endDateTime" in payload:
        patch["end"] = parse_dt(payload["endDateTime"], "endDateTime")
    if "workType" in payload:
        patch["work_type"] = _work_type(payload["workType"])
    if "customContent" in payload:
        patch["custom_content"] = opt_str(payload["customContent"])
    if "fullDay" in payload:
        patch["full_day"] = parse_flag(payload["fullDay"], "fullDay")
    return patch


def _range_args():
    today = local_today()
    d1 = parse_date(request.args["startDate"], "startDate") if request.args.get("startDate") else today
    d2 = parse_date(request.args["endDate"], "endDate") if request.args.get("endDate") else d1 + timedelta(days=6)
    return d1, d2


@bp.get("/work-schedules")
@login_required
@permission_required(FunctionKey.WORK_SCHEDULES, AccessLevel.VIEW)
def index():
    try:
        d1, d2 = _range_args()
        staff_id = parse_int(request.args["staffId"], "staffId") if request.args.get("staffId") else None
    except BadPayload as e:
        return fail_response(e.failure())
    rows = Storage().list_work_schedules(staff_id, start_of_day(d1), end_of_day(d2))
    return jsonify([r.to_dict() for r in rows])


@bp.post("/work-schedules")
@login_required
@permission_required(FunctionKey.WORK_SCHEDULES, AccessLevel.EDIT)
def create():
    try:
        req = _request_from(json_payload())
    except BadPayload as e:
        return fail_response(e.failure())
    return outcome_response(_service().create(current_user, req), lambda r: r.to_dict(), 201)


@bp.post("/work-schedules/validate")
@login_required
@permission_required(FunctionKey.WORK_SCHEDULES, AccessLevel.EDIT)
def validate():
    """Dry run for the entry form: same checks as create/update, nothing is written."""
    payload = json_payload()
    try:
        req = _request_from(payload)
        exclude = parse_int(payload["excludeScheduleId"], "excludeScheduleId") if payload.get("excludeScheduleId") else None
    except BadPayload as e:
        return fail_response(e.failure())
    storage = Storage()
    denied = check_schedule_write(current_user, req.staff_id, storage)
    if denied:
        return fail_response(denied)
    svc = ScheduleService(storage, load_schedule_policy(), lambda u, sid: None)
    return outcome_response(svc.prevalidate(req, exclude), lambda _: {"isValid": True})


@bp.put("/work-schedules/<int:schedule_id>")
@login_required
@permission_required(FunctionKey.WORK_SCHEDULES, AccessLevel.EDIT)
def update(schedule_id: int):
    try:
        patch = _patch_from(json_payload())
    except BadPayload as e:
        return fail_response(e.failure())
    return outcome_response(_service().update(current_user, schedule_id, patch), lambda r: r.to_dict())


@bp.delete("/work-schedules/<int:schedule_id>")
@login_required
@permission_required(FunctionKey.WORK_SCHEDULES, AccessLevel.EDIT)
def delete(schedule_id: int):
    out = _service().delete(current_user, schedule_id)
    if not out.ok:
        return fail_response(out.error)
    return "", 204


# --- public read-only board ---
@bp.get("/public/board")
def board():
    try:
        day = parse_date(request.args["date"], "date") if request.args.get("date") else local_today()
    except BadPayload as e:
        return fail_response(e.failure())
    storage = Storage()
    code = current_app.config.get("BOARD_DEPARTMENT_CODE", "BGD")
    dept_id = db.session.execute(select(Department.id).where(Department.code == code)).scalar()
    staff = [s for s in storage.list_staff() if s.department_id == dept_id] if dept_id else []
    ids = {s.id for s in staff}
    rows = [r for r in storage.list_work_schedules(None, start_of_day(day), end_of_day(day)) if r.staff_id in ids]
    defaults = default_entries_for_day(staff, day, rows, storage.list_holidays())
    return jsonify({
        "date": day.isoformat(),
        "staff": [s.to_dict() for s in staff],
        "schedules": [r.to_dict() for r in rows] + defaults,
    })
