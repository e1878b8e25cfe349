# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user

from ...acl import AccessLevel, FunctionKey, can_edit
from ...api_helpers import (
    BadPayload,
    fail_response,
    json_payload,
    outcome_response,
    parse_dt,
    parse_int,
    opt_str,
)
from ...models.meeting import ReservationStatus
from ...reservations import ReservationService
from ...security import permission_required
from ...storage import Storage
from ...clock import local_now

bp = Blueprint("reservations", __name__, url_prefix="/api/meeting-room-reservations")


def _service() -> ReservationService:
    storage = Storage()
    return ReservationService(
        storage,
        clock=local_now,
        is_approver=lambda u: can_edit(u, FunctionKey.RESERVATION_APPROVAL, storage),
    )


def _render(r):
    return r.to_dict()


def _with_conflicts(svc: ReservationService, outcome, status=200):
    if not outcome.ok:
        return fail_response(outcome.error)
    conflicts = [m.to_dict() for m in svc.overlapping_meetings(outcome.value)]
    return outcome_response(outcome, _render, status, conflicts=conflicts)


@bp.get("")
@login_required
@permission_required(FunctionKey.RESERVATIONS, AccessLevel.VIEW)
def index():
    status = (request.args.get("status") or "").strip().lower() or None
    if status and status not in {s.value for s in ReservationStatus}:
        return jsonify({"ok": False, "error": "bad_request", "message": f"unknown status {status!r}"}), 400
    sort_by = request.args.get("sortBy") or "created"
    return jsonify([_render(r) for r in _service().list(status=status, sort_by=sort_by)])


@bp.post("")
@login_required
@permission_required(FunctionKey.RESERVATIONS, AccessLevel.EDIT)
def create():
    payload = json_payload()
    try:
        room_id = parse_int(payload.get("roomId"), "roomId")
        start = parse_dt(payload.get("startDateTime"), "startDateTime")
        end = parse_dt(payload.get("endDateTime"), "endDateTime")
    except BadPayload as e:
        return fail_response(e.failure())
    svc = _service()
    out = svc.create(
        current_user,
        room_id,
        start,
        end,
        opt_str(payload.get("meetingContent")) or "",
        opt_str(payload.get("contactInfo")),
    )
    return _with_conflicts(svc, out, 201)


@bp.put("/<int:reservation_id>")
@login_required
@permission_required(FunctionKey.RESERVATIONS, AccessLevel.EDIT)
def edit(reservation_id: int):
    payload = json_payload()
    fields = {}
    try:
        if "roomId" in payload:
            fields["room_id"] = parse_int(payload["roomId"], "roomId")
        if "startDateTime" in payload:
            fields["start_datetime"] = parse_dt(payload["startDateTime"], "startDateTime")
        if "endDateTime" in payload:
            fields["end_datetime"] = parse_dt(payload["endDateTime"], "endDateTime")
    except BadPayload as e:
        return fail_response(e.failure())
    if "meetingContent" in payload:
        fields["meeting_content"] = opt_str(payload["meetingContent"]) or ""
    if "contactInfo" in payload:
        fields["contact_info"] = opt_str(payload["contactInfo"])
    return outcome_response(_service().edit(reservation_id, current_user, fields), _render)


@bp.delete("/<int:reservation_id>")
@login_required
def delete(reservation_id: int):
    out = _service().delete(reservation_id, current_user)
    if not out.ok:
        return fail_response(out.error)
    return jsonify({"ok": True, "id": out.value})


# --- approver actions ---
@bp.post("/<int:reservation_id>/approve")
@login_required
@permission_required(FunctionKey.RESERVATION_APPROVAL, AccessLevel.EDIT)
def approve(reservation_id: int):
    svc = _service()
    return _with_conflicts(svc, svc.approve(reservation_id, current_user))


@bp.post("/<int:reservation_id>/reject")
@login_required
@permission_required(FunctionKey.RESERVATION_APPROVAL, AccessLevel.EDIT)
def reject(reservation_id: int):
    reason = opt_str(json_payload().get("rejectionReason"))
    return outcome_response(_service().reject(reservation_id, current_user, reason), _render)


@bp.post("/<int:reservation_id>/revoke")
@login_required
@permission_required(FunctionKey.RESERVATION_APPROVAL, AccessLevel.EDIT)
def revoke(reservation_id: int):
    return outcome_response(_service().revoke(reservation_id, current_user), _render)
