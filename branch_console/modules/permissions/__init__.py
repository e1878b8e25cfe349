# -*- coding: utf-8 -*-
from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from sqlalchemy import select

from ...acl import (
    AccessLevel,
    FunctionKey,
    PermissionFormatError,
    dump_permissions,
    editable_staff_ids,
    parse_permissions,
)
from ...api_helpers import BadPayload, fail_response, json_payload, parse_int
from ...errors import ErrorKind, Failure
from ...extensions import db
from ...models.user import SchedulePermission, SystemUser, UserGroup
from ...security import permission_required
from ...storage import Storage

logger = logging.getLogger(__name__)

bp = Blueprint("permissions", __name__, url_prefix="/api")


@bp.get("/user-edit-permissions")
@login_required
def user_edit_permissions():
    return jsonify({"editableStaffIds": sorted(editable_staff_ids(current_user))})


# --- per-staff schedule grants ---
@bp.get("/schedule-permissions")
@login_required
@permission_required(FunctionKey.PERMISSIONS, AccessLevel.VIEW)
def schedule_permissions():
    q = select(SchedulePermission).order_by(SchedulePermission.user_id, SchedulePermission.staff_id)
    if request.args.get("userId"):
        try:
            q = q.where(SchedulePermission.user_id == parse_int(request.args["userId"], "userId"))
        except BadPayload as e:
            return fail_response(e.failure())
    rows = db.session.execute(q).scalars()
    return jsonify([{"id": r.id, "userId": r.user_id, "staffId": r.staff_id} for r in rows])


@bp.post("/schedule-permissions")
@login_required
@permission_required(FunctionKey.PERMISSIONS, AccessLevel.EDIT)
def grant_schedule_permission():
    payload = json_payload()
    try:
        user_id = parse_int(payload.get("userId"), "userId")
        staff_id = parse_int(payload.get("staffId"), "staffId")
    except BadPayload as e:
        return fail_response(e.failure())
    storage = Storage()
    if db.session.get(SystemUser, user_id) is None:
        return fail_response(Failure(ErrorKind.NOT_FOUND, "User not found", {"userId": user_id}))
    if storage.get_staff(staff_id) is None:
        return fail_response(Failure(ErrorKind.NOT_FOUND, "Staff not found", {"staffId": staff_id}))
    row, created = storage.add_schedule_permission(user_id, staff_id)
    storage.commit()
    if created:
        logger.info("schedule permission granted: user %s -> staff %s", user_id, staff_id)
    return jsonify({"id": row.id, "userId": row.user_id, "staffId": row.staff_id}), 201 if created else 200


@bp.delete("/schedule-permissions/<int:permission_id>")
@login_required
@permission_required(FunctionKey.PERMISSIONS, AccessLevel.EDIT)
def revoke_schedule_permission(permission_id: int):
    storage = Storage()
    if not storage.remove_schedule_permission(permission_id):
        storage.rollback()
        return fail_response(Failure(ErrorKind.NOT_FOUND, "Schedule permission not found", {"id": permission_id}))
    storage.commit()
    return "", 204


# --- user groups ---
@bp.get("/user-groups")
@login_required
@permission_required(FunctionKey.PERMISSIONS, AccessLevel.VIEW)
def user_groups():
    rows = db.session.execute(select(UserGroup).order_by(UserGroup.name)).scalars()
    return jsonify([{"id": g.id, "name": g.name, "permissions": dict(g.permissions or {})} for g in rows])


@bp.put("/user-groups/<int:group_id>/permissions")
@login_required
@permission_required(FunctionKey.PERMISSIONS, AccessLevel.EDIT)
def set_group_permissions(group_id: int):
    g = db.session.get(UserGroup, group_id)
    if g is None:
        return fail_response(Failure(ErrorKind.NOT_FOUND, "User group not found", {"id": group_id}))
    try:
        perms = parse_permissions(json_payload().get("permissions") or {})
    except PermissionFormatError as e:
        return fail_response(Failure(ErrorKind.BAD_REQUEST, str(e), {"problems": e.problems}))
    g.permissions = dump_permissions(perms)
    db.session.commit()
    logger.info("permissions of group %s set to %s", group_id, g.permissions)
    return jsonify({"id": g.id, "name": g.name, "permissions": g.permissions})
