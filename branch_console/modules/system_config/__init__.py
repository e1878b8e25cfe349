# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required

from ...acl import AccessLevel, FunctionKey
from ...api_helpers import BadPayload, fail_response, json_payload, opt_str
from ...extensions import db
from ...models.system_config import SystemConfig
from ...security import permission_required
from ...system_config import create_config, delete_config, set_config_value

bp = Blueprint("system_config", __name__, url_prefix="/api/system-config")


@bp.get("")
@login_required
@permission_required(FunctionKey.SYSTEM_CONFIG, AccessLevel.VIEW)
def index():
    q = db.select(SystemConfig).order_by(SystemConfig.category, SystemConfig.key)
    category = request.args.get("category")
    if category:
        q = q.where(SystemConfig.category == category)
    return jsonify([r.to_dict() for r in db.session.execute(q).scalars()])


@bp.put("/<key>")
@login_required
@permission_required(FunctionKey.SYSTEM_CONFIG, AccessLevel.EDIT)
def update(key: str):
    payload = json_payload()
    if "value" not in payload:
        return fail_response(BadPayload("value", "value: required").failure())
    out = set_config_value(key, payload["value"])
    if not out.ok:
        return fail_response(out.error)
    return jsonify(out.value.to_dict())


@bp.post("")
@login_required
@permission_required(FunctionKey.SYSTEM_CONFIG, AccessLevel.EDIT)
def create():
    payload = json_payload()
    key = (opt_str(payload.get("key")) or "").strip()
    if not key:
        return fail_response(BadPayload("key", "key: required").failure())
    out = create_config(
        key,
        payload.get("value"),
        (opt_str(payload.get("type")) or "string").strip().lower(),
        opt_str(payload.get("description")) or "",
        opt_str(payload.get("category")) or "general",
    )
    if not out.ok:
        return fail_response(out.error)
    return jsonify(out.value.to_dict()), 201


@bp.delete("/<key>")
@login_required
@permission_required(FunctionKey.SYSTEM_CONFIG, AccessLevel.EDIT)
def delete(key: str):
    out = delete_config(key)
    if not out.ok:
        return fail_response(out.error)
    return "", 204
