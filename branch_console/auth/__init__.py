# -*- coding: utf-8 -*-
import logging

from flask import Blueprint, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from sqlalchemy import select

from ..acl import editable_staff_ids
from ..api_helpers import json_payload, opt_str
from ..extensions import db
from ..models.user import SystemUser

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login():
    payload = json_payload()
    username = (opt_str(payload.get("username")) or "").strip()
    password = (opt_str(payload.get("password")) or "").strip()
    u = db.session.execute(select(SystemUser).where(SystemUser.username == username)).scalar_one_or_none()
    if not u or not u.is_active or not u.check_password(password):
        logger.info("failed login for %r", username)
        return jsonify({"ok": False, "error": "invalid_credentials", "message": "Invalid username or password"}), 401
    login_user(u, remember=True)
    return jsonify({"ok": True, "user": u.to_dict()})


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    return jsonify({"ok": True})


@auth_bp.get("/user")
@login_required
def me():
    data = current_user.to_dict()
    data["editableStaffIds"] = sorted(editable_staff_ids(current_user))
    return jsonify(data)
