# -*- coding: utf-8 -*-
from functools import wraps
from flask import jsonify
from flask_login import current_user

from .acl import AccessLevel, FunctionKey, can_edit, can_view


def permission_required(key: FunctionKey, level: AccessLevel = AccessLevel.VIEW):
    """
    Not logged in -> 401 JSON.
    Group lacks VIEW/EDIT on the function -> 403 JSON with the function key.
    """
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated:
                return jsonify({"ok": False, "error": "unauthorized", "message": "Login required"}), 401
            allowed = can_edit(current_user, key) if level is AccessLevel.EDIT else can_view(current_user, key)
            if not allowed:
                return jsonify({
                    "ok": False,
                    "error": "forbidden",
                    "message": f"{level.value} permission required for {key.value}",
                    "function": key.value,
                }), 403
            return f(*args, **kwargs)
        return wrapper
    return decorator
