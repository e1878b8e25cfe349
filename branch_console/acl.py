# -*- coding: utf-8 -*-
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Set

from .errors import ErrorKind, Failure
from .storage import Storage


class FunctionKey(str, Enum):
    ROOMS = "rooms"
    STAFF = "staff"
    USERS = "users"
    HOLIDAYS = "holidays"
    CATEGORIES = "categories"
    DEPARTMENTS = "departments"
    OTHER_EVENTS = "otherEvents"
    PERMISSIONS = "permissions"
    SYSTEM_CONFIG = "systemConfig"
    WORK_SCHEDULES = "workSchedules"
    MEETING_SCHEDULES = "meetingSchedules"
    RESERVATIONS = "meetingRoomReservations"
    RESERVATION_APPROVAL = "reservationApproval"


class AccessLevel(str, Enum):
    NONE = "NONE"
    VIEW = "VIEW"
    EDIT = "EDIT"


Permissions = Dict[FunctionKey, AccessLevel]


class PermissionFormatError(ValueError):
    def __init__(self, problems: Dict[str, str]):
        super().__init__("invalid permissions: " + ", ".join(f"{k}: {v}" for k, v in problems.items()))
        self.problems = problems


# --- boundary validation of the stored JSON map ---
def parse_permissions(raw: Mapping[str, Any]) -> Permissions:
    """Strict: unknown function keys or levels raise PermissionFormatError."""
    if not isinstance(raw, Mapping):
        raise PermissionFormatError({"*": "expected an object"})
    out: Permissions = {}
    problems: Dict[str, str] = {}
    for k, v in raw.items():
        try:
            key = FunctionKey(k)
        except ValueError:
            problems[str(k)] = "unknown function key"
            continue
        try:
            out[key] = AccessLevel(str(v).upper())
        except ValueError:
            problems[str(k)] = f"unknown level {v!r}"
    if problems:
        raise PermissionFormatError(problems)
    return out


def dump_permissions(perms: Permissions) -> Dict[str, str]:
    return {k.value: v.value for k, v in perms.items() if v is not AccessLevel.NONE}


def _read_stored(raw: Mapping[str, Any]) -> Permissions:
    # rows written before validation existed: skip what we cannot read, never widen
    out: Permissions = {}
    for k, v in (raw or {}).items():
        try:
            out[FunctionKey(k)] = AccessLevel(str(v).upper())
        except ValueError:
            continue
    return out


# --- resolution ---
def group_permissions(user, storage: Optional[Storage] = None) -> Permissions:
    gid = getattr(user, "user_group_id", None)
    if not gid:
        return {}
    raw = (storage or Storage()).get_user_group_permissions(gid)
    return _read_stored(raw or {})


def access_level(user, key: FunctionKey, storage: Optional[Storage] = None) -> AccessLevel:
    return group_permissions(user, storage).get(FunctionKey(key), AccessLevel.NONE)


def can_edit(user, key: FunctionKey, storage: Optional[Storage] = None) -> bool:
    return access_level(user, key, storage) is AccessLevel.EDIT


def can_view(user, key: FunctionKey, storage: Optional[Storage] = None) -> bool:
    return access_level(user, key, storage) in (AccessLevel.VIEW, AccessLevel.EDIT)


def editable_staff_ids(user, storage: Optional[Storage] = None) -> Set[int]:
    uid = getattr(user, "id", None)
    if not uid:
        return set()
    return set((storage or Storage()).get_schedule_permissions_for_user(uid))


def check_schedule_write(user, staff_id: int, storage: Optional[Storage] = None) -> Optional[Failure]:
    """Both layers must hold: EDIT on workSchedules and a per-staff grant."""
    storage = storage or Storage()
    if not can_edit(user, FunctionKey.WORK_SCHEDULES, storage):
        return Failure(ErrorKind.FORBIDDEN, "EDIT permission on work schedules required")
    if staff_id not in editable_staff_ids(user, storage):
        return Failure(ErrorKind.FORBIDDEN, "No schedule permission for this staff member",
                       {"staffId": staff_id})
    return None
