"""Shared fixtures: app on in-memory SQLite, model factories, logged-in clients."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

import pytest
from flask import g

from branch_console import create_app
from branch_console.config import TestConfig
from branch_console.extensions import db as _db
from branch_console.models import (
    Department,
    MeetingRoom,
    SchedulePermission,
    Staff,
    SystemUser,
    UserGroup,
    WorkSchedule,
)

PASSWORD = "secret-pass"


@pytest.fixture()
def app():
    app = create_app(TestConfig)

    @app.before_request
    def _reload_login_user():
        # requests reuse the app context pushed below, so g outlives a single request
        g.pop("_login_user", None)

    with app.app_context():
        _db.create_all()
        try:
            yield app
        finally:
            _db.session.remove()
            _db.drop_all()


@pytest.fixture()
def db(app):
    return _db


@pytest.fixture()
def client(app):
    return app.test_client()


# --- factories ---
@pytest.fixture()
def make_group(db):
    def _make(name: str, permissions: Optional[Dict[str, str]] = None) -> UserGroup:
        g = UserGroup(name=name, permissions=dict(permissions or {}))
        db.session.add(g)
        db.session.commit()
        return g
    return _make


@pytest.fixture()
def make_user(db):
    def _make(username: str, group: UserGroup, password: str = PASSWORD) -> SystemUser:
        u = SystemUser(username=username, full_name=username.title(), user_group_id=group.id)
        u.set_password(password)
        db.session.add(u)
        db.session.commit()
        return u
    return _make


@pytest.fixture()
def department(db):
    d = Department(code="BGD", name="Board of Directors", short_name="BGD")
    db.session.add(d)
    db.session.commit()
    return d


@pytest.fixture()
def make_staff(db, department):
    counter = {"n": 0}

    def _make(full_name: str = "Nguyen Van A", department_id: Optional[int] = None) -> Staff:
        counter["n"] += 1
        s = Staff(
            employee_id=f"E{counter['n']:04d}",
            full_name=full_name,
            department_id=department_id or department.id,
            display_order=counter["n"],
        )
        db.session.add(s)
        db.session.commit()
        return s
    return _make


@pytest.fixture()
def make_room(db):
    def _make(name: str = "Room A") -> MeetingRoom:
        r = MeetingRoom(name=name, location="Floor 2")
        db.session.add(r)
        db.session.commit()
        return r
    return _make


@pytest.fixture()
def grant(db):
    def _grant(user: SystemUser, staff: Staff) -> SchedulePermission:
        p = SchedulePermission(user_id=user.id, staff_id=staff.id)
        db.session.add(p)
        db.session.commit()
        return p
    return _grant


@pytest.fixture()
def add_schedule(db):
    """Insert a WorkSchedule row directly, bypassing the service checks."""
    def _add(staff: Staff, user: SystemUser, start: datetime, end: datetime, work_type: str = "WorkAtBranch"):
        ws = WorkSchedule(staff_id=staff.id, start_datetime=start, end_datetime=end,
                          work_type=work_type, created_by=user.id)
        db.session.add(ws)
        db.session.commit()
        return ws
    return _add


# --- common actors ---
@pytest.fixture()
def editor_group(make_group):
    return make_group("Editors", {
        "workSchedules": "EDIT",
        "holidays": "EDIT",
        "meetingRoomReservations": "EDIT",
        "permissions": "EDIT",
        "systemConfig": "EDIT",
        "meetingSchedules": "VIEW",
    })


@pytest.fixture()
def approver_group(make_group):
    return make_group("Approvers", {
        "meetingRoomReservations": "EDIT",
        "reservationApproval": "EDIT",
    })


@pytest.fixture()
def viewer_group(make_group):
    return make_group("Viewers", {
        "workSchedules": "VIEW",
        "holidays": "VIEW",
        "meetingRoomReservations": "VIEW",
    })


@pytest.fixture()
def editor(make_user, editor_group):
    return make_user("editor", editor_group)


@pytest.fixture()
def approver(make_user, approver_group):
    return make_user("approver", approver_group)


@pytest.fixture()
def viewer(make_user, viewer_group):
    return make_user("viewer", viewer_group)


def login(client, username: str, password: str = PASSWORD):
    rv = client.post("/api/auth/login", json={"username": username, "password": password})
    assert rv.status_code == 200, rv.get_json()
    return client


@pytest.fixture()
def login_as(app):
    def _login(user: SystemUser):
        return login(app.test_client(), user.username)
    return _login
