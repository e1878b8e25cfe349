from __future__ import annotations

from datetime import datetime

from branch_console.models import UserGroup


def _schedule_payload(staff_id, start="2025-06-10T09:00:00", end="2025-06-10T10:00:00", **extra):
    body = {"staffId": staff_id, "startDateTime": start, "endDateTime": end, "workType": "WorkAtBranch"}
    body.update(extra)
    return body


# --- auth ---
def test_health(client):
    assert client.get("/").get_json()["ok"] is True


def test_login_rejects_bad_password(client, editor):
    rv = client.post("/api/auth/login", json={"username": "editor", "password": "nope"})
    assert rv.status_code == 401
    assert rv.get_json()["error"] == "invalid_credentials"


def test_login_tolerates_odd_bodies(client, editor):
    rv = client.post("/api/auth/login", json=["editor", "secret-pass"])
    assert rv.status_code == 401
    rv = client.post("/api/auth/login", json={"username": 123, "password": None})
    assert rv.status_code == 401
    assert rv.get_json()["error"] == "invalid_credentials"


def test_anonymous_gets_json_401(client):
    rv = client.get("/api/work-schedules")
    assert rv.status_code == 401
    assert rv.get_json()["error"] == "unauthorized"


def test_unknown_route_is_json_404(client):
    rv = client.get("/api/nothing-here")
    assert rv.status_code == 404
    assert rv.get_json()["error"] == "not_found"


def test_current_user_lists_editable_staff(login_as, editor, make_staff, grant):
    staff = make_staff()
    grant(editor, staff)
    data = login_as(editor).get("/api/auth/user").get_json()
    assert data["username"] == "editor"
    assert data["editableStaffIds"] == [staff.id]
    assert data["userGroup"]["permissions"]["workSchedules"] == "EDIT"


def test_logout(login_as, editor):
    c = login_as(editor)
    assert c.post("/api/auth/logout").status_code == 200
    assert c.get("/api/auth/user").status_code == 401


# --- work schedules ---
def test_viewer_cannot_write(login_as, viewer, make_staff):
    staff = make_staff()
    rv = login_as(viewer).post("/api/work-schedules", json=_schedule_payload(staff.id))
    assert rv.status_code == 403
    assert rv.get_json()["function"] == "workSchedules"


def test_editor_needs_staff_grant(login_as, editor, make_staff):
    staff = make_staff()
    rv = login_as(editor).post("/api/work-schedules", json=_schedule_payload(staff.id))
    assert rv.status_code == 403
    assert rv.get_json() == {
        "ok": False,
        "error": "forbidden",
        "message": "No schedule permission for this staff member",
        "staffId": staff.id,
    }


def test_schedule_crud(login_as, editor, make_staff, grant):
    staff = make_staff()
    grant(editor, staff)
    c = login_as(editor)

    rv = c.post("/api/work-schedules", json=_schedule_payload(staff.id, workType="Other", customContent="Audit"))
    assert rv.status_code == 201
    row = rv.get_json()["data"]
    assert row["content"] == "Audit"

    listed = c.get("/api/work-schedules?startDate=2025-06-09&endDate=2025-06-13").get_json()
    assert [r["id"] for r in listed] == [row["id"]]

    rv = c.put(f"/api/work-schedules/{row['id']}", json={"workType": "Leave"})
    assert rv.status_code == 200
    assert rv.get_json()["data"]["workType"] == "Leave"
    assert rv.get_json()["data"]["customContent"] is None

    assert c.delete(f"/api/work-schedules/{row['id']}").status_code == 204
    assert c.delete(f"/api/work-schedules/{row['id']}").status_code == 404


def test_schedule_bad_payload(login_as, editor, make_staff, grant):
    staff = make_staff()
    grant(editor, staff)
    rv = login_as(editor).post("/api/work-schedules", json=_schedule_payload(staff.id, workType="Nap"))
    assert rv.status_code == 400
    assert rv.get_json()["field"] == "workType"


def test_full_day_flag_survives_partial_update(login_as, editor, make_staff, grant):
    staff = make_staff()
    grant(editor, staff)
    c = login_as(editor)
    rv = c.post("/api/work-schedules", json=_schedule_payload(
        staff.id, "2025-06-10T00:00:00", "2025-06-10T23:59:59", workType="Leave", fullDay=True))
    assert rv.status_code == 201
    row = rv.get_json()["data"]
    assert row["fullDay"] is True

    rv = c.put(f"/api/work-schedules/{row['id']}", json={"workType": "Other", "customContent": "training"})
    assert rv.status_code == 200, rv.get_json()
    assert rv.get_json()["data"]["fullDay"] is True
    assert rv.get_json()["data"]["content"] == "training"

    rv = c.put(f"/api/work-schedules/{row['id']}", json={"fullDay": False})
    assert rv.get_json()["error"] == "outside_work_hours"


def test_full_day_must_be_a_boolean(login_as, editor, make_staff, grant):
    staff = make_staff()
    grant(editor, staff)
    rv = login_as(editor).post("/api/work-schedules", json=_schedule_payload(staff.id, fullDay="false"))
    assert rv.status_code == 400
    assert rv.get_json()["field"] == "fullDay"


def test_quota_exceeded_over_http(login_as, editor, make_staff, grant, add_schedule):
    staff = make_staff()
    grant(editor, staff)
    for i in range(5):
        add_schedule(staff, editor, datetime(2025, 6, 10, 8 + i), datetime(2025, 6, 10, 9 + i))
    c = login_as(editor)

    payload = _schedule_payload(staff.id, "2025-06-09T09:00:00", "2025-06-11T10:00:00")
    rv = c.post("/api/work-schedules/validate", json=payload)
    assert rv.status_code == 400
    body = rv.get_json()
    assert body["error"] == "daily_quota_exceeded"
    assert body["violatingDate"] == "2025-06-10"
    assert body["currentCount"] == 5

    rv = c.post("/api/work-schedules", json=payload)
    assert rv.get_json()["error"] == "daily_quota_exceeded"

    ok = _schedule_payload(staff.id, "2025-06-09T09:00:00", "2025-06-09T10:00:00")
    assert c.post("/api/work-schedules/validate", json=ok).get_json() == {"ok": True, "data": {"isValid": True}}


def test_weekend_rejected_over_http(login_as, editor, make_staff, grant):
    staff = make_staff()
    grant(editor, staff)
    rv = login_as(editor).post(
        "/api/work-schedules", json=_schedule_payload(staff.id, "2025-06-14T09:00:00", "2025-06-14T10:00:00")
    )
    assert rv.status_code == 400
    assert rv.get_json()["error"] == "weekend_not_allowed"


def test_public_board_adds_defaults(client, make_staff, editor, add_schedule):
    busy, idle = make_staff("Busy"), make_staff("Idle")
    add_schedule(busy, editor, datetime(2025, 6, 10, 9), datetime(2025, 6, 10, 10), "Leave")
    data = client.get("/api/public/board?date=2025-06-10").get_json()
    assert [s["fullName"] for s in data["staff"]] == ["Busy", "Idle"]
    by_staff = {e["staffId"]: e for e in data["schedules"]}
    assert by_staff[busy.id]["workType"] == "Leave"
    assert by_staff[idle.id]["isDefault"] is True


# --- reservations ---
def test_reservation_flow(login_as, editor, approver, make_room):
    room = make_room()
    requester, boss = login_as(editor), login_as(approver)

    rv = requester.post("/api/meeting-room-reservations", json={
        "roomId": room.id,
        "startDateTime": "2025-06-10T14:00:00",
        "endDateTime": "2025-06-10T15:00:00",
        "meetingContent": "Planning",
    })
    assert rv.status_code == 201
    rid = rv.get_json()["data"]["id"]
    assert rv.get_json()["conflicts"] == []

    assert requester.post(f"/api/meeting-room-reservations/{rid}/approve").status_code == 403

    rv = boss.post(f"/api/meeting-room-reservations/{rid}/approve")
    assert rv.status_code == 200
    assert rv.get_json()["data"]["status"] == "approved"
    assert rv.get_json()["data"]["meetingScheduleId"] is not None

    rv = boss.post(f"/api/meeting-room-reservations/{rid}/approve")
    assert rv.status_code == 409
    assert rv.get_json()["error"] == "invalid_transition"

    assert boss.post(f"/api/meeting-room-reservations/{rid}/revoke").get_json()["data"]["status"] == "pending"

    rv = boss.post(f"/api/meeting-room-reservations/{rid}/reject", json={})
    assert rv.status_code == 400
    assert rv.get_json()["error"] == "missing_reason"

    rv = boss.post(f"/api/meeting-room-reservations/{rid}/reject", json={"rejectionReason": "conflict"})
    assert rv.get_json()["data"]["rejectionReason"] == "conflict"

    listed = requester.get("/api/meeting-room-reservations?status=rejected").get_json()
    assert [r["id"] for r in listed] == [rid]
    assert requester.get("/api/meeting-room-reservations?status=bogus").status_code == 400


def test_requester_edits_and_deletes(login_as, editor, make_room):
    room = make_room()
    c = login_as(editor)
    rid = c.post("/api/meeting-room-reservations", json={
        "roomId": room.id,
        "startDateTime": "2025-06-10T14:00:00",
        "endDateTime": "2025-06-10T15:00:00",
        "meetingContent": "Planning",
    }).get_json()["data"]["id"]

    rv = c.put(f"/api/meeting-room-reservations/{rid}", json={"meetingContent": "Budget"})
    assert rv.get_json()["data"]["meetingContent"] == "Budget"

    assert c.delete(f"/api/meeting-room-reservations/{rid}").get_json() == {"ok": True, "id": rid}
    assert c.delete(f"/api/meeting-room-reservations/{rid}").status_code == 404


# --- holidays ---
def test_holiday_crud_and_check(login_as, editor, viewer):
    c = login_as(editor)
    rv = c.post("/api/holidays", json={"name": "Reunification", "date": "2025-04-30", "isRecurring": True})
    assert rv.status_code == 201
    h = rv.get_json()
    assert h["monthDay"] == "04-30"

    check = c.get("/api/holidays/check?date=2030-04-30").get_json()
    assert check["isHoliday"] is True
    check = c.get("/api/holidays/check?date=2025-04-28&until=2025-05-02").get_json()
    assert check["isHoliday"] is False
    assert check["holidayDates"] == ["2025-04-30"]

    year = c.get("/api/holidays?year=2031").get_json()
    assert year[0]["date"] == "2031-04-30"

    assert login_as(viewer).post("/api/holidays", json={"name": "x", "date": "2025-01-01"}).status_code == 403

    rv = c.put(f"/api/holidays/{h['id']}", json={"isRecurring": False})
    assert rv.get_json()["monthDay"] is None
    assert c.get("/api/holidays/check?date=2030-04-30").get_json()["isHoliday"] is False

    assert c.post("/api/holidays", json={"name": "", "date": "2025-01-01"}).status_code == 400
    assert c.delete(f"/api/holidays/{h['id']}").status_code == 204
    assert c.delete(f"/api/holidays/{h['id']}").status_code == 404


def test_holiday_flags_and_names_are_typed(login_as, editor):
    c = login_as(editor)
    rv = c.post("/api/holidays", json={"name": "Labour", "date": "2025-05-01", "isRecurring": "false"})
    assert rv.status_code == 400
    assert rv.get_json()["field"] == "isRecurring"
    rv = c.post("/api/holidays", json={"name": 2025, "date": "2025-05-01"})
    assert rv.status_code == 201
    assert rv.get_json()["name"] == "2025"
    assert rv.get_json()["isRecurring"] is False


# --- permissions ---
def test_schedule_permission_grants_are_idempotent(login_as, editor, viewer, make_staff):
    staff = make_staff()
    c = login_as(editor)
    body = {"userId": viewer.id, "staffId": staff.id}
    first = c.post("/api/schedule-permissions", json=body)
    assert first.status_code == 201
    again = c.post("/api/schedule-permissions", json=body)
    assert again.status_code == 200
    assert again.get_json()["id"] == first.get_json()["id"]

    assert login_as(viewer).get("/api/user-edit-permissions").get_json() == {"editableStaffIds": [staff.id]}

    pid = first.get_json()["id"]
    assert c.delete(f"/api/schedule-permissions/{pid}").status_code == 204
    assert c.delete(f"/api/schedule-permissions/{pid}").status_code == 404
    assert c.post("/api/schedule-permissions", json={"userId": viewer.id, "staffId": 999}).status_code == 404


def test_group_permissions_are_validated(login_as, db, editor, viewer_group):
    c = login_as(editor)
    rv = c.put(f"/api/user-groups/{viewer_group.id}/permissions",
               json={"permissions": {"workSchedule": "EDIT", "holidays": "VIEW"}})
    assert rv.status_code == 400
    assert rv.get_json()["problems"] == {"workSchedule": "unknown function key"}

    rv = c.put(f"/api/user-groups/{viewer_group.id}/permissions",
               json={"permissions": {"workSchedules": "edit", "holidays": "NONE"}})
    assert rv.status_code == 200
    assert rv.get_json()["permissions"] == {"workSchedules": "EDIT"}
    db.session.expire_all()
    assert db.session.get(UserGroup, viewer_group.id).permissions == {"workSchedules": "EDIT"}
