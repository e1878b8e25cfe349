from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from branch_console.clock import local_now, local_today
from branch_console.models import Holiday

KIRITIMATI = "Pacific/Kiritimati"  # UTC+14, never the host's zone


def test_local_now_is_naive_branch_time(app):
    app.config["APP_TIMEZONE"] = "Asia/Ho_Chi_Minh"
    now = local_now()
    assert now.tzinfo is None
    assert now.microsecond == 0
    utc = datetime.now(timezone.utc).replace(tzinfo=None)
    assert abs((now - utc) - timedelta(hours=7)) < timedelta(minutes=1)


def test_local_today_follows_app_timezone(app):
    app.config["APP_TIMEZONE"] = KIRITIMATI
    assert local_today() == datetime.now(ZoneInfo(KIRITIMATI)).date()


def test_board_defaults_to_branch_today(app, client):
    app.config["APP_TIMEZONE"] = KIRITIMATI
    data = client.get("/api/public/board").get_json()
    assert data["date"] == datetime.now(ZoneInfo(KIRITIMATI)).date().isoformat()


def test_schedule_list_defaults_to_branch_week(app, login_as, editor, make_staff, grant, add_schedule):
    app.config["APP_TIMEZONE"] = KIRITIMATI
    staff = make_staff()
    grant(editor, staff)
    today = datetime.now(ZoneInfo(KIRITIMATI)).date()
    row = add_schedule(staff, editor, datetime.combine(today, time(9)), datetime.combine(today, time(10)))
    listed = login_as(editor).get("/api/work-schedules").get_json()
    assert [r["id"] for r in listed] == [row.id]


def test_stamps_use_branch_clock(app, db):
    app.config["APP_TIMEZONE"] = KIRITIMATI
    h = Holiday(name="Founders", date=date(2025, 9, 1))
    db.session.add(h)
    db.session.commit()
    assert abs(h.created_at - local_now()) < timedelta(minutes=1)
