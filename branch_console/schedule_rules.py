# -*- coding: utf-8 -*-
"""Work schedule rules: entry-time policy, per-day quota and the write path.

The same ``check_entry_policy`` backs the ``/validate`` endpoint used by the
UI for pre-validation and the server-side create/update, so both sides always
agree on what is allowed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional

from .errors import ErrorKind, Failure, Outcome
from .holiday_calendar import is_holiday, working_days
from .models.schedule import CUSTOM_CONTENT_MAX, WorkSchedule, WorkType

logger = logging.getLogger(__name__)

DEFAULT_DAILY_LIMIT = 5


@dataclass(frozen=True)
class SchedulePolicy:
    daily_limit: int = DEFAULT_DAILY_LIMIT
    allow_weekend: bool = False
    work_start: time = time(8, 0)
    work_end: time = time(17, 30)


@dataclass
class ScheduleRequest:
    staff_id: int
    start: datetime
    end: datetime
    work_type: WorkType
    custom_content: Optional[str] = None
    full_day: bool = False


@dataclass(frozen=True)
class LimitCheck:
    is_valid: bool
    violating_date: Optional[date] = None
    current_count: Optional[int] = None


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def days_in_range(start: date, end: date) -> List[date]:
    days, d = [], start
    while d <= end:
        days.append(d)
        d += timedelta(days=1)
    return days


def _to_date(v) -> date:
    return v.date() if isinstance(v, datetime) else v


# ---------- entry-time policy ----------
def check_entry_policy(req: ScheduleRequest, holidays: Iterable, policy: SchedulePolicy) -> Optional[Failure]:
    """Ordered checks; the first failing one is returned."""
    if req.end <= req.start:
        return Failure(ErrorKind.INVALID_RANGE, "End time must be after start time")

    ends = (req.start.date(), req.end.date())

    if not req.full_day and not policy.allow_weekend:
        for d in ends:
            if d.weekday() >= 5:
                return Failure(ErrorKind.WEEKEND_NOT_ALLOWED, "Weekend dates are not allowed",
                               {"date": d.isoformat()})

    holidays = list(holidays)
    for d in ends:
        if is_holiday(d, holidays):
            return Failure(ErrorKind.HOLIDAY_NOT_ALLOWED, "Holiday dates are not allowed",
                           {"date": d.isoformat()})

    if not req.full_day:
        for t in (req.start.time(), req.end.time()):
            if t < policy.work_start or t > policy.work_end:
                return Failure(
                    ErrorKind.OUTSIDE_WORK_HOURS,
                    f"Time must be within work hours {policy.work_start:%H:%M}-{policy.work_end:%H:%M}",
                    {"workStart": policy.work_start.strftime("%H:%M"),
                     "workEnd": policy.work_end.strftime("%H:%M")},
                )

    content = (req.custom_content or "").strip()
    if req.work_type is WorkType.OTHER and not content:
        return Failure(ErrorKind.MISSING_CUSTOM_CONTENT, "Content is required for work type Other")
    if len(content) > CUSTOM_CONTENT_MAX:
        return Failure(ErrorKind.INVALID_CONTENT, f"Content must be at most {CUSTOM_CONTENT_MAX} characters")
    return None


# ---------- daily quota ----------
def validate_work_schedule_limit(
    staff_id: int,
    start_date,
    end_date,
    exclude_schedule_id: Optional[int] = None,
    *,
    storage,
    daily_limit: int = DEFAULT_DAILY_LIMIT,
) -> LimitCheck:
    """Would one more schedule over [start_date, end_date] exceed the limit on any day?

    Read-only. Days are checked in ascending order; the first violating day is
    reported together with the count before the candidate is added.
    """
    d1, d2 = _to_date(start_date), _to_date(end_date)
    if d2 < d1:
        d1, d2 = d2, d1
    existing = storage.list_work_schedules(staff_id, start_of_day(d1), end_of_day(d2), exclude_schedule_id)
    for d in days_in_range(d1, d2):
        lo, hi = start_of_day(d), end_of_day(d)
        count = sum(1 for s in existing if s.start_datetime <= hi and s.end_datetime >= lo)
        if count + 1 > daily_limit:
            return LimitCheck(False, d, count)
    return LimitCheck(True)


def quota_failure(check: LimitCheck, daily_limit: int) -> Failure:
    return Failure(
        ErrorKind.DAILY_QUOTA_EXCEEDED,
        f"{check.violating_date:%d/%m/%Y} already has {check.current_count} work schedules, "
        f"the limit is {daily_limit} per day",
        {"violatingDate": check.violating_date.isoformat(),
         "currentCount": check.current_count,
         "limit": daily_limit},
    )


# ---------- write path ----------
class ScheduleService:
    def __init__(self, storage, policy: SchedulePolicy, authorize):
        # authorize(user, staff_id) -> Optional[Failure]
        self.storage = storage
        self.policy = policy
        self.authorize = authorize

    def prevalidate(self, req: ScheduleRequest, exclude_id: Optional[int] = None) -> Outcome[LimitCheck]:
        bad = check_entry_policy(req, self.storage.list_holidays(), self.policy)
        if bad:
            return Outcome.of(bad)
        check = validate_work_schedule_limit(
            req.staff_id, req.start, req.end, exclude_id,
            storage=self.storage, daily_limit=self.policy.daily_limit,
        )
        if not check.is_valid:
            return Outcome.of(quota_failure(check, self.policy.daily_limit))
        return Outcome.success(check)

    def _guarded_write(self, req: ScheduleRequest, exclude_id: Optional[int], write) -> Outcome[WorkSchedule]:
        try:
            if self.storage.lock_staff(req.staff_id) is None:
                self.storage.rollback()
                return Outcome.fail(ErrorKind.NOT_FOUND, "Staff not found", staffId=req.staff_id)
            checked = self.prevalidate(req, exclude_id)
            if not checked.ok:
                self.storage.rollback()
                logger.info("work schedule rejected for staff %s: %s", req.staff_id, checked.error.kind.value)
                return Outcome.of(checked.error)
            row = write()
            self.storage.commit()
            return Outcome.success(row)
        except Exception:
            self.storage.rollback()
            raise

    def create(self, actor, req: ScheduleRequest) -> Outcome[WorkSchedule]:
        denied = self.authorize(actor, req.staff_id)
        if denied:
            return Outcome.of(denied)

        def write():
            return self.storage.insert_work_schedule(WorkSchedule(
                staff_id=req.staff_id,
                start_datetime=req.start,
                end_datetime=req.end,
                work_type=req.work_type.value,
                custom_content=_content_for(req),
                is_full_day=req.full_day,
                created_by=actor.id,
            ))

        out = self._guarded_write(req, None, write)
        if out.ok:
            logger.info("work schedule %s created for staff %s by user %s", out.value.id, req.staff_id, actor.id)
        return out

    def update(self, actor, schedule_id: int, patch: Dict[str, Any]) -> Outcome[WorkSchedule]:
        current = self.storage.get_work_schedule(schedule_id)
        if current is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, "Work schedule not found", id=schedule_id)
        denied = self.authorize(actor, current.staff_id)
        if denied:
            return Outcome.of(denied)

        req = ScheduleRequest(
            staff_id=patch.get("staff_id", current.staff_id),
            start=patch.get("start", current.start_datetime),
            end=patch.get("end", current.end_datetime),
            work_type=patch.get("work_type", WorkType(current.work_type)),
            custom_content=patch.get("custom_content", current.custom_content),
            full_day=patch.get("full_day", bool(current.is_full_day)),
        )
        if req.staff_id != current.staff_id:
            denied = self.authorize(actor, req.staff_id)
            if denied:
                return Outcome.of(denied)

        def write():
            return self.storage.update_work_schedule(schedule_id, {
                "staff_id": req.staff_id,
                "start_datetime": req.start,
                "end_datetime": req.end,
                "work_type": req.work_type.value,
                "custom_content": _content_for(req),
                "is_full_day": req.full_day,
                "updated_by": actor.id,
            })

        out = self._guarded_write(req, schedule_id, write)
        if out.ok:
            logger.info("work schedule %s updated by user %s", schedule_id, actor.id)
        return out

    def delete(self, actor, schedule_id: int) -> Outcome[int]:
        current = self.storage.get_work_schedule(schedule_id)
        if current is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, "Work schedule not found", id=schedule_id)
        denied = self.authorize(actor, current.staff_id)
        if denied:
            return Outcome.of(denied)
        try:
            self.storage.delete_work_schedule(schedule_id)
            self.storage.commit()
        except Exception:
            self.storage.rollback()
            raise
        logger.info("work schedule %s deleted by user %s", schedule_id, actor.id)
        return Outcome.success(schedule_id)


def _content_for(req: ScheduleRequest) -> Optional[str]:
    if req.work_type is not WorkType.OTHER:
        return None
    return (req.custom_content or "").strip()


# ---------- derived board view ----------
def default_entries_for_day(staff: Iterable, day: date, schedules: Iterable, holidays: Iterable) -> List[Dict[str, Any]]:
    """Unsaved "WorkAtBranch" placeholders for staff with nothing scheduled on a working weekday."""
    if not working_days(day, day, holidays):
        return []
    lo, hi = start_of_day(day), end_of_day(day)
    busy = {s.staff_id for s in schedules if s.start_datetime <= hi and s.end_datetime >= lo}
    return [
        {
            "id": None,
            "staffId": s.id,
            "startDateTime": lo.isoformat(),
            "endDateTime": hi.replace(microsecond=0).isoformat(),
            "workType": WorkType.WORK_AT_BRANCH.value,
            "content": WorkType.WORK_AT_BRANCH.label,
            "isDefault": True,
        }
        for s in staff
        if s.id not in busy
    ]
