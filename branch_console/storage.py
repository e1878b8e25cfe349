# -*- coding: utf-8 -*-
"""Persistence layer used by the core services.

Thin wrapper over the Flask-SQLAlchemy session. Methods only stage changes
(add / flush / UPDATE); the calling service decides when to ``commit`` or
``rollback`` so that every multi-step operation lands as one transaction.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import delete, select, update

from .clock import local_now
from .extensions import db
from .models import (
    Holiday,
    MeetingRoom,
    MeetingRoomReservation,
    MeetingSchedule,
    SchedulePermission,
    Staff,
    UserGroup,
    WorkSchedule,
)


class Storage:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    # --- transaction ---
    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    # --- staff ---
    def get_staff(self, staff_id: int) -> Optional[Staff]:
        return self.session.get(Staff, staff_id)

    def lock_staff(self, staff_id: int) -> Optional[Staff]:
        """SELECT ... FOR UPDATE on the staff row; serializes schedule writes per staff."""
        return self.session.execute(
            select(Staff).where(Staff.id == staff_id).with_for_update()
        ).scalar_one_or_none()

    def list_staff(self, staff_ids: Optional[Iterable[int]] = None) -> List[Staff]:
        q = select(Staff).order_by(Staff.display_order, Staff.full_name)
        if staff_ids is not None:
            q = q.where(Staff.id.in_(list(staff_ids)))
        return list(self.session.execute(q).scalars())

    # --- work schedules ---
    def list_work_schedules(
        self,
        staff_id: Optional[int],
        range_start: datetime,
        range_end: datetime,
        exclude_id: Optional[int] = None,
    ) -> List[WorkSchedule]:
        """Rows whose [start, end] overlaps [range_start, range_end] (inclusive)."""
        q = select(WorkSchedule).where(
            WorkSchedule.start_datetime <= range_end,
            WorkSchedule.end_datetime >= range_start,
        )
        if staff_id is not None:
            q = q.where(WorkSchedule.staff_id == staff_id)
        if exclude_id is not None:
            q = q.where(WorkSchedule.id != exclude_id)
        q = q.order_by(WorkSchedule.start_datetime, WorkSchedule.id)
        return list(self.session.execute(q).scalars())

    def get_work_schedule(self, schedule_id: int) -> Optional[WorkSchedule]:
        return self.session.get(WorkSchedule, schedule_id)

    def insert_work_schedule(self, record: WorkSchedule) -> WorkSchedule:
        self.session.add(record)
        self.session.flush()
        return record

    def update_work_schedule(self, schedule_id: int, patch: Dict[str, Any]) -> Optional[WorkSchedule]:
        row = self.get_work_schedule(schedule_id)
        if row is None:
            return None
        for k, v in patch.items():
            setattr(row, k, v)
        self.session.flush()
        return row

    def delete_work_schedule(self, schedule_id: int) -> bool:
        res = self.session.execute(delete(WorkSchedule).where(WorkSchedule.id == schedule_id))
        return (res.rowcount or 0) > 0

    # --- holidays ---
    def list_holidays(self) -> List[Holiday]:
        return list(self.session.execute(select(Holiday).order_by(Holiday.date)).scalars())

    # --- rooms / meetings ---
    def get_room(self, room_id: int) -> Optional[MeetingRoom]:
        return self.session.get(MeetingRoom, room_id)

    def insert_meeting_schedule(self, record: MeetingSchedule) -> MeetingSchedule:
        self.session.add(record)
        self.session.flush()
        return record

    def delete_meeting_schedule(self, schedule_id: int) -> bool:
        res = self.session.execute(delete(MeetingSchedule).where(MeetingSchedule.id == schedule_id))
        return (res.rowcount or 0) > 0

    def list_meeting_schedules(
        self, start: datetime, end: datetime, room_id: Optional[int] = None
    ) -> List[MeetingSchedule]:
        q = select(MeetingSchedule).where(
            MeetingSchedule.start_datetime < end,
            MeetingSchedule.end_datetime > start,
        )
        if room_id is not None:
            q = q.where(MeetingSchedule.room_id == room_id)
        return list(self.session.execute(q.order_by(MeetingSchedule.start_datetime)).scalars())

    def list_overlapping_meetings(
        self, room_id: int, start: datetime, end: datetime, exclude_id: Optional[int] = None
    ) -> List[MeetingSchedule]:
        # half-open: back-to-back meetings do not overlap
        q = select(MeetingSchedule).where(
            MeetingSchedule.room_id == room_id,
            MeetingSchedule.start_datetime < end,
            MeetingSchedule.end_datetime > start,
        )
        if exclude_id is not None:
            q = q.where(MeetingSchedule.id != exclude_id)
        return list(self.session.execute(q.order_by(MeetingSchedule.start_datetime)).scalars())

    # --- reservations ---
    def get_reservation(self, reservation_id: int) -> Optional[MeetingRoomReservation]:
        return self.session.get(MeetingRoomReservation, reservation_id)

    def list_reservations(self, status: Optional[str] = None, sort_by: str = "created") -> List[MeetingRoomReservation]:
        q = select(MeetingRoomReservation)
        if status:
            q = q.where(MeetingRoomReservation.status == status)
        if sort_by == "start":
            q = q.order_by(MeetingRoomReservation.start_datetime, MeetingRoomReservation.id)
        else:
            q = q.order_by(MeetingRoomReservation.created_at.desc(), MeetingRoomReservation.id.desc())
        return list(self.session.execute(q).scalars())

    def insert_reservation(self, record: MeetingRoomReservation) -> MeetingRoomReservation:
        self.session.add(record)
        self.session.flush()
        return record

    def update_reservation_status(
        self, reservation_id: int, expected: str, status: str, fields: Optional[Dict[str, Any]] = None
    ) -> bool:
        """Conditional UPDATE: applies only while the row still has status ``expected``."""
        values = dict(fields or {})
        values["status"] = status
        return self.update_reservation_if(reservation_id, expected, values)

    def update_reservation_if(self, reservation_id: int, expected: str, values: Dict[str, Any]) -> bool:
        values = dict(values)
        values.setdefault("updated_at", local_now())
        res = self.session.execute(
            update(MeetingRoomReservation)
            .where(
                MeetingRoomReservation.id == reservation_id,
                MeetingRoomReservation.status == expected,
            )
            .values(**values)
            .execution_options(synchronize_session="evaluate")
        )
        return res.rowcount == 1

    def delete_reservation(self, reservation_id: int, expected: Optional[str] = None) -> bool:
        q = delete(MeetingRoomReservation).where(MeetingRoomReservation.id == reservation_id)
        if expected is not None:
            q = q.where(MeetingRoomReservation.status == expected)
        res = self.session.execute(q.execution_options(synchronize_session="evaluate"))
        return (res.rowcount or 0) > 0

    # --- permissions ---
    def get_user_group_permissions(self, user_group_id: int) -> Optional[Dict[str, str]]:
        group = self.session.get(UserGroup, user_group_id)
        if group is None:
            return None
        return dict(group.permissions or {})

    def get_schedule_permissions_for_user(self, user_id: int) -> List[int]:
        rows = self.session.execute(
            select(SchedulePermission.staff_id).where(SchedulePermission.user_id == user_id)
        ).scalars()
        return list(rows)

    def add_schedule_permission(self, user_id: int, staff_id: int) -> Tuple[SchedulePermission, bool]:
        row = self.session.execute(
            select(SchedulePermission).where(
                SchedulePermission.user_id == user_id,
                SchedulePermission.staff_id == staff_id,
            )
        ).scalar_one_or_none()
        if row is not None:
            return row, False
        row = SchedulePermission(user_id=user_id, staff_id=staff_id)
        self.session.add(row)
        self.session.flush()
        return row, True

    def remove_schedule_permission(self, permission_id: int) -> bool:
        res = self.session.execute(delete(SchedulePermission).where(SchedulePermission.id == permission_id))
        return (res.rowcount or 0) > 0
