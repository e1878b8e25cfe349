# -*- coding: utf-8 -*-
"""Meeting room reservation lifecycle.

    pending --approve--> approved --revoke--> pending
    pending --reject---> rejected

An approved reservation owns exactly one MeetingSchedule row; every
transition that leaves ``approved`` removes it in the same transaction. Status
changes go through a conditional UPDATE on the expected pre-state, so when two
approvers race the loser gets ``invalid_transition``.

Overlapping requests for the same room are allowed to coexist; deciding
between them is the approver's call. ``overlapping_meetings`` only reports.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .errors import ErrorKind, Failure, Outcome
from .models.meeting import (
    MEETING_CONTENT_MAX,
    MeetingRoomReservation,
    MeetingSchedule,
    ReservationStatus,
)

logger = logging.getLogger(__name__)

PENDING = ReservationStatus.PENDING.value
APPROVED = ReservationStatus.APPROVED.value
REJECTED = ReservationStatus.REJECTED.value

EDITABLE_FIELDS = ("room_id", "start_datetime", "end_datetime", "meeting_content", "contact_info")


def _check_fields(start: datetime, end: datetime, content: Optional[str]) -> Optional[Failure]:
    if start is None or end is None or end <= start:
        return Failure(ErrorKind.INVALID_RANGE, "End time must be after start time")
    content = (content or "").strip()
    if not content:
        return Failure(ErrorKind.INVALID_CONTENT, "Meeting content is required")
    if len(content) > MEETING_CONTENT_MAX:
        return Failure(ErrorKind.INVALID_CONTENT, f"Meeting content must be at most {MEETING_CONTENT_MAX} characters")
    return None


class ReservationService:
    def __init__(self, storage, clock: Callable[[], datetime], is_approver: Callable[[Any], bool]):
        self.storage = storage
        self.clock = clock
        self.is_approver = is_approver

    # ---------- queries ----------
    def list(self, status: Optional[str] = None, sort_by: str = "created") -> List[MeetingRoomReservation]:
        return self.storage.list_reservations(status=status, sort_by=sort_by)

    def overlapping_meetings(self, reservation: MeetingRoomReservation) -> List[MeetingSchedule]:
        return self.storage.list_overlapping_meetings(
            reservation.room_id,
            reservation.start_datetime,
            reservation.end_datetime,
            exclude_id=reservation.meeting_schedule_id,
        )

    def _load(self, reservation_id: int):
        r = self.storage.get_reservation(reservation_id)
        if r is None:
            return None, Failure(ErrorKind.NOT_FOUND, "Reservation not found", {"id": reservation_id})
        return r, None

    def _require_approver(self, actor) -> Optional[Failure]:
        if not self.is_approver(actor):
            return Failure(ErrorKind.FORBIDDEN, "Only reservation approvers can do this")
        return None

    @staticmethod
    def _wrong_state(r: MeetingRoomReservation, action: str) -> Failure:
        return Failure(ErrorKind.INVALID_TRANSITION, f"Cannot {action} a reservation in status {r.status}",
                       {"status": r.status})

    def _commit(self, fn):
        try:
            out = fn()
            if out.ok:
                self.storage.commit()
            else:
                self.storage.rollback()
            return out
        except Exception:
            self.storage.rollback()
            raise

    # ---------- transitions ----------
    def create(
        self,
        actor,
        room_id: int,
        start: datetime,
        end: datetime,
        meeting_content: str,
        contact_info: Optional[str] = None,
    ) -> Outcome[MeetingRoomReservation]:
        bad = _check_fields(start, end, meeting_content)
        if bad:
            return Outcome.of(bad)
        if self.storage.get_room(room_id) is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, "Meeting room not found", roomId=room_id)

        def run():
            r = self.storage.insert_reservation(MeetingRoomReservation(
                room_id=room_id,
                requested_by=actor.id,
                start_datetime=start,
                end_datetime=end,
                meeting_content=meeting_content.strip(),
                contact_info=(contact_info or "").strip() or None,
                status=PENDING,
            ))
            return Outcome.success(r)

        out = self._commit(run)
        if out.ok:
            logger.info("reservation %s created by user %s for room %s", out.value.id, actor.id, room_id)
        return out

    def approve(self, reservation_id: int, approver) -> Outcome[MeetingRoomReservation]:
        r, err = self._load(reservation_id)
        if err:
            return Outcome.of(err)
        err = self._require_approver(approver)
        if err:
            return Outcome.of(err)
        if r.status != PENDING:
            return Outcome.of(self._wrong_state(r, "approve"))

        def run():
            ms = self.storage.insert_meeting_schedule(MeetingSchedule(
                room_id=r.room_id,
                start_datetime=r.start_datetime,
                end_datetime=r.end_datetime,
                meeting_content=r.meeting_content,
                contact_person=r.contact_info,
            ))
            moved = self.storage.update_reservation_status(reservation_id, PENDING, APPROVED, {
                "approved_by": approver.id,
                "approved_at": self.clock(),
                "rejection_reason": None,
                "meeting_schedule_id": ms.id,
            })
            if not moved:
                return Outcome.fail(ErrorKind.INVALID_TRANSITION, "Reservation was changed by someone else")
            return Outcome.success(r)

        out = self._commit(run)
        if out.ok:
            logger.info("reservation %s approved by user %s", reservation_id, approver.id)
        return out

    def reject(self, reservation_id: int, approver, rejection_reason: Optional[str]) -> Outcome[MeetingRoomReservation]:
        r, err = self._load(reservation_id)
        if err:
            return Outcome.of(err)
        err = self._require_approver(approver)
        if err:
            return Outcome.of(err)
        reason = (rejection_reason or "").strip()
        if not reason:
            return Outcome.fail(ErrorKind.MISSING_REASON, "A rejection reason is required")
        if r.status != PENDING:
            return Outcome.of(self._wrong_state(r, "reject"))

        def run():
            moved = self.storage.update_reservation_status(reservation_id, PENDING, REJECTED, {
                "rejection_reason": reason,
                "approved_by": None,
                "approved_at": None,
            })
            if not moved:
                return Outcome.fail(ErrorKind.INVALID_TRANSITION, "Reservation was changed by someone else")
            return Outcome.success(r)

        out = self._commit(run)
        if out.ok:
            logger.info("reservation %s rejected by user %s", reservation_id, approver.id)
        return out

    def revoke(self, reservation_id: int, approver) -> Outcome[MeetingRoomReservation]:
        r, err = self._load(reservation_id)
        if err:
            return Outcome.of(err)
        err = self._require_approver(approver)
        if err:
            return Outcome.of(err)
        if r.status != APPROVED:
            return Outcome.of(self._wrong_state(r, "revoke"))
        linked = r.meeting_schedule_id

        def run():
            moved = self.storage.update_reservation_status(reservation_id, APPROVED, PENDING, {
                "approved_by": None,
                "approved_at": None,
                "meeting_schedule_id": None,
            })
            if not moved:
                return Outcome.fail(ErrorKind.INVALID_TRANSITION, "Reservation was changed by someone else")
            if linked is not None:
                self.storage.delete_meeting_schedule(linked)
            return Outcome.success(r)

        out = self._commit(run)
        if out.ok:
            logger.info("reservation %s revoked by user %s", reservation_id, approver.id)
        return out

    def delete(self, reservation_id: int, actor) -> Outcome[int]:
        r, err = self._load(reservation_id)
        if err:
            return Outcome.of(err)
        own_pending = r.requested_by == getattr(actor, "id", None) and r.status == PENDING
        if not (own_pending or self.is_approver(actor)):
            return Outcome.fail(ErrorKind.FORBIDDEN, "You can only delete your own pending reservations")
        status, linked = r.status, r.meeting_schedule_id

        def run():
            if not self.storage.delete_reservation(reservation_id, expected=status):
                return Outcome.fail(ErrorKind.INVALID_TRANSITION, "Reservation was changed by someone else")
            if status == APPROVED and linked is not None:
                self.storage.delete_meeting_schedule(linked)
            return Outcome.success(reservation_id)

        out = self._commit(run)
        if out.ok:
            logger.info("reservation %s (%s) deleted by user %s", reservation_id, status, actor.id)
        return out

    def edit(self, reservation_id: int, actor, fields: Dict[str, Any]) -> Outcome[MeetingRoomReservation]:
        r, err = self._load(reservation_id)
        if err:
            return Outcome.of(err)
        if r.requested_by != getattr(actor, "id", None):
            return Outcome.fail(ErrorKind.FORBIDDEN, "Only the requester can edit a reservation")
        if r.status != PENDING:
            return Outcome.of(self._wrong_state(r, "edit"))

        values = {k: fields[k] for k in EDITABLE_FIELDS if k in fields}
        merged = {k: values.get(k, getattr(r, k)) for k in EDITABLE_FIELDS}
        bad = _check_fields(merged["start_datetime"], merged["end_datetime"], merged["meeting_content"])
        if bad:
            return Outcome.of(bad)
        if "room_id" in values and self.storage.get_room(values["room_id"]) is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, "Meeting room not found", roomId=values["room_id"])
        if "meeting_content" in values:
            values["meeting_content"] = values["meeting_content"].strip()

        def run():
            if values and not self.storage.update_reservation_if(reservation_id, PENDING, values):
                return Outcome.fail(ErrorKind.INVALID_TRANSITION, "Reservation was changed by someone else")
            return Outcome.success(r)

        return self._commit(run)
