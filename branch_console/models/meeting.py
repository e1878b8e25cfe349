from __future__ import annotations

from enum import Enum

from ..clock import local_now
from ..extensions import db

MEETING_CONTENT_MAX = 200


class ReservationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class MeetingRoom(db.Model):
    __tablename__ = "meeting_room"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    location = db.Column(db.String(180))
    created_at = db.Column(db.DateTime, default=local_now)


class MeetingSchedule(db.Model):
    __tablename__ = "meeting_schedule"

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey("meeting_room.id"), nullable=False, index=True)
    start_datetime = db.Column(db.DateTime, nullable=False)
    end_datetime = db.Column(db.DateTime, nullable=False)
    meeting_content = db.Column(db.Text, nullable=False)
    contact_person = db.Column(db.String(180))
    created_at = db.Column(db.DateTime, default=local_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "roomId": self.room_id,
            "startDateTime": self.start_datetime.isoformat(),
            "endDateTime": self.end_datetime.isoformat(),
            "meetingContent": self.meeting_content,
            "contactPerson": self.contact_person,
        }


class MeetingRoomReservation(db.Model):
    __tablename__ = "meeting_room_reservation"

    id = db.Column(db.Integer, primary_key=True)
    room_id = db.Column(db.Integer, db.ForeignKey("meeting_room.id"), nullable=False, index=True)
    requested_by = db.Column(db.Integer, db.ForeignKey("system_user.id"), nullable=False, index=True)
    start_datetime = db.Column(db.DateTime, nullable=False)
    end_datetime = db.Column(db.DateTime, nullable=False)
    meeting_content = db.Column(db.String(MEETING_CONTENT_MAX), nullable=False)
    contact_info = db.Column(db.String(180))
    status = db.Column(db.String(16), nullable=False, default=ReservationStatus.PENDING.value, index=True)
    rejection_reason = db.Column(db.Text)
    approved_by = db.Column(db.Integer, db.ForeignKey("system_user.id"))
    approved_at = db.Column(db.DateTime)
    # set iff status == approved
    meeting_schedule_id = db.Column(db.Integer, db.ForeignKey("meeting_schedule.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=local_now)
    updated_at = db.Column(db.DateTime, default=local_now, onupdate=local_now)

    room = db.relationship("MeetingRoom", lazy="joined")

    __table_args__ = (
        db.CheckConstraint("end_datetime > start_datetime", name="ck_reservation_range"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "roomId": self.room_id,
            "roomName": self.room.name if self.room else None,
            "requestedBy": self.requested_by,
            "startDateTime": self.start_datetime.isoformat(),
            "endDateTime": self.end_datetime.isoformat(),
            "meetingContent": self.meeting_content,
            "contactInfo": self.contact_info,
            "status": self.status,
            "rejectionReason": self.rejection_reason,
            "approvedBy": self.approved_by,
            "approvedAt": self.approved_at.isoformat() if self.approved_at else None,
            "meetingScheduleId": self.meeting_schedule_id,
        }
