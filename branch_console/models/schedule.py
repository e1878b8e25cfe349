from __future__ import annotations

from enum import Enum

from ..clock import local_now
from ..extensions import db


class WorkType(str, Enum):
    WORK_AT_BRANCH = "WorkAtBranch"
    LEAVE = "Leave"
    LEADERSHIP_DUTY = "LeadershipDuty"
    DOMESTIC_TRIP = "DomesticTrip"
    FOREIGN_TRIP = "ForeignTrip"
    CUSTOMER_VISIT = "CustomerVisit"
    OTHER = "Other"

    @property
    def label(self) -> str:
        return WORK_TYPE_LABELS[self]


# labels shown on the branch display
WORK_TYPE_LABELS = {
    WorkType.WORK_AT_BRANCH: "Làm việc tại CN",
    WorkType.LEAVE: "Nghỉ phép",
    WorkType.LEADERSHIP_DUTY: "Trực lãnh đạo",
    WorkType.DOMESTIC_TRIP: "Đi công tác trong nước",
    WorkType.FOREIGN_TRIP: "Đi công tác nước ngoài",
    WorkType.CUSTOMER_VISIT: "Đi khách hàng",
    WorkType.OTHER: "Khác",
}

CUSTOM_CONTENT_MAX = 200


class WorkSchedule(db.Model):
    __tablename__ = "work_schedule"

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)
    start_datetime = db.Column(db.DateTime, nullable=False, index=True)
    end_datetime = db.Column(db.DateTime, nullable=False, index=True)
    work_type = db.Column(db.String(32), nullable=False)  # WorkType value
    custom_content = db.Column(db.String(CUSTOM_CONTENT_MAX))
    is_full_day = db.Column(db.Boolean, nullable=False, default=False)
    created_by = db.Column(db.Integer, db.ForeignKey("system_user.id"), nullable=False)
    updated_by = db.Column(db.Integer, db.ForeignKey("system_user.id"))
    created_at = db.Column(db.DateTime, default=local_now)
    updated_at = db.Column(db.DateTime, default=local_now, onupdate=local_now)

    __table_args__ = (
        db.CheckConstraint("end_datetime > start_datetime", name="ck_work_schedule_range"),
        db.Index("ix_work_schedule_staff_range", "staff_id", "start_datetime", "end_datetime"),
    )

    @property
    def content(self) -> str:
        if self.work_type == WorkType.OTHER.value:
            return self.custom_content or ""
        try:
            return WorkType(self.work_type).label
        except ValueError:
            return self.work_type

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staffId": self.staff_id,
            "startDateTime": self.start_datetime.isoformat(),
            "endDateTime": self.end_datetime.isoformat(),
            "workType": self.work_type,
            "customContent": self.custom_content,
            "fullDay": bool(self.is_full_day),
            "content": self.content,
            "createdBy": self.created_by,
            "updatedBy": self.updated_by,
        }
