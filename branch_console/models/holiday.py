from __future__ import annotations

from sqlalchemy.orm import validates

from ..clock import local_now
from ..extensions import db


class Holiday(db.Model):
    __tablename__ = "holiday"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(180), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    is_recurring = db.Column(db.Boolean, nullable=False, default=False)
    month_day = db.Column(db.String(5), index=True)  # "MM-DD", only when is_recurring
    created_at = db.Column(db.DateTime, default=local_now)
    updated_at = db.Column(db.DateTime, default=local_now, onupdate=local_now)

    @validates("date", "is_recurring")
    def _sync_month_day(self, key, value):
        day = value if key == "date" else self.date
        recurring = bool(value) if key == "is_recurring" else bool(self.is_recurring)
        self.month_day = f"{day.month:02d}-{day.day:02d}" if (recurring and day is not None) else None
        return value

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date.isoformat(),
            "isRecurring": bool(self.is_recurring),
            "monthDay": self.month_day,
        }
