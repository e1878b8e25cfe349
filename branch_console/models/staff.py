from ..clock import local_now
from ..extensions import db


class Department(db.Model):
    __tablename__ = "department"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, nullable=False)
    name = db.Column(db.String(180), nullable=False)
    short_name = db.Column(db.String(64))
    block_name = db.Column(db.String(120))
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=local_now)


class Staff(db.Model):
    __tablename__ = "staff"

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.String(32), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(128), nullable=False)
    department_id = db.Column(db.Integer, db.ForeignKey("department.id"), nullable=False, index=True)
    position = db.Column(db.String(120), default="")
    position_short = db.Column(db.String(32), default="")
    display_order = db.Column(db.Integer, default=0)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=local_now)

    department = db.relationship("Department", backref="staff", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "fullName": self.full_name,
            "departmentId": self.department_id,
            "positionShort": self.position_short or "",
            "displayOrder": self.display_order or 0,
        }
