from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash
from ..clock import local_now
from ..extensions import db, login_manager


class UserGroup(db.Model):
    __tablename__ = "user_group"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    # {functionKey: "EDIT"|"VIEW"|"NONE"}; written only through acl.parse_permissions
    permissions = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=local_now)
    updated_at = db.Column(db.DateTime, default=local_now, onupdate=local_now)


class SystemUser(db.Model, UserMixin):
    __tablename__ = "system_user"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    full_name = db.Column(db.String(128), default="")
    user_group_id = db.Column(db.Integer, db.ForeignKey("user_group.id"), nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=local_now)

    user_group = db.relationship("UserGroup", lazy="joined")

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "fullName": self.full_name or "",
            "userGroupId": self.user_group_id,
            "userGroup": {
                "id": self.user_group.id,
                "name": self.user_group.name,
                "permissions": dict(self.user_group.permissions or {}),
            } if self.user_group else None,
        }


class SchedulePermission(db.Model):
    """Row-level grant: user may write work schedules of one staff member."""
    __tablename__ = "schedule_permission"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("system_user.id"), nullable=False, index=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=local_now)
    __table_args__ = (db.UniqueConstraint("user_id", "staff_id", name="uq_schedule_permission"),)


@login_manager.user_loader
def load_user(user_id):
    u = db.session.get(SystemUser, int(user_id))
    if u is None or not u.is_active:
        return None
    return u
