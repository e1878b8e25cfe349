from ..clock import local_now
from ..extensions import db


class SystemConfig(db.Model):
    __tablename__ = "system_config"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(120), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, nullable=False, default="")
    type = db.Column(db.String(16), nullable=False, default="string")  # string|number|boolean|color
    description = db.Column(db.String(255), default="")
    category = db.Column(db.String(32), default="general")
    updated_at = db.Column(db.DateTime, default=local_now, onupdate=local_now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "value": self.value,
            "type": self.type,
            "description": self.description,
            "category": self.category,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
