"""Persisted key/value application settings."""

from . import db, utcnow


class Setting(db.Model):
    """Runtime settings editable by administrators (SMTP, Google client id)."""

    __tablename__ = "app_settings"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_by = db.Column(
        db.String(36),
        db.ForeignKey("admins.id", ondelete="SET NULL"),
        nullable=True,
    )
    updated_at = db.Column(
        db.DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    def to_public_dict(self) -> dict[str, object]:
        return {
            "key": self.key,
            "value": self.value,
            "updated_by": self.updated_by,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Setting {self.key}>"
