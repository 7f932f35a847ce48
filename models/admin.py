"""Administrator model definition."""

from . import db, new_id, utcnow


class Admin(db.Model):
    """An administrator account.

    Administrators live in their own table; nothing on ``User`` marks an
    account as privileged.
    """

    __tablename__ = "admins"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @classmethod
    def count(cls) -> int:
        return db.session.scalar(db.select(db.func.count()).select_from(cls)) or 0

    @classmethod
    def find_by_email(cls, email: str | None) -> "Admin | None":
        email = (email or "").strip().lower()
        if not email:
            return None
        return cls.query.filter(db.func.lower(cls.email) == email).first()

    def to_public_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<Admin {self.email}>"
