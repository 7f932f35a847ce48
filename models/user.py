"""User model definition."""

from . import db, new_id, utcnow


AUTH_PROVIDERS = ("local", "google")


class User(db.Model):
    """Represents an ordinary (non-administrator) account."""

    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), unique=True, nullable=False)
    # Empty for accounts that only ever signed in through Google.
    password_hash = db.Column(db.String(255), nullable=True)
    auth_provider = db.Column(
        db.String(16),
        nullable=False,
        default="local",
        server_default=db.text("'local'"),
    )
    google_sub = db.Column(db.String(255), unique=True, nullable=True)
    is_verified = db.Column(
        db.Boolean,
        nullable=False,
        default=False,
        server_default=db.false(),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    otp_codes = db.relationship(
        "OtpCode",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @staticmethod
    def normalize_email(raw_email: str | None) -> str:
        """Normalize an email string by stripping whitespace and lowering case."""

        return (raw_email or "").strip().lower()

    @classmethod
    def find_by_email(cls, email: str | None) -> "User | None":
        """Case-insensitive lookup by email."""

        normalized = cls.normalize_email(email)
        if not normalized:
            return None
        return cls.query.filter(db.func.lower(cls.email) == normalized).first()

    def mark_verified(self) -> None:
        self.is_verified = True

    def link_google(self, subject: str) -> None:
        """Attach a Google subject id and switch the account to Google sign-in."""

        self.google_sub = subject
        self.auth_provider = "google"

    def to_public_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "auth_provider": self.auth_provider,
            "is_verified": self.is_verified,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
