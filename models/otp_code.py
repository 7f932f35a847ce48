"""One-time code model definition."""

from datetime import datetime

from . import db, new_id, utcnow


OTP_PURPOSES = ("verify", "reset")


class OtpCode(db.Model):
    """A six digit code mailed to a user to prove control of their address."""

    __tablename__ = "user_otp_codes"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    code = db.Column(db.String(6), nullable=False)
    purpose = db.Column(db.String(16), nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
    consumed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="otp_codes")

    __table_args__ = (
        db.Index("ix_user_otp_codes_user_purpose", "user_id", "purpose"),
    )

    @classmethod
    def usable_clause(cls, now: datetime):
        """SQL predicate matching codes that have not been consumed or expired."""

        return db.and_(cls.consumed_at.is_(None), cls.expires_at > now)

    def is_usable(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return self.consumed_at is None and now < self.expires_at

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<OtpCode {self.purpose} user={self.user_id}>"
