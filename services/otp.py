"""One-time code issuance and consumption.

Per (user, purpose) a code moves ``issued -> consumed``; a new request always
creates a new row and older rows are simply ignored once consumed or expired.
Issuing is throttled to one unconsumed code per purpose every two minutes.
Consuming a code and applying its side effect happen in one transaction.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Callable

from flask import current_app
from werkzeug.exceptions import BadRequest, NotFound, TooManyRequests

from models import db, utcnow
from models.otp_code import OTP_PURPOSES, OtpCode
from models.user import User
from services import mailer
from services.credentials import hash_password

PURPOSE_VERIFY = "verify"
PURPOSE_RESET = "reset"

CODE_TTL = timedelta(minutes=10)
REQUEST_COOLDOWN_SECONDS = 120


class OtpCooldown(TooManyRequests):
    """A code for this purpose was issued too recently."""

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(
            f"Please wait {retry_after}s before requesting another code.",
            retry_after=retry_after,
        )


class InvalidCode(BadRequest):
    description = "Invalid or expired code."


class MalformedCode(BadRequest):
    description = "Code must be exactly 6 digits."


def generate_code() -> str:
    """Return a uniformly random six digit string, zero padded."""

    return f"{secrets.randbelow(1_000_000):06d}"


def _require_user(email: str | None) -> User:
    user = User.find_by_email(email)
    if user is None:
        raise NotFound("User not found.")
    return user


def _check_purpose(purpose: str) -> None:
    if purpose not in OTP_PURPOSES:
        raise ValueError(f"Unknown OTP purpose: {purpose!r}")


def _check_cooldown(user: User, purpose: str, now: datetime) -> None:
    last_created = db.session.scalar(
        db.select(OtpCode.created_at)
        .where(
            OtpCode.user_id == user.id,
            OtpCode.purpose == purpose,
            OtpCode.consumed_at.is_(None),
        )
        .order_by(OtpCode.created_at.desc())
        .limit(1)
    )
    if last_created is None:
        return

    elapsed = int((now - last_created).total_seconds())
    if elapsed < REQUEST_COOLDOWN_SECONDS:
        raise OtpCooldown(max(0, REQUEST_COOLDOWN_SECONDS - max(elapsed, 0)))


def _deliver(user: User, otp: OtpCode) -> None:
    try:
        mailer.send_otp(user.email, otp.code)
    except mailer.MailDeliveryError as exc:
        # The code is stored and valid either way; the caller can ask again.
        if current_app.config.get("OTP_LOG_CODES"):
            current_app.logger.warning(
                "SMTP failed (%s). %s OTP for %s is %s", exc, otp.purpose, user.email, otp.code
            )
        else:
            current_app.logger.warning(
                "SMTP failed (%s). %s OTP for %s was not delivered", exc, otp.purpose, user.email
            )
        return
    current_app.logger.info("%s OTP sent to %s", otp.purpose, user.email)


def issue_code(user: User, purpose: str) -> OtpCode:
    """Create, persist and mail a new code for ``user`` without throttling."""

    _check_purpose(purpose)
    now = utcnow()
    otp = OtpCode(
        user_id=user.id,
        code=generate_code(),
        purpose=purpose,
        expires_at=now + CODE_TTL,
        created_at=now,
    )
    db.session.add(otp)
    db.session.commit()

    _deliver(user, otp)
    return otp


def request_code(email: str | None, purpose: str) -> OtpCode:
    """Issue a code for the account owning ``email`` subject to the cooldown."""

    _check_purpose(purpose)
    user = _require_user(email)
    _check_cooldown(user, purpose, utcnow())
    return issue_code(user, purpose)


def consume_code(
    email: str | None,
    code: str | None,
    purpose: str,
    on_success: Callable[[User], None],
) -> User:
    """Mark a usable code consumed and apply ``on_success`` atomically.

    The row is claimed with a conditional ``UPDATE`` so that of two requests
    racing on the same code only one sees an affected row; the loser gets the
    same error as an unknown code.
    """

    _check_purpose(purpose)
    user = _require_user(email)
    code = (code or "").strip()
    # Unknown accounts are reported before malformed codes.
    if len(code) != 6 or not code.isascii() or not code.isdigit():
        raise MalformedCode()
    now = utcnow()

    otp_id = db.session.scalar(
        db.select(OtpCode.id)
        .where(
            OtpCode.user_id == user.id,
            OtpCode.code == code,
            OtpCode.purpose == purpose,
            OtpCode.usable_clause(now),
        )
        .order_by(OtpCode.created_at.desc())
        .limit(1)
    )
    if otp_id is None:
        raise InvalidCode()

    try:
        result = db.session.execute(
            db.update(OtpCode)
            .where(OtpCode.id == otp_id, OtpCode.usable_clause(now))
            .values(consumed_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidCode()
        on_success(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return user


def request_verification_code(email: str | None) -> OtpCode:
    return request_code(email, PURPOSE_VERIFY)


def request_reset_code(email: str | None) -> OtpCode:
    return request_code(email, PURPOSE_RESET)


def verify_email(email: str | None, code: str | None) -> User:
    """Consume a ``verify`` code and mark the account verified."""

    return consume_code(email, code, PURPOSE_VERIFY, User.mark_verified)


def reset_password(email: str | None, code: str | None, new_password: str) -> User:
    """Consume a ``reset`` code, replace the password and mark the account verified.

    A successful reset proves control of the mailbox, so it also verifies the
    account.
    """

    new_hash = hash_password(new_password)

    def _apply(user: User) -> None:
        user.password_hash = new_hash
        user.mark_verified()

    return consume_code(email, code, PURPOSE_RESET, _apply)
