"""Registration, login and profile operations for ordinary users."""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import Conflict, Forbidden, NotFound, Unauthorized

from models import db
from models.user import User
from services import google, otp
from services.credentials import (
    MalformedCredentialError,
    current_auth_settings,
    hash_password,
    issue_token,
    verify_password,
)


def _auth_response(user: User) -> dict[str, object]:
    return {
        "token": issue_token(user.id, current_auth_settings()),
        "user": user.to_public_dict(),
    }


def register(name: str, email: str, password: str) -> dict[str, object]:
    """Create a local, unverified account and return a token for it."""

    email = User.normalize_email(email)
    if User.find_by_email(email) is not None:
        raise Conflict("Email already registered.")

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        auth_provider="local",
        is_verified=False,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise Conflict("Email already registered.") from exc

    if current_app.config.get("OTP_SEND_ON_REGISTER"):
        otp.issue_code(user, otp.PURPOSE_VERIFY)

    current_app.logger.info("Registered user %s", user.id)
    return _auth_response(user)


def check_password(user_email: str, password: str, password_hash: str | None) -> None:
    """Raise Unauthorized unless ``password`` matches ``password_hash``."""

    if not password_hash:
        raise Unauthorized("Invalid email or password.")
    try:
        valid = verify_password(password, password_hash)
    except MalformedCredentialError:
        current_app.logger.exception("Stored password hash for %s is malformed", user_email)
        raise Unauthorized("Invalid email or password.")
    if not valid:
        raise Unauthorized("Invalid email or password.")


def login(email: str, password: str) -> dict[str, object]:
    """Authenticate with email and password; unverified accounts are refused."""

    user = User.find_by_email(email)
    if user is None:
        raise Unauthorized("Invalid email or password.")
    check_password(user.email, password, user.password_hash)
    if not user.is_verified:
        raise Forbidden("Email address has not been verified.")
    return _auth_response(user)


def get_profile(user_id: str) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


def delete_account(user_id: str) -> None:
    user = get_profile(user_id)
    db.session.delete(user)
    db.session.commit()
    current_app.logger.info("Deleted user %s", user_id)


def google_login(id_token: str) -> dict[str, object]:
    """Sign in (or sign up) with a Google ID token."""

    identity = google.verify_with_app_config(id_token)
    user = google.login_or_link(identity)
    if not user.is_verified:
        raise Forbidden("Email address has not been verified.")
    return _auth_response(user)
