"""Administrator registration and login."""

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import Conflict, Forbidden, NotFound, Unauthorized

from models import db
from models.admin import Admin
from models.user import User
from services.accounts import check_password
from services.credentials import current_auth_settings, hash_password, issue_token


def _auth_response(admin: Admin) -> dict[str, object]:
    return {
        "token": issue_token(admin.id, current_auth_settings()),
        "admin": admin.to_public_dict(),
    }


def register(name: str, email: str, password: str, *, acting_admin_id: str | None) -> dict[str, object]:
    """Create an administrator.

    Allowed for an authenticated administrator, or for anyone while no
    administrator exists yet. The count and the insert are separate
    statements, so simultaneous first registrations can both succeed.
    """

    if Admin.count() > 0 and acting_admin_id is None:
        raise Forbidden("Administrator privileges required.")

    email = User.normalize_email(email)
    admin = Admin(name=name, email=email, password_hash=hash_password(password))
    db.session.add(admin)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise Conflict("Admin email already exists.") from exc

    if acting_admin_id is None:
        current_app.logger.warning("Bootstrapped first administrator %s", admin.id)
    else:
        current_app.logger.info("Administrator %s created by %s", admin.id, acting_admin_id)
    return _auth_response(admin)


def login(email: str, password: str) -> dict[str, object]:
    admin = Admin.find_by_email(email)
    if admin is None:
        raise Unauthorized("Invalid email or password.")
    check_password(admin.email, password, admin.password_hash)
    return _auth_response(admin)


def get_profile(admin_id: str) -> Admin:
    admin = db.session.get(Admin, admin_id)
    if admin is None:
        raise NotFound("Administrator not found.")
    return admin
