"""Per-request resolution of the authenticated principal."""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar

from flask import current_app, g, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import Forbidden, HTTPException, Unauthorized

from models import db
from models.admin import Admin
from services.credentials import current_auth_settings, verify_token

F = TypeVar("F", bound=Callable)

BEARER_PREFIX = "Bearer "


class MissingTokenError(Unauthorized):
    description = "Missing or malformed authorization header."


def bearer_token() -> str:
    """Return the raw token from ``Authorization: Bearer <token>``."""

    header = request.headers.get("Authorization", "")
    if not header.startswith(BEARER_PREFIX):
        raise MissingTokenError()
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingTokenError()
    return token


def resolve_user_id() -> str:
    """Return the subject of a valid bearer token.

    Ordinary endpoints only need the id; views that need the profile load it
    themselves.
    """

    claims = verify_token(bearer_token(), current_auth_settings())
    return claims.sub


def resolve_admin_id() -> str:
    """Return the subject of a valid bearer token that belongs to an administrator."""

    subject = resolve_user_id()
    try:
        matches = db.session.scalar(
            db.select(db.func.count()).select_from(Admin).where(Admin.id == subject)
        )
    except SQLAlchemyError:
        current_app.logger.exception("Administrator lookup failed")
        db.session.rollback()
        raise Unauthorized()
    if not matches:
        raise Forbidden("Administrator privileges required.")
    return subject


def optional_admin_id() -> str | None:
    """Return the administrator id when the request carries one, else ``None``."""

    if "Authorization" not in request.headers:
        return None
    try:
        return resolve_admin_id()
    except HTTPException:
        return None


def user_required(view: F) -> F:
    """Require a valid bearer token; exposes the subject as ``g.user_id``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        g.user_id = resolve_user_id()
        return view(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def admin_required(view: F) -> F:
    """Require a bearer token issued to an administrator; exposes ``g.admin_id``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        g.admin_id = resolve_admin_id()
        return view(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
