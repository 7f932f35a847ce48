"""Database initialization and model exports."""

import uuid
from datetime import UTC, datetime

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def utcnow() -> datetime:
    """Return the current time as a naive UTC datetime, as stored in the database."""

    return datetime.now(UTC).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .admin import Admin  # noqa: E402,F401
from .otp_code import OtpCode  # noqa: E402,F401
from .setting import Setting  # noqa: E402,F401

__all__ = [
    "db",
    "utcnow",
    "new_id",
    "User",
    "Admin",
    "OtpCode",
    "Setting",
]
