"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.user import User  # noqa: E402
from services.credentials import hash_password  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-secret-key-with-at-least-32-bytes!"
    JWT_EXP_HOURS = 24
    SMTP_HOST = None
    GOOGLE_CLIENT_ID = "test-client.apps.googleusercontent.com"
    GOOGLE_TOKENINFO_URL = "https://tokeninfo.test/tokeninfo"
    GOOGLE_ASSUME_EMAIL_VERIFIED = True
    OTP_SEND_ON_REGISTER = False
    OTP_LOG_CODES = False


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(_BaseTestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def app_ctx(app: Flask):
    """Push an application context for tests that call services directly."""

    with app.app_context():
        yield app


@pytest.fixture()
def sent_codes(monkeypatch) -> list[tuple[str, str]]:
    """Capture OTP emails instead of talking to SMTP."""

    from services import mailer

    outbox: list[tuple[str, str]] = []
    monkeypatch.setattr(mailer, "send_otp", lambda to, code: outbox.append((to, code)))
    return outbox


def create_user(
    email: str,
    password: str | None = "secret123",
    *,
    verified: bool = False,
    name: str = "",
) -> User:
    """Helper to create and persist a user inside an app context."""

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password) if password else None,
        is_verified=verified,
    )
    db.session.add(user)
    db.session.commit()
    return user


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
