"""End-to-end tests for registration, login and the OTP endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest
from flask import Flask
from flask.testing import FlaskClient

from conftest import bearer, create_user
from models import db
from models.otp_code import OtpCode
from models.user import User


def _latest_code(app: Flask, email: str, purpose: str) -> OtpCode:
    with app.app_context():
        user = User.find_by_email(email)
        code = (
            OtpCode.query.filter_by(user_id=user.id, purpose=purpose)
            .order_by(OtpCode.created_at.desc())
            .first()
        )
        db.session.expunge(code)
        return code


def test_register_verify_then_login(app: Flask, client: FlaskClient, sent_codes):
    """Unverified accounts cannot log in until they confirm the emailed code."""

    response = client.post(
        "/auth/register", json={"email": "a@x.com", "password": "secret123"}
    )
    assert response.status_code == 201
    payload = response.get_json()
    assert payload["token"]
    assert payload["user"]["email"] == "a@x.com"
    assert payload["user"]["is_verified"] is False
    assert payload["user"]["auth_provider"] == "local"
    assert "password_hash" not in payload["user"]

    blocked = client.post(
        "/auth/login", json={"email": "a@x.com", "password": "secret123"}
    )
    assert blocked.status_code == 403

    response = client.post("/auth/request-otp", json={"email": "a@x.com"})
    assert response.status_code == 200
    assert response.get_json() == {"ok": True}

    code = _latest_code(app, "a@x.com", "verify")
    assert len(code.code) == 6 and code.code.isdigit()
    assert sent_codes == [("a@x.com", code.code)]

    response = client.post(
        "/auth/verify-otp", json={"email": "a@x.com", "code": code.code}
    )
    assert response.status_code == 200
    assert response.get_json() == {"verified": True}

    response = client.post(
        "/auth/login", json={"email": "a@x.com", "password": "secret123"}
    )
    assert response.status_code == 200
    assert response.get_json()["user"]["is_verified"] is True


def test_register_token_works_for_me(client: FlaskClient):
    response = client.post(
        "/auth/register",
        json={"name": "Ann", "email": "Ann@Example.com", "password": "secret123"},
    )
    token = response.get_json()["token"]

    me = client.get("/me", headers=bearer(token))

    assert me.status_code == 200
    assert me.get_json()["email"] == "ann@example.com"
    assert me.get_json()["name"] == "Ann"


def test_duplicate_registration_conflicts(client: FlaskClient):
    client.post("/auth/register", json={"email": "dup@x.com", "password": "secret123"})

    response = client.post(
        "/auth/register", json={"email": "DUP@x.com", "password": "another1"}
    )

    assert response.status_code == 409
    assert response.get_json()["error"] == "Conflict"


def test_register_can_send_code_automatically(app: Flask, client: FlaskClient, sent_codes):
    app.config["OTP_SEND_ON_REGISTER"] = True

    client.post("/auth/register", json={"email": "auto@x.com", "password": "secret123"})

    assert len(sent_codes) == 1
    throttled = client.post("/auth/request-otp", json={"email": "auto@x.com"})
    assert throttled.status_code == 429


@pytest.mark.parametrize(
    "payload, status_code",
    [
        ({"email": "v@x.com"}, 400),
        ({"password": "secret123"}, 400),
        ({"email": "v@x.com", "password": "wrong"}, 401),
        ({"email": "nobody@x.com", "password": "secret123"}, 401),
    ],
)
def test_login_validation(app: Flask, client: FlaskClient, payload, status_code):
    with app.app_context():
        create_user("v@x.com", verified=True)

    response = client.post("/auth/login", json=payload)

    assert response.status_code == status_code


def test_login_without_password_credential_is_unauthorized(app: Flask, client: FlaskClient):
    with app.app_context():
        create_user("google-only@x.com", password=None, verified=True)

    response = client.post(
        "/auth/login", json={"email": "google-only@x.com", "password": "anything"}
    )

    assert response.status_code == 401


def test_login_with_corrupt_stored_hash_is_unauthorized(app: Flask, client: FlaskClient):
    with app.app_context():
        user = create_user("corrupt@x.com", verified=True)
        user.password_hash = "plaintext-oops"
        db.session.commit()

    response = client.post(
        "/auth/login", json={"email": "corrupt@x.com", "password": "secret123"}
    )

    assert response.status_code == 401


def test_request_otp_throttle_response(app: Flask, client: FlaskClient, sent_codes):
    with app.app_context():
        create_user("t@x.com")

    assert client.post("/auth/request-otp", json={"email": "t@x.com"}).status_code == 200
    response = client.post("/auth/request-otp", json={"email": "t@x.com"})

    assert response.status_code == 429
    payload = response.get_json()
    assert payload["error"] == "Too Many Requests"
    assert 0 < payload["retry_after"] <= 120
    assert response.headers["Retry-After"] == str(payload["retry_after"])


def test_request_otp_after_cooldown(app: Flask, client: FlaskClient, sent_codes):
    with app.app_context():
        create_user("t@x.com")
    client.post("/auth/request-otp", json={"email": "t@x.com"})

    with app.app_context():
        code = OtpCode.query.one()
        code.created_at = code.created_at - timedelta(seconds=120)
        db.session.commit()

    response = client.post("/auth/request-otp", json={"email": "t@x.com"})
    assert response.status_code == 200


def test_request_otp_unknown_email(client: FlaskClient):
    response = client.post("/auth/request-otp", json={"email": "ghost@x.com"})

    assert response.status_code == 404


def test_verify_otp_twice_fails_second_time(app: Flask, client: FlaskClient, sent_codes):
    with app.app_context():
        create_user("once@x.com")
    client.post("/auth/request-otp", json={"email": "once@x.com"})
    code = _latest_code(app, "once@x.com", "verify").code

    first = client.post("/auth/verify-otp", json={"email": "once@x.com", "code": code})
    second = client.post("/auth/verify-otp", json={"email": "once@x.com", "code": code})

    assert first.status_code == 200
    assert second.status_code == 400
    assert second.get_json()["detail"] == "Invalid or expired code."


@pytest.mark.parametrize("code", ["12345", "1234567", "abcdef", "12 456"])
def test_verify_otp_rejects_malformed_codes(app: Flask, client: FlaskClient, code):
    with app.app_context():
        create_user("fmt@x.com")

    response = client.post("/auth/verify-otp", json={"email": "fmt@x.com", "code": code})

    assert response.status_code == 400


def test_forgot_and_reset_password(app: Flask, client: FlaskClient, sent_codes):
    with app.app_context():
        create_user("r@x.com", "oldpass123")

    response = client.post("/auth/forgot-password", json={"email": "r@x.com"})
    assert response.status_code == 200
    code = _latest_code(app, "r@x.com", "reset").code

    response = client.post(
        "/auth/reset-password",
        json={"email": "r@x.com", "code": code, "new_password": "newpass456"},
    )
    assert response.status_code == 200
    assert response.get_json() == {"reset": True}

    old = client.post("/auth/login", json={"email": "r@x.com", "password": "oldpass123"})
    new = client.post("/auth/login", json={"email": "r@x.com", "password": "newpass456"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_logout_requires_token_and_is_stateless(client: FlaskClient):
    token = client.post(
        "/auth/register", json={"email": "out@x.com", "password": "secret123"}
    ).get_json()["token"]

    assert client.post("/auth/logout").status_code == 401
    response = client.post("/auth/logout", headers=bearer(token))
    assert response.status_code == 200
    assert response.get_json() == {"ok": True}
    assert client.get("/me", headers=bearer(token)).status_code == 200


def test_delete_me_removes_account_and_codes(app: Flask, client: FlaskClient, sent_codes):
    token = client.post(
        "/auth/register", json={"email": "bye@x.com", "password": "secret123"}
    ).get_json()["token"]
    client.post("/auth/request-otp", json={"email": "bye@x.com"})

    response = client.delete("/me", headers=bearer(token))

    assert response.status_code == 204
    with app.app_context():
        assert User.find_by_email("bye@x.com") is None
        assert OtpCode.query.count() == 0
    assert client.get("/me", headers=bearer(token)).status_code == 404


@pytest.mark.parametrize("email", ["not-an-email", "a@x", "a@x.com\nbcc: evil@y.com"])
def test_register_rejects_non_address_emails(app: Flask, client: FlaskClient, email):
    response = client.post("/auth/register", json={"email": email, "password": "secret123"})

    assert response.status_code == 400
    with app.app_context():
        assert User.query.count() == 0


def test_request_otp_survives_unsendable_address(app: Flask, client: FlaskClient):
    app.config["SMTP_HOST"] = "smtp.test"
    app.config["SMTP_FROM"] = "noreply@x.com"
    with app.app_context():
        create_user("a@x.com\nbcc: evil@y.com")

    response = client.post("/auth/request-otp", json={"email": "a@x.com\nbcc: evil@y.com"})

    assert response.status_code == 200
    with app.app_context():
        assert OtpCode.query.count() == 1


def test_verify_otp_unknown_email_wins_over_malformed_code(client: FlaskClient):
    response = client.post("/auth/verify-otp", json={"email": "ghost@x.com", "code": "12ab"})

    assert response.status_code == 404
