"""Authentication blueprints for ordinary users: credentials, OTP flows and Google sign-in."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, g, jsonify, request

from services import accounts, otp
from utils.identity import user_required
from utils.request_validation import email_field, parse_json_request, string_field

auth_bp = Blueprint("auth", __name__)
me_bp = Blueprint("me", __name__)


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Register a new local account with an email and password."""
    payload = parse_json_request(request, required_keys=("email", "password"))
    result = accounts.register(
        name=string_field(payload, "name"),
        email=email_field(payload),
        password=string_field(payload, "password", strip=False),
    )
    return jsonify(result), HTTPStatus.CREATED


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a verified user and return a session token."""
    payload = parse_json_request(request, required_keys=("email", "password"))
    result = accounts.login(
        string_field(payload, "email"),
        string_field(payload, "password", strip=False),
    )
    return jsonify(result), HTTPStatus.OK


@auth_bp.route("/request-otp", methods=["POST"])
def request_otp() -> tuple:
    payload = parse_json_request(request, required_keys=("email",))
    otp.request_verification_code(string_field(payload, "email"))
    return jsonify({"ok": True}), HTTPStatus.OK


@auth_bp.route("/verify-otp", methods=["POST"])
def verify_otp() -> tuple:
    payload = parse_json_request(request, required_keys=("email", "code"))
    otp.verify_email(
        string_field(payload, "email"),
        string_field(payload, "code"),
    )
    return jsonify({"verified": True}), HTTPStatus.OK


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password() -> tuple:
    payload = parse_json_request(request, required_keys=("email",))
    otp.request_reset_code(string_field(payload, "email"))
    return jsonify({"ok": True}), HTTPStatus.OK


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password() -> tuple:
    """Set a new password using a ``reset`` code."""
    payload = parse_json_request(
        request, required_keys=("email", "code", "new_password")
    )
    otp.reset_password(
        string_field(payload, "email"),
        string_field(payload, "code"),
        string_field(payload, "new_password", strip=False),
    )
    return jsonify({"reset": True}), HTTPStatus.OK


@auth_bp.route("/logout", methods=["POST"])
@user_required
def logout() -> tuple:
    # Tokens are stateless; the client discards its copy.
    return jsonify({"ok": True}), HTTPStatus.OK


@auth_bp.route("/google", methods=["POST"])
def google_login() -> tuple:
    """Sign in with a Google ID token, creating or linking the local account."""
    payload = parse_json_request(request, required_keys=("id_token",))
    result = accounts.google_login(string_field(payload, "id_token"))
    return jsonify(result), HTTPStatus.OK


@me_bp.route("/me", methods=["GET"])
@user_required
def me() -> tuple:
    user = accounts.get_profile(g.user_id)
    return jsonify(user.to_public_dict()), HTTPStatus.OK


@me_bp.route("/me", methods=["DELETE"])
@user_required
def delete_me() -> tuple:
    accounts.delete_account(g.user_id)
    return "", HTTPStatus.NO_CONTENT
