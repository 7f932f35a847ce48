"""Administrator blueprint: authentication and persisted settings."""

from __future__ import annotations
from http import HTTPStatus

from flask import Blueprint, g, jsonify, request
from werkzeug.exceptions import BadRequest

from services import admin_auth, settings
from utils.identity import admin_required, optional_admin_id
from utils.request_validation import email_field, parse_json_request, string_field

admin_bp = Blueprint("admin_auth", __name__)

SETTING_KEY_MAX_LENGTH = 128


@admin_bp.route("/auth/register", methods=["POST"])
def register_admin() -> tuple:
    """Create an administrator.

    Open to anyone until the first administrator exists; afterwards the
    caller must present an administrator token.
    """
    acting_admin_id = optional_admin_id()
    payload = parse_json_request(request, required_keys=("email", "password"))
    result = admin_auth.register(
        name=string_field(payload, "name"),
        email=email_field(payload),
        password=string_field(payload, "password", strip=False),
        acting_admin_id=acting_admin_id,
    )
    return jsonify(result), HTTPStatus.CREATED


@admin_bp.route("/auth/login", methods=["POST"])
def login_admin() -> tuple:
    payload = parse_json_request(request, required_keys=("email", "password"))
    result = admin_auth.login(
        string_field(payload, "email"),
        string_field(payload, "password", strip=False),
    )
    return jsonify(result), HTTPStatus.OK


@admin_bp.route("/me", methods=["GET"])
@admin_required
def me_admin() -> tuple:
    admin = admin_auth.get_profile(g.admin_id)
    return jsonify(admin.to_public_dict()), HTTPStatus.OK


@admin_bp.route("/settings", methods=["GET"])
@admin_required
def list_settings() -> tuple:
    rows = [setting.to_public_dict() for setting in settings.list_settings()]
    return jsonify(rows), HTTPStatus.OK


@admin_bp.route("/settings/<key>", methods=["PUT"])
@admin_required
def upsert_setting(key: str) -> tuple:
    """Create or replace one persisted setting, e.g. ``google_client_id`` or ``smtp_host``."""
    if len(key) > SETTING_KEY_MAX_LENGTH:
        raise BadRequest("Setting key is too long.")
    payload = parse_json_request(request)
    if "value" not in payload:
        raise BadRequest("Missing required fields: value.")
    setting = settings.set_setting(key, string_field(payload, "value"), admin_id=g.admin_id)
    return jsonify(setting.to_public_dict()), HTTPStatus.OK
