"""Google sign-in: token verification and local account mapping."""

from __future__ import annotations

from dataclasses import dataclass

import requests
from flask import current_app
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import BadRequest, Conflict, Unauthorized

from models import db
from models.user import User
from services.settings import get_setting

CLIENT_ID_SETTING = "google_client_id"

_TRUE_VALUES = {"true", "1"}
_FALSE_VALUES = {"false", "0"}


@dataclass(frozen=True)
class ExternalIdentity:
    subject: str
    email: str
    display_name: str
    email_verified: bool


def resolve_client_id() -> str:
    """Return the configured OAuth client id, preferring app config over ``app_settings``."""

    client_id = current_app.config.get("GOOGLE_CLIENT_ID") or get_setting(CLIENT_ID_SETTING)
    if not client_id:
        raise BadRequest("Google client id is not configured.")
    return client_id


def _parse_email_verified(raw: object, assume_verified: bool) -> bool:
    if raw is None:
        return assume_verified
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise BadRequest("Invalid email_verified value in tokeninfo response.")


def verify_external_token(
    expected_audience: str,
    raw_id_token: str,
    *,
    tokeninfo_url: str,
    assume_email_verified: bool,
    timeout: float = 10,
) -> ExternalIdentity:
    """Ask Google's token-info endpoint about ``raw_id_token``.

    The provider's ``email_verified`` assertion is trusted as returned; when the
    field is absent ``assume_email_verified`` decides.
    """

    try:
        response = requests.get(
            tokeninfo_url,
            params={"id_token": raw_id_token},
            timeout=timeout,
        )
    except requests.RequestException as exc:
        current_app.logger.warning("tokeninfo request failed: %s", exc)
        raise Unauthorized("Google token could not be verified.") from exc

    if not response.ok:
        current_app.logger.info("tokeninfo rejected token: %s %s", response.status_code, response.text[:200])
        raise Unauthorized("Google token could not be verified.")

    try:
        info = response.json()
    except ValueError as exc:
        raise BadRequest("Invalid tokeninfo response.") from exc
    if not isinstance(info, dict):
        raise BadRequest("Invalid tokeninfo response.")

    audience = info.get("aud")
    subject = info.get("sub")
    if not audience or not subject:
        raise BadRequest("Invalid tokeninfo response.")
    if audience != expected_audience:
        current_app.logger.warning("Google token audience mismatch: %s", audience)
        raise Unauthorized("Google token was issued for a different client.")

    email = User.normalize_email(info.get("email"))
    if not email:
        raise BadRequest("Email not present in token.")

    return ExternalIdentity(
        subject=str(subject),
        email=email,
        display_name=info.get("name") or "User",
        email_verified=_parse_email_verified(info.get("email_verified"), assume_email_verified),
    )


def verify_with_app_config(raw_id_token: str) -> ExternalIdentity:
    config = current_app.config
    return verify_external_token(
        resolve_client_id(),
        raw_id_token,
        tokeninfo_url=config["GOOGLE_TOKENINFO_URL"],
        assume_email_verified=bool(config.get("GOOGLE_ASSUME_EMAIL_VERIFIED", True)),
        timeout=config.get("GOOGLE_HTTP_TIMEOUT", 10),
    )


def login_or_link(identity: ExternalIdentity) -> User:
    """Map a verified Google identity onto a local account.

    Creates a Google account when the email is unknown; otherwise links the
    Google subject to the existing account (if it has none yet) and upgrades
    its verification when Google vouches for the address.
    """

    user = User.find_by_email(identity.email)
    if user is None:
        user = User(
            name=identity.display_name,
            email=identity.email,
            password_hash=None,
            auth_provider="google",
            google_sub=identity.subject,
            is_verified=identity.email_verified,
        )
        db.session.add(user)
    else:
        if user.google_sub is None:
            user.link_google(identity.subject)
        elif user.google_sub != identity.subject:
            current_app.logger.warning(
                "Google subject for %s differs from the linked one", user.email
            )
        if not user.is_verified and identity.email_verified:
            user.mark_verified()

    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise Conflict("An account with that email or Google id already exists.") from exc
    return user
