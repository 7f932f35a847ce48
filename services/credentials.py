"""Password hashing and signed session tokens.

Tokens are HS256 JWTs carrying only ``sub``, ``iat`` and ``exp``. Nothing is
stored server side, so a token is valid exactly as long as its signature
checks out under the current secret and ``exp`` has not passed. Rotating the
secret invalidates every outstanding token.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Mapping

import jwt
from argon2 import PasswordHasher, Type
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError
from flask import current_app
from werkzeug.exceptions import InternalServerError, Unauthorized

EXTENSION_KEY = "auth_settings"
TOKEN_ALGORITHM = "HS256"

_password_hasher = PasswordHasher(type=Type.ID)


class CredentialError(InternalServerError):
    """Raised when the hashing library itself fails."""

    description = "Unable to process credentials."


class MalformedCredentialError(CredentialError):
    """Raised when a stored password hash cannot be parsed."""

    description = "Stored credential is malformed."


class InvalidTokenError(Unauthorized):
    """Any failure to verify a bearer token.

    Bad signatures, malformed tokens and expired tokens all map here so that
    callers cannot tell them apart.
    """

    description = "Invalid or expired token."


@dataclass(frozen=True)
class AuthSettings:
    """Immutable token signing configuration."""

    secret: str
    token_lifetime_hours: int = 24 * 7
    algorithm: str = TOKEN_ALGORITHM

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "AuthSettings":
        secret = config.get("JWT_SECRET_KEY") or config.get("SECRET_KEY")
        if not secret:
            raise RuntimeError("JWT_SECRET_KEY must be configured.")
        return cls(
            secret=str(secret),
            token_lifetime_hours=int(config.get("JWT_EXP_HOURS", 24 * 7)),
        )


@dataclass(frozen=True)
class SessionClaims:
    sub: str
    iat: int
    exp: int


def current_auth_settings() -> AuthSettings:
    """Return the settings the running application was created with."""

    return current_app.extensions[EXTENSION_KEY]


def hash_password(plaintext: str) -> str:
    """Derive an Argon2id hash with a fresh random salt."""

    try:
        return _password_hasher.hash(plaintext)
    except HashingError as exc:
        raise CredentialError() from exc


def verify_password(plaintext: str, credential: str) -> bool:
    """Check ``plaintext`` against a stored Argon2 hash.

    Returns ``False`` on a mismatch. A hash that cannot be parsed raises
    :class:`MalformedCredentialError` so it shows up as a server problem in the
    logs instead of looking like a wrong password.
    """

    try:
        return _password_hasher.verify(credential, plaintext)
    except VerifyMismatchError:
        return False
    except InvalidHashError as exc:
        raise MalformedCredentialError() from exc
    except VerificationError:
        return False


def issue_token(subject_id: str, settings: AuthSettings, now: datetime | None = None) -> str:
    """Sign a session token for ``subject_id``."""

    issued_at = now or datetime.now(UTC)
    expires_at = issued_at + timedelta(hours=settings.token_lifetime_hours)
    claims = {
        "sub": str(subject_id),
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(claims, settings.secret, algorithm=settings.algorithm)


def verify_token(token: str, settings: AuthSettings) -> SessionClaims:
    """Check the signature and temporal claims of ``token``."""

    try:
        payload = jwt.decode(
            token,
            settings.secret,
            algorithms=[settings.algorithm],
            options={"require": ["sub", "iat", "exp"]},
        )
        return SessionClaims(
            sub=str(payload["sub"]),
            iat=int(payload["iat"]),
            exp=int(payload["exp"]),
        )
    except (jwt.PyJWTError, TypeError, ValueError) as exc:
        raise InvalidTokenError() from exc
