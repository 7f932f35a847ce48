"""Application configuration module."""

import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///app.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Session tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET", os.getenv("JWT_SECRET_KEY", "dev-secret-change-me"))
    JWT_EXP_HOURS = int(os.getenv("JWT_EXP_HOURS", str(24 * 7)))

    # CORS
    _raw_origins = os.getenv("ORIGINS", os.getenv("CORS_ALLOWED_ORIGINS", "*"))
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # One-time codes
    OTP_SEND_ON_REGISTER = _env_bool("OTP_SEND_ON_REGISTER", False)
    OTP_LOG_CODES = _env_bool("OTP_LOG_CODES", False)

    # Outbound mail (app_settings rows take precedence)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = os.getenv("SMTP_PORT", "587")
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM = os.getenv("SMTP_FROM")
    SMTP_TLS = os.getenv("SMTP_TLS", "true")
    MAIL_TIMEOUT = float(os.getenv("MAIL_TIMEOUT", "10"))

    # Google sign-in
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    GOOGLE_TOKENINFO_URL = os.getenv(
        "GOOGLE_TOKENINFO_URL", "https://oauth2.googleapis.com/tokeninfo"
    )
    GOOGLE_HTTP_TIMEOUT = float(os.getenv("GOOGLE_HTTP_TIMEOUT", "10"))
    # Applied when the token-info response omits ``email_verified``.
    GOOGLE_ASSUME_EMAIL_VERIFIED = _env_bool("GOOGLE_ASSUME_EMAIL_VERIFIED", True)
