"""Outbound email over SMTP.

SMTP settings are read from ``app_settings`` (``smtp_host``, ``smtp_port``,
``smtp_username``, ``smtp_password``, ``smtp_from``, ``smtp_tls``) and fall
back to the ``SMTP_*`` configuration values.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from email.message import EmailMessage

import aiosmtplib
from flask import current_app

from services.settings import setting_or_config


class MailDeliveryError(Exception):
    """Raised when an email could not be built or delivered."""


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int
    username: str | None
    password: str | None
    sender: str
    use_tls: bool


def load_smtp_settings() -> SmtpSettings:
    host = setting_or_config("smtp_host", "SMTP_HOST")
    if not host:
        raise MailDeliveryError("SMTP not configured.")
    sender = setting_or_config("smtp_from", "SMTP_FROM")
    if not sender:
        raise MailDeliveryError("smtp_from missing.")
    raw_port = setting_or_config("smtp_port", "SMTP_PORT") or "587"
    try:
        port = int(raw_port)
    except ValueError as exc:
        raise MailDeliveryError(f"Invalid smtp_port: {raw_port!r}.") from exc
    tls = (setting_or_config("smtp_tls", "SMTP_TLS") or "true").strip().lower()

    return SmtpSettings(
        host=host,
        port=port,
        username=setting_or_config("smtp_username", "SMTP_USERNAME"),
        password=setting_or_config("smtp_password", "SMTP_PASSWORD"),
        sender=sender,
        use_tls=tls == "true",
    )


def send_email(to_email: str, subject: str, body_text: str) -> None:
    """Send a plain-text email, raising :class:`MailDeliveryError` on any failure."""

    smtp = load_smtp_settings()

    try:
        message = EmailMessage()
        message["From"] = smtp.sender
        message["To"] = to_email
        message["Subject"] = subject
        message.set_content(body_text)
    except (ValueError, TypeError) as exc:
        raise MailDeliveryError(f"Cannot build message for {to_email!r}: {exc}") from exc

    # Port 465 expects implicit TLS; anything else upgrades with STARTTLS.
    implicit_tls = smtp.use_tls and smtp.port == 465
    try:
        asyncio.run(
            aiosmtplib.send(
                message,
                hostname=smtp.host,
                port=smtp.port,
                username=smtp.username or None,
                password=smtp.password or None,
                use_tls=implicit_tls,
                start_tls=smtp.use_tls and not implicit_tls,
                timeout=current_app.config.get("MAIL_TIMEOUT", 10),
            )
        )
    except (aiosmtplib.SMTPException, OSError, ValueError) as exc:
        raise MailDeliveryError(f"SMTP send error: {exc}") from exc


def send_otp(to_email: str, code: str) -> None:
    subject = "Your verification code"
    body = f"Your OTP code is: {code}\nThis code expires in 10 minutes."
    send_email(to_email, subject, body)
