"""Persisted application settings and their lookup helpers."""

from __future__ import annotations

from flask import current_app

from models import db, utcnow
from models.setting import Setting


def get_setting(key: str) -> str | None:
    """Return the stored value for ``key`` or ``None`` when unset."""

    setting = db.session.get(Setting, key)
    if setting is None:
        return None
    return setting.value


def setting_or_config(key: str, config_key: str) -> str | None:
    """Prefer the persisted setting, falling back to application config."""

    value = get_setting(key)
    if value:
        return value
    configured = current_app.config.get(config_key)
    return str(configured) if configured not in (None, "") else None


def list_settings() -> list[Setting]:
    return db.session.scalars(db.select(Setting).order_by(Setting.key)).all()


def set_setting(key: str, value: str, admin_id: str | None = None) -> Setting:
    """Insert or update a setting and commit."""

    setting = db.session.get(Setting, key)
    if setting is None:
        setting = Setting(key=key, value=value)
        db.session.add(setting)
    setting.value = value
    setting.updated_by = admin_id
    setting.updated_at = utcnow()
    db.session.commit()
    current_app.logger.info("Setting %s updated by %s", key, admin_id or "system")
    return setting
