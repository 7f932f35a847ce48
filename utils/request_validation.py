"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import re
from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest

EMAIL_REGEX = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error.

    ``required_keys`` must be present as non-blank strings.
    """

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if not _is_filled(data.get(key))]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(
                    ", ".join(sorted(missing))
                )
            )

    return data


def _is_filled(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def string_field(data: dict, key: str, *, strip: bool = True) -> str:
    """Return ``data[key]`` as a string, or an empty string when absent."""

    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise BadRequest(f"Field '{key}' must be a string.")
    return value.strip() if strip else value


def email_field(data: dict, key: str = "email") -> str:
    """Return ``data[key]`` if it looks like a single email address."""

    value = string_field(data, key)
    if len(value) > 254 or not EMAIL_REGEX.fullmatch(value):
        raise BadRequest(f"Field '{key}' must be a valid email address.")
    return value
