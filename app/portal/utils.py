from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from email_validator import EmailNotValidError, validate_email

from app.portal.errors import ValidationError


def json_body(raw: Any) -> dict:
    """Request JSON must be an object."""
    if not isinstance(raw, dict):
        raise ValidationError("Invalid input")
    return raw


def text_field(payload: dict, key: str) -> str:
    """String value for `key`; missing or non-string values read as ""."""
    value = payload.get(key)
    if not isinstance(value, str):
        return ""
    return value


def first_error(errors: list[str]) -> None:
    """Surface only the first failing field, like the form layer expects."""
    if errors:
        raise ValidationError(errors[0])


def check_length(value: str, *, label: str, max_length: int, min_length: int = 1) -> str | None:
    if len(value) < min_length:
        return f"{label} is required"
    if len(value) > max_length:
        return f"{label} is too long"
    return None


def is_valid_email(value: str) -> bool:
    if not value:
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def normalize_email(value: str) -> str:
    return value.strip().lower()


def is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return False
    return True


def iso(value: datetime | None) -> str | None:
    """ISO-8601 in UTC with a `Z` suffix; naive values are stored as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
