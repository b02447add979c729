import re
from datetime import datetime, timezone

from flask import current_app

from models.user import ROLE_BUYER, ROLE_COMPANY
from utils.errors import ValidationError

TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_URL_RE = re.compile(r"^https?://.+", re.IGNORECASE)

MANAGED_ROLES = (ROLE_COMPANY, ROLE_BUYER)


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return isinstance(email, str) and len(email) <= 255 and bool(_EMAIL_RE.match(email))


def is_valid_time(value) -> bool:
    return isinstance(value, str) and bool(TIME_RE.match(value))


def normalize_website(value: str):
    website = (value or "").strip()
    if not website:
        return None
    if not _URL_RE.match(website):
        website = "https://" + website
    return website


def parse_iso_datetime(value, field: str) -> datetime:
    """
    Parse an ISO 8601 string into a naive UTC datetime.
    A trailing "Z" and explicit offsets are accepted.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use ISO 8601 e.g. 2025-09-15T10:00:00")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _optional_str(data: dict, key: str, max_len: int):
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or len(value) > max_len:
        raise ValidationError(f"Invalid {key}")
    return value.strip()


def clean_user_fields(data: dict, partial: bool = False, require_role: bool = True) -> dict:
    """
    Validate user create/update payloads.

    Raises ValidationError carrying the first failing rule. With partial=True
    only the keys present in data are checked and returned.
    """
    out = {}
    min_len = current_app.config.get("PASSWORD_MIN_LEN", 6)

    if not partial or "name" in data:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Name is required")
        if len(name.strip()) > 120:
            raise ValidationError("Name must be at most 120 characters")
        out["name"] = name.strip()

    if not partial or "email" in data:
        email = normalize_email(data.get("email") if isinstance(data.get("email"), str) else "")
        if not is_valid_email(email):
            raise ValidationError("Invalid email")
        out["email"] = email

    if not partial or "password" in data:
        password = data.get("password")
        if not isinstance(password, str) or len(password) < min_len:
            raise ValidationError(f"Password must be at least {min_len} characters")
        out["password"] = password

    if require_role and not partial:
        role = (data.get("role") or "")
        role = role.strip().upper() if isinstance(role, str) else ""
        if role not in MANAGED_ROLES:
            raise ValidationError("role must be COMPANY or BUYER")
        out["role"] = role

    if "description" in data:
        out["description"] = _optional_str(data, "description", 5000) or None
    if "website" in data:
        website = _optional_str(data, "website", 255)
        out["website"] = normalize_website(website)

    return out
