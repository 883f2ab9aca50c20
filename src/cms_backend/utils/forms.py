"""Parsing helpers for multipart form fields sent by the admin UI."""

from __future__ import annotations

import json
import re
from datetime import date, datetime, timezone
from typing import Any, Optional

from ..errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_PATTERN.match(value.strip()) is not None


def optional_text(value: Optional[str]) -> Optional[str]:
    """Return the stripped value, or None for missing/blank input."""

    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def require_text(value: Optional[str], label: str) -> str:
    text = optional_text(value)
    if text is None:
        raise ValidationError(f"{label} is required")
    return text


def parse_bool(value: Any, *, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValidationError(f"Invalid boolean value: {value!r}")


def parse_json_field(value: Optional[str], label: str, *, default: Any = None) -> Any:
    """Decode a JSON-encoded form field."""

    if value is None or not value.strip():
        return default
    try:
        return json.loads(value)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{label} must be valid JSON") from exc


def parse_string_list(value: Any, label: str = "value") -> list[str]:
    """Accept a list, a JSON array string, or a comma separated string."""

    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text[0] in "[{\"":
            value = parse_json_field(text, label)
        else:
            return [item.strip() for item in text.split(",") if item.strip()]
    if not isinstance(value, list):
        raise ValidationError(f"{label} must be a list")
    return [str(item).strip() for item in value if str(item).strip()]


def parse_json_list(value: Optional[str], label: str) -> list[str]:
    """Decode a form field that must hold a JSON array of strings."""

    if value is None or not value.strip():
        return []
    decoded = parse_json_field(value, label)
    if not isinstance(decoded, list) or not all(isinstance(item, str) for item in decoded):
        raise ValidationError(f"{label} must be a JSON list of strings")
    return decoded


def like_pattern(term: str) -> str:
    """Return a case-insensitive LIKE pattern; use with ``ESCAPE '\\'``."""

    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def parse_datetime(value: Optional[str], label: str) -> Optional[str]:
    """Normalize a date or datetime form value to an ISO-8601 UTC string."""

    text = optional_text(value)
    if text is None:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            day = date.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(f"{label} must be an ISO date") from exc
        parsed = datetime(day.year, day.month, day.day)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).isoformat(timespec="microseconds")


__all__ = [
    "EMAIL_PATTERN",
    "is_valid_email",
    "like_pattern",
    "optional_text",
    "parse_bool",
    "parse_datetime",
    "parse_json_field",
    "parse_json_list",
    "parse_string_list",
    "require_text",
]
