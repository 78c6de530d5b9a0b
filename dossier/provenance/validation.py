"""Input checks shared by the provenance components."""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import TypeVar

from dossier.errors import ValidationError

E = TypeVar("E", bound=Enum)


def require_text(value: str | None, field: str) -> str:
    """Return ``value`` trimmed, or raise if it is missing or blank."""
    trimmed = value.strip() if isinstance(value, str) else ""
    if not trimmed:
        raise ValidationError(f"{field} is required")
    return trimmed


def optional_text(value: str | None) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    return value


def require_choice(value: str | E | None, choices: type[E], field: str) -> E:
    if isinstance(value, choices):
        return value
    try:
        return choices(value)
    except ValueError:
        allowed = ", ".join(c.value for c in choices)
        raise ValidationError(f"Invalid {field} {value!r}, must be one of: {allowed}") from None


def require_date(value: str | date | None, field: str) -> str:
    """Accept an ISO date or datetime and return its canonical ISO form.

    Dates become ``YYYY-MM-DD``; datetimes are converted to UTC (naive values
    are taken as UTC) with microsecond precision, so stored values sort
    chronologically as plain strings.
    """
    if isinstance(value, datetime):
        return _utc_iso(value)
    if isinstance(value, date):
        return value.isoformat()
    text = require_text(value, field)
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        pass
    try:
        return _utc_iso(datetime.fromisoformat(text))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date, got {text!r}") from None


def _utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def optional_date(value: str | date | None, field: str) -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return require_date(value, field)
