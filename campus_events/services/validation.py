"""
Client-side rules for the create/edit event form.

Validation runs before any network call. It returns a mapping of field name
to message; an empty mapping means the form may be submitted.
"""

import math
from datetime import datetime
from typing import Any, Mapping, Optional

from campus_events.core.timeutils import try_parse_datetime, utcnow


def parse_capacity(value: Any) -> Optional[float]:
    """Numeric value of a capacity input, or None when it is not a finite number."""
    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def validate_event_form(
    fields: Mapping[str, Any],
    *,
    is_create: bool,
    now: Optional[datetime] = None,
) -> dict[str, str]:
    now = now or utcnow()
    errors: dict[str, str] = {}

    if is_blank(fields.get("title")):
        errors["title"] = "Title is required"

    if is_blank(fields.get("description")):
        errors["description"] = "Description is required"

    start_at = try_parse_datetime(fields.get("startAt"))
    if is_blank(fields.get("startAt")):
        errors["startAt"] = "Start date is required"
    elif start_at is None:
        errors["startAt"] = "Start date is not a valid date"
    elif is_create and start_at <= now:
        errors["startAt"] = "Start date must be in the future"

    if not is_blank(fields.get("endAt")):
        end_at = try_parse_datetime(fields.get("endAt"))
        if end_at is None:
            errors["endAt"] = "End date is not a valid date"
        elif start_at is not None and end_at <= start_at:
            errors["endAt"] = "End date must be after start date"

    capacity = fields.get("capacity")
    if not is_blank(capacity):
        number = parse_capacity(capacity)
        if number is None or number < 1:
            errors["capacity"] = "Capacity must be a positive number"

    return errors


def parse_tags(text: Optional[str]) -> list[str]:
    """'a, b ,c' -> ['a', 'b', 'c']; empty pieces are dropped."""
    if not text:
        return []
    return [tag.strip() for tag in text.split(",") if tag.strip()]


def format_tags(tags: Optional[list[str]]) -> str:
    return ", ".join(tags or [])
