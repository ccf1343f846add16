"""
Time helpers shared by views, forms and the event service.

Three representations of a timestamp show up in the client:
  - aware datetimes parsed from the API
  - the canonical wire string sent to the API (UTC, millisecond precision, "Z")
  - the local "YYYY-MM-DDTHH:MM" string used by form inputs
Naive datetimes and naive strings are read as local wall-clock time.
"""

import enum
from datetime import datetime, timezone
from typing import Optional, Union

LOCAL_INPUT_FORMAT = "%Y-%m-%dT%H:%M"

TimeLike = Union[datetime, str]


class Timing(str, enum.Enum):
    PAST = "past"
    UPCOMING = "upcoming"
    LIVE = "live"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_datetime(value: TimeLike) -> datetime:
    """Parse an ISO string or datetime into an aware datetime."""
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.astimezone()  # local wall-clock time
    return dt


def try_parse_datetime(value: Optional[TimeLike]) -> Optional[datetime]:
    if value is None or value == "":
        return None
    try:
        return parse_datetime(value)
    except (TypeError, ValueError):
        return None


def to_wire(value: TimeLike) -> str:
    """Canonical absolute-time string, e.g. 2026-10-19T12:00:00.000Z"""
    dt = parse_datetime(value).astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def to_local_input(value: Optional[TimeLike]) -> str:
    """Format for a local datetime input; empty string when absent."""
    if not value:
        return ""
    return parse_datetime(value).astimezone().strftime(LOCAL_INPUT_FORMAT)


def classify(start_at: datetime, now: Optional[datetime] = None) -> Timing:
    """
    Display classification relative to now.
    The exact instant is neither past nor upcoming.
    """
    now = now or utcnow()
    if start_at < now:
        return Timing.PAST
    if start_at > now:
        return Timing.UPCOMING
    return Timing.LIVE
