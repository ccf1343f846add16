"""
Role and ownership hints.

These only decide what the client offers (edit/delete buttons, the create
form, the attendee list). They are not a security boundary: the backend
re-checks every request and its answer wins.
"""

from typing import Optional

from campus_events.schemas.event import EventResponse
from campus_events.schemas.user import Role, UserResponse


def can_create_events(user: Optional[UserResponse]) -> bool:
    return user is not None and user.can_manage_events


def can_edit_event(user: Optional[UserResponse], event: Optional[EventResponse]) -> bool:
    """Admins edit anything; organizers edit the events they organize."""
    if user is None or event is None:
        return False
    if user.role == Role.ADMIN:
        return True
    return (
        user.role == Role.ORGANIZER
        and event.organizer is not None
        and event.organizer.id == user.id
    )
