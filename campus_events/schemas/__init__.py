from campus_events.schemas.user import Role, UserCreate, UserLogin, UserResponse, Token
from campus_events.schemas.event import (
    EventFilters, EventListResponse, EventResponse, ImageUpload, UserRef,
)
from campus_events.schemas.registration import Attendee, RegistrationResponse, RegistrationStatus

__all__ = [
    "Role", "UserCreate", "UserLogin", "UserResponse", "Token",
    "EventFilters", "EventListResponse", "EventResponse", "ImageUpload", "UserRef",
    "Attendee", "RegistrationResponse", "RegistrationStatus",
]
