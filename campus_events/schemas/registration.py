"""
Pydantic schemas for registration payloads.
"""

import enum
from datetime import datetime
from typing import Optional
from pydantic import AliasChoices, BaseModel, Field

from campus_events.schemas.event import API_MODEL_CONFIG, EventResponse, UserRef


class RegistrationStatus(str, enum.Enum):
    REGISTERED = "registered"
    CANCELLED = "cancelled"
    ATTENDED = "attended"  # set by the server only


class RegistrationResponse(BaseModel):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    event: EventResponse
    status: RegistrationStatus
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = API_MODEL_CONFIG

    @property
    def event_id(self) -> str:
        return self.event.id


class Attendee(BaseModel):
    """One row of an event's attendee list (organizer/admin view)."""

    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    user: Optional[UserRef] = None
    status: RegistrationStatus
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = API_MODEL_CONFIG
