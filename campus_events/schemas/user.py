"""
Pydantic schemas for user and auth payloads.
"""

import enum
from datetime import datetime
from typing import Optional
from pydantic import AliasChoices, BaseModel, EmailStr, Field

from campus_events.schemas.event import API_MODEL_CONFIG


class Role(str, enum.Enum):
    STUDENT = "student"
    ORGANIZER = "organizer"
    ADMIN = "admin"


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: Role = Role.STUDENT


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    name: str
    email: str
    role: Role = Role.STUDENT
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = API_MODEL_CONFIG

    @property
    def can_manage_events(self) -> bool:
        return self.role in (Role.ORGANIZER, Role.ADMIN)


class Token(BaseModel):
    token: str
    user: UserResponse
