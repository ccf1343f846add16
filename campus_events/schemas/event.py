"""
Pydantic schemas for event payloads returned by the backend.

The backend speaks camelCase and uses Mongo-style `_id` keys; fields are
exposed here in snake_case and accept either spelling on input.
"""

from datetime import datetime
from typing import Any, Optional
from pydantic import AliasChoices, BaseModel, Field, field_validator

from campus_events.core.timeutils import Timing, classify, parse_datetime

API_MODEL_CONFIG = {
    "populate_by_name": True,
    "coerce_numbers_to_str": True,
    "extra": "ignore",
}


class UserRef(BaseModel):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    name: Optional[str] = None
    email: Optional[str] = None

    model_config = API_MODEL_CONFIG


class EventMeta(BaseModel):
    views: int = 0

    model_config = {"extra": "ignore"}


class EventResponse(BaseModel):
    id: str = Field(..., validation_alias=AliasChoices("_id", "id"))
    title: str
    description: str = ""
    image: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    start_at: datetime = Field(..., alias="startAt")
    end_at: Optional[datetime] = Field(None, alias="endAt")
    tags: list[str] = Field(default_factory=list)
    organizer: Optional[UserRef] = None
    is_published: bool = Field(True, alias="isPublished")
    meta: EventMeta = Field(default_factory=EventMeta)
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = API_MODEL_CONFIG

    @field_validator("organizer", mode="before")
    @classmethod
    def _unpopulated_organizer(cls, value: Any) -> Any:
        # Unpopulated references arrive as a bare id
        if isinstance(value, (str, int)):
            return {"_id": value}
        return value

    @field_validator("start_at", "end_at", "created_at")
    @classmethod
    def _naive_is_local(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Timestamps without an offset are local wall-clock time
        return parse_datetime(value) if value is not None else None

    @field_validator("capacity", mode="before")
    @classmethod
    def _zero_capacity_is_unset(cls, value: Any) -> Any:
        if value in (0, "", "0"):
            return None
        return value

    @property
    def views(self) -> int:
        return self.meta.views

    def timing(self, now: Optional[datetime] = None) -> Timing:
        return classify(self.start_at, now)

    def image_url(self, asset_base_url: str) -> Optional[str]:
        if not self.image:
            return None
        return f"{asset_base_url.rstrip('/')}/{self.image.lstrip('/')}"


class EventListResponse(BaseModel):
    events: list[EventResponse] = Field(default_factory=list, alias="data")
    total_pages: int = Field(1, alias="totalPages")
    total_items: int = Field(0, alias="totalItems")

    model_config = API_MODEL_CONFIG

    @field_validator("events", mode="before")
    @classmethod
    def _null_list(cls, value: Any) -> Any:
        return value or []

    @field_validator("total_pages", mode="before")
    @classmethod
    def _at_least_one_page(cls, value: Any) -> Any:
        return value or 1

    @field_validator("total_items", mode="before")
    @classmethod
    def _zero_items(cls, value: Any) -> Any:
        return value or 0


class EventFilters(BaseModel):
    search: str = ""
    upcoming: bool = False
    tags: str = ""
    organizer: str = ""

    def to_params(self) -> dict[str, str]:
        """Query parameters for the non-default filters only."""
        params: dict[str, str] = {}
        if self.search:
            params["q"] = self.search
        if self.upcoming:
            params["upcoming"] = "true"
        if self.tags:
            params["tags"] = self.tags
        if self.organizer:
            params["organizer"] = self.organizer
        return params


class ImageUpload(BaseModel):
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"
