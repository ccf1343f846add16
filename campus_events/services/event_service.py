"""
Event service: list, read, create, update and delete events.

Writes are sent as multipart form data. Encoding rules for a field set:
  - a sequence `tags` value becomes repeated `tags` parts
  - `startAt` / `endAt` are normalized to the canonical UTC wire string
  - None values are omitted entirely (never sent as an empty string)
  - booleans are sent as "true" / "false", everything else as str()
  - the optional image file is appended as the last part
The body is multipart even when no image is attached.
"""

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from campus_events.api.client import ApiClient, unwrap
from campus_events.core.errors import ApiError
from campus_events.core.logging import get_logger
from campus_events.core.timeutils import to_wire
from campus_events.schemas.event import (
    EventFilters,
    EventListResponse,
    EventResponse,
    ImageUpload,
)
from campus_events.schemas.registration import Attendee

logger = get_logger(__name__)

DATE_FIELDS = ("startAt", "endAt")

Multipart = list[tuple[str, tuple]]


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_multipart(data: Mapping[str, Any], image: Optional[ImageUpload] = None) -> Multipart:
    """Encode an event field set as httpx multipart parts."""
    parts: Multipart = []
    for key, value in data.items():
        if value is None:
            continue
        if key == "tags" and isinstance(value, (list, tuple)):
            for tag in value:
                parts.append(("tags", (None, _scalar(tag))))
        elif key in DATE_FIELDS:
            if value == "":
                continue
            parts.append((key, (None, to_wire(value))))
        else:
            parts.append((key, (None, _scalar(value))))

    if image is not None:
        parts.append(("image", (image.filename, image.content, image.content_type)))
    return parts


def _parse_event(body: Any, default_message: str, operation: str) -> EventResponse:
    try:
        return EventResponse.model_validate(unwrap(body))
    except ValidationError as e:
        logger.error("invalid_event_payload", operation=operation, error=str(e))
        raise ApiError(default_message, operation=operation) from e


async def list_events(
    client: ApiClient,
    filters: Optional[EventFilters] = None,
    page: int = 1,
    page_size: int = 12,
) -> EventListResponse:
    """
    Fetch one page of events.
    Page counts come from the server verbatim; nothing is filtered locally.
    """
    params = {"page": str(page), "size": str(page_size)}
    params.update((filters or EventFilters()).to_params())

    body = await client.request(
        "list_events", "GET", "/events",
        params=params,
        default_message="Failed to fetch events",
    )
    try:
        result = EventListResponse.model_validate(body or {})
    except ValidationError as e:
        logger.error("invalid_event_list_payload", error=str(e))
        raise ApiError("Failed to fetch events", operation="list_events") from e

    logger.debug("events_listed", page=page, count=len(result.events), total=result.total_items)
    return result


async def get_event(client: ApiClient, event_id: str) -> EventResponse:
    """Get a single event by ID."""
    body = await client.request(
        "get_event", "GET", f"/events/{event_id}",
        default_message="Failed to fetch event details",
    )
    return _parse_event(body, "Failed to fetch event details", "get_event")


async def create_event(
    client: ApiClient,
    data: Mapping[str, Any],
    image: Optional[ImageUpload] = None,
) -> EventResponse:
    """Create a new event from wire-named fields."""
    body = await client.request(
        "create_event", "POST", "/events",
        files=build_multipart(data, image),
        default_message="Failed to create event",
    )
    event = _parse_event(body, "Failed to create event", "create_event")
    logger.info("event_created", event_id=event.id, title=event.title)
    return event


async def update_event(
    client: ApiClient,
    event_id: str,
    data: Mapping[str, Any],
    image: Optional[ImageUpload] = None,
) -> EventResponse:
    body = await client.request(
        "update_event", "PUT", f"/events/{event_id}",
        files=build_multipart(data, image),
        default_message="Failed to update event",
    )
    event = _parse_event(body, "Failed to update event", "update_event")
    logger.info("event_updated", event_id=event.id)
    return event


async def delete_event(client: ApiClient, event_id: str) -> None:
    await client.request(
        "delete_event", "DELETE", f"/events/{event_id}",
        default_message="Failed to delete event",
    )
    logger.info("event_deleted", event_id=event_id)


async def get_event_registrations(client: ApiClient, event_id: str) -> list[Attendee]:
    """Attendee list for an event. The server restricts this to organizers/admins."""
    body = await client.request(
        "get_event_registrations", "GET", f"/events/{event_id}/registrations",
        default_message="Failed to fetch event registrations",
    )
    try:
        return [Attendee.model_validate(row) for row in unwrap(body) or []]
    except (TypeError, ValidationError) as e:
        logger.error("invalid_attendee_payload", event_id=event_id, error=str(e))
        raise ApiError("Failed to fetch event registrations", operation="get_event_registrations") from e
