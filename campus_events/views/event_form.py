"""
Create and edit event forms.

A form holds the raw input strings, the per-field error mapping, and an
optional image. Validation runs locally before any request is made; an
error for a field is cleared as soon as that field is edited again.
"""

from typing import Any, Optional

from campus_events.core.errors import ApiError
from campus_events.core.logging import get_logger
from campus_events.core.timeutils import to_local_input
from campus_events.schemas.event import EventResponse, ImageUpload
from campus_events.services import event_service
from campus_events.services.permissions import can_edit_event
from campus_events.services.session import require_login
from campus_events.services.validation import (
    format_tags,
    is_blank,
    parse_capacity,
    parse_tags,
    validate_event_form,
)
from campus_events.views.base import View

logger = get_logger(__name__)

EDIT_DENIED_MESSAGE = "You are not authorized to edit this event"

FORM_FIELDS = ("title", "description", "location", "capacity", "startAt", "endAt", "tags", "isPublished")


def empty_form() -> dict[str, Any]:
    return {
        "title": "",
        "description": "",
        "location": "",
        "capacity": "",
        "startAt": "",
        "endAt": "",
        "tags": "",
        "isPublished": True,
    }


def form_from_event(event: EventResponse) -> dict[str, Any]:
    """Prefill values: tags joined for display, timestamps in local input format."""
    return {
        "title": event.title or "",
        "description": event.description or "",
        "location": event.location or "",
        "capacity": str(event.capacity) if event.capacity else "",
        "startAt": to_local_input(event.start_at),
        "endAt": to_local_input(event.end_at),
        "tags": format_tags(event.tags),
        "isPublished": event.is_published,
    }


def form_to_payload(fields: dict[str, Any]) -> dict[str, Any]:
    """Wire field set for the event service; empty optionals become None."""
    capacity = parse_capacity(fields.get("capacity")) if not is_blank(fields.get("capacity")) else None
    return {
        "title": str(fields.get("title", "")).strip(),
        "description": str(fields.get("description", "")).strip(),
        "location": None if is_blank(fields.get("location")) else str(fields["location"]).strip(),
        "capacity": int(capacity) if capacity is not None else None,
        "startAt": fields.get("startAt") or None,
        "endAt": fields.get("endAt") or None,
        "tags": parse_tags(fields.get("tags")),
        "isPublished": bool(fields.get("isPublished", True)),
    }


class EventFormView(View):
    is_create = True
    success_message = ""

    def __init__(self, app):
        require_login(app.session)
        super().__init__(app)
        self.fields = empty_form()
        self.errors: dict[str, str] = {}
        self.image: Optional[ImageUpload] = None
        self.submitting = False

    def set_field(self, name: str, value: Any) -> None:
        if name not in FORM_FIELDS:
            raise KeyError(name)
        self.fields[name] = value
        self.errors.pop(name, None)

    def set_image(self, image: Optional[ImageUpload]) -> None:
        self.image = image

    def validate(self) -> bool:
        self.errors = validate_event_form(self.fields, is_create=self.is_create)
        return not self.errors

    async def load(self) -> None:
        return None

    def _blocked(self) -> Optional[str]:
        return None

    async def submit(self) -> Optional[EventResponse]:
        """Validate, then send. Returns the saved event, or None on any failure."""
        blocked = self._blocked()
        if blocked:
            self.notify(blocked)
            return None
        if not self.validate():
            logger.debug("event_form_invalid", view=self.name, fields=sorted(self.errors))
            return None

        self.submitting = True
        try:
            event = await self._save(form_to_payload(self.fields))
        except ApiError as e:
            self.notify(e.message)
            return None
        finally:
            self.submitting = False
        self.notify(self.success_message)
        return event

    async def _save(self, payload: dict[str, Any]) -> EventResponse:
        raise NotImplementedError


class CreateEventView(EventFormView):
    name = "create_event"
    success_message = "Event created successfully!"

    async def _save(self, payload: dict[str, Any]) -> EventResponse:
        return await event_service.create_event(self.app.client, payload, self.image)


class EditEventView(EventFormView):
    name = "edit_event"
    is_create = False
    success_message = "Event updated successfully!"

    def __init__(self, app, event_id: str):
        super().__init__(app)
        self.event_id = event_id
        self.event: Optional[EventResponse] = None
        self.denied = False

    async def load(self) -> None:
        generation = self._next_generation()
        self.loading = True
        self.error = None
        try:
            event = await event_service.get_event(self.app.client, self.event_id)
        except ApiError as e:
            if self._is_current(generation):
                self.error = e.message
                self.notify(e.message)
                self.loading = False
            return

        if not self._is_current(generation):
            return
        self.loading = False
        # Ownership is a hint here; the server still checks the update
        if not can_edit_event(self.app.user, event):
            self.denied = True
            self.notify(EDIT_DENIED_MESSAGE)
            return
        self.denied = False
        self.event = event
        self.fields = form_from_event(event)
        self.errors = {}

    def _blocked(self) -> Optional[str]:
        if self.denied:
            return EDIT_DENIED_MESSAGE
        if self.event is None:
            return "Event details are not loaded"
        return None

    async def _save(self, payload: dict[str, Any]) -> EventResponse:
        return await event_service.update_event(self.app.client, self.event_id, payload, self.image)
