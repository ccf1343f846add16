"""
Event detail: one event, its registration state, and owner actions.
"""

from typing import Optional

from campus_events.core.errors import ApiError
from campus_events.core.timeutils import Timing
from campus_events.schemas.event import EventResponse
from campus_events.schemas.registration import Attendee
from campus_events.services import event_service
from campus_events.services.permissions import can_edit_event
from campus_events.views.base import View


class EventDetailView(View):
    name = "event_detail"

    def __init__(self, app, event_id: str):
        super().__init__(app)
        self.event_id = event_id
        self.event: Optional[EventResponse] = None
        self.attendees: Optional[list[Attendee]] = None
        self.deleted = False

    @property
    def is_registered(self) -> bool:
        return self.app.registrations.is_registered(self.event_id)

    @property
    def timing(self) -> Optional[Timing]:
        return self.event.timing() if self.event else None

    @property
    def can_register(self) -> bool:
        """Register/cancel is only offered before the event starts."""
        return self.timing == Timing.UPCOMING

    @property
    def can_edit(self) -> bool:
        return can_edit_event(self.app.user, self.event)

    @property
    def image_url(self) -> Optional[str]:
        if self.event is None:
            return None
        return self.event.image_url(self.app.settings.ASSET_BASE_URL)

    async def load(self) -> None:
        generation = self._next_generation()
        event_id = self.event_id
        self.loading = True
        self.error = None
        try:
            event = await event_service.get_event(self.app.client, event_id)
        except ApiError as e:
            if self._is_current(generation):
                self.event = None
                self.error = e.message
                self.loading = False
            return

        if not self._is_current(generation):
            return
        self.event = event
        self.loading = False

        if self.app.is_authenticated:
            await self.app.registrations.sync()

    async def show(self, event_id: str) -> None:
        """Switch to another event; a late response for the old one is dropped."""
        self.event_id = event_id
        self.event = None
        self.attendees = None
        await self.load()

    async def register(self, event_id: Optional[str] = None) -> bool:
        return await super().register(event_id or self.event_id)

    async def cancel(self, event_id: Optional[str] = None) -> bool:
        return await super().cancel(event_id or self.event_id)

    async def delete(self) -> bool:
        """
        Delete the event. The caller confirms with the user first.
        Nothing is sent unless the ownership hint allows it.
        """
        if self.event is None:
            await self.load()
            if self.event is None:
                return False
        if not self.can_edit:
            self.notify("You are not authorized to delete this event")
            return False
        try:
            await event_service.delete_event(self.app.client, self.event_id)
        except ApiError as e:
            self.notify(e.message)
            return False
        self.deleted = True
        self.notify("Event deleted successfully!")
        return True

    async def load_attendees(self) -> bool:
        if not self.can_edit:
            self.notify("You are not authorized to view attendees for this event")
            return False
        try:
            self.attendees = await event_service.get_event_registrations(
                self.app.client, self.event_id
            )
        except ApiError as e:
            self.notify(e.message)
            return False
        return True
