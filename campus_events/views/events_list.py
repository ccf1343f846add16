"""
Events listing: search, filters, and server-side pagination.

Filtering and paging are server query parameters; the client shows the
returned page and counts as-is. Any change to the search text or a filter
sends the user back to page 1 before refetching.
"""

from typing import Any, Optional

from campus_events.core.errors import ApiError
from campus_events.schemas.event import EventFilters, EventResponse
from campus_events.services import event_service
from campus_events.services.permissions import can_create_events
from campus_events.views.base import View


class EventsListView(View):
    name = "events_list"

    def __init__(self, app, page_size: Optional[int] = None):
        super().__init__(app)
        self.filters = EventFilters()
        self.page = 1
        self.page_size = page_size or app.settings.EVENTS_PAGE_SIZE
        self.events: list[EventResponse] = []
        self.total_pages = 1
        self.total_items = 0

    @property
    def registered(self) -> dict[str, bool]:
        """Registration state for every event on the current page."""
        return self.app.registrations.status_map(event.id for event in self.events)

    @property
    def can_create(self) -> bool:
        return can_create_events(self.app.user)

    async def load(self) -> None:
        generation = self._next_generation()
        self.loading = True
        self.error = None
        try:
            result = await event_service.list_events(
                self.app.client, self.filters, self.page, self.page_size
            )
        except ApiError as e:
            if self._is_current(generation):
                self.error = e.message
                self.loading = False
            return

        if not self._is_current(generation):
            return
        self.events = result.events
        self.total_pages = result.total_pages
        self.total_items = result.total_items
        self.loading = False

        # Unauthenticated viewers never trigger a registrations fetch
        if self.app.is_authenticated:
            await self.app.registrations.sync()

    async def search(self, text: str) -> None:
        self.filters = self.filters.model_copy(update={"search": text.strip()})
        self.page = 1
        await self.load()

    async def set_filters(self, **changes: Any) -> None:
        """Change one or more of upcoming / tags / organizer."""
        unknown = set(changes) - {"upcoming", "tags", "organizer"}
        if unknown:
            raise ValueError(f"Unknown filter(s): {', '.join(sorted(unknown))}")
        self.filters = self.filters.model_copy(update=changes)
        self.page = 1
        await self.load()

    async def go_to_page(self, page: int) -> None:
        self.page = max(1, min(page, self.total_pages))
        await self.load()

    async def next_page(self) -> None:
        if self.page < self.total_pages:
            await self.go_to_page(self.page + 1)

    async def previous_page(self) -> None:
        if self.page > 1:
            await self.go_to_page(self.page - 1)
