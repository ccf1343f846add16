"""
Registration history with purely local filtering.
"""

import enum
from datetime import datetime
from typing import Iterable, Optional

from campus_events.core.errors import ApiError
from campus_events.core.timeutils import utcnow
from campus_events.schemas.registration import RegistrationResponse, RegistrationStatus
from campus_events.services.session import require_login
from campus_events.views.base import View


class HistoryFilter(str, enum.Enum):
    ALL = "all"
    UPCOMING = "upcoming"
    PAST = "past"
    CANCELLED = "cancelled"


def filter_registrations(
    registrations: Iterable[RegistrationResponse],
    history_filter: HistoryFilter,
    now: Optional[datetime] = None,
) -> list[RegistrationResponse]:
    """
    upcoming:  registered and the event starts after now
    past:      the event started at or before now, any status
    cancelled: status cancelled, any date
    """
    now = now or utcnow()
    history_filter = HistoryFilter(history_filter)

    def keep(registration: RegistrationResponse) -> bool:
        start_at = registration.event.start_at
        if history_filter == HistoryFilter.UPCOMING:
            return registration.status == RegistrationStatus.REGISTERED and start_at > now
        if history_filter == HistoryFilter.PAST:
            return start_at <= now
        if history_filter == HistoryFilter.CANCELLED:
            return registration.status == RegistrationStatus.CANCELLED
        return True

    return [r for r in registrations if keep(r)]


class MyRegistrationsView(View):
    name = "my_registrations"

    def __init__(self, app):
        require_login(app.session)
        super().__init__(app)
        self.filter = HistoryFilter.ALL

    @property
    def registrations(self) -> list[RegistrationResponse]:
        return self.app.registrations.records()

    @property
    def visible(self) -> list[RegistrationResponse]:
        return filter_registrations(self.registrations, self.filter)

    def set_filter(self, history_filter: HistoryFilter) -> None:
        self.filter = HistoryFilter(history_filter)

    def can_cancel(self, registration: RegistrationResponse) -> bool:
        return (
            registration.status == RegistrationStatus.REGISTERED
            and registration.event.start_at > utcnow()
        )

    async def load(self) -> None:
        generation = self._next_generation()
        self.loading = True
        self.error = None
        try:
            await self.app.registrations.sync(raise_errors=True)
        except ApiError as e:
            if self._is_current(generation):
                self.error = e.message
        finally:
            if generation == self._generation:
                self.loading = False
