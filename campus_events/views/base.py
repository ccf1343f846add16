"""
Shared view-state plumbing.

A view owns the state one screen shows: a loading flag, a blocking error
with a retry, transient notices, and per-event in-flight markers for
register/cancel buttons. Views never cancel requests; instead each load
takes a generation number and a response whose generation is no longer
current is dropped.
"""

from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from campus_events.core.errors import ApiError
from campus_events.core.logging import get_logger
from campus_events.core.metrics import record_stale_response

if TYPE_CHECKING:
    from campus_events.main import ClientApp

logger = get_logger(__name__)

REGISTERED_MESSAGE = "Successfully registered for the event!"
CANCELLED_MESSAGE = "Registration cancelled successfully!"
LOGIN_TO_REGISTER_MESSAGE = "Please login to register for events"


class View:
    name = "view"

    def __init__(self, app: "ClientApp"):
        self.app = app
        self.loading = False
        self.error: Optional[str] = None
        self.notices: list[str] = []
        self.pending: set[str] = set()
        self._generation = 0

    async def load(self) -> None:
        raise NotImplementedError

    async def retry(self) -> None:
        """Re-issue the same fetch after a failure."""
        await self.load()

    async def on_focus(self) -> None:
        """The screen became visible again: mark registrations stale, then reload."""
        self.app.registrations.invalidate()
        await self.load()

    def notify(self, message: str) -> None:
        self.notices.append(message)

    def drain_notices(self) -> list[str]:
        notices, self.notices = self.notices, []
        return notices

    def is_pending(self, event_id: str) -> bool:
        return event_id in self.pending

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, generation: int) -> bool:
        if generation == self._generation:
            return True
        logger.info("stale_response_discarded", view=self.name, generation=generation)
        record_stale_response(self.name)
        return False

    async def _registration_action(
        self,
        event_id: str,
        action: Callable[[str], Awaitable[None]],
        success_message: str,
    ) -> bool:
        """
        Run register/cancel with an advisory in-flight marker.
        The marker is released whether the call succeeds or fails.
        """
        self.pending.add(event_id)
        try:
            await action(event_id)
        except ApiError as e:
            self.notify(e.message)
            return False
        finally:
            self.pending.discard(event_id)
        self.notify(success_message)
        return True

    async def register(self, event_id: str) -> bool:
        if not self.app.is_authenticated:
            self.notify(LOGIN_TO_REGISTER_MESSAGE)
            return False
        return await self._registration_action(
            event_id, self.app.registrations.register, REGISTERED_MESSAGE
        )

    async def cancel(self, event_id: str) -> bool:
        return await self._registration_action(
            event_id, self.app.registrations.cancel, CANCELLED_MESSAGE
        )
