"""
Shared client-side registration store.

REGISTRATION STATE
==================

What we hold:
  - The current user's full registration history (every status)
  - A status index keyed by event id, derived from that history

Question answered:
  "Is the current user registered for event E?"  The backend does not say so
  inline on the event, so the answer is derived: E counts as registered iff
  a registration for E with status `registered` exists.

Who reads it:
  - Events listing: builds {event_id: bool} for the events on the page
  - Event detail: single lookup
  - My registrations: the full history, filtered locally
  All three read the same store, so a register/cancel in one view is
  visible in the others immediately.

Write path (optimistic):
  - Successful register -> the event's status flips to `registered` locally
  - Successful cancel   -> status flips to `cancelled`; history rows are
    updated in place rather than removed
  - Failed call         -> nothing changes
  No refetch follows a mutation.

Re-sync:
  - `sync()` fetches when the store was never loaded, belongs to a previous
    session, or is older than REGISTRATION_RESYNC_SECONDS
  - `invalidate()` keeps the data readable but makes the next `sync()`
    fetch (views call it when they regain focus)
  - A fetch that was in flight while a local mutation landed is discarded,
    so a late response cannot undo an optimistic update

Degradation:
  - Unauthenticated: everything reads as "not registered" and nothing is
    fetched (the request would only fail authorization)
  - Fetch failure: everything reads as "not registered"; the failure is
    logged, and only raised when the caller asks for it
"""

import asyncio
import time
from typing import Callable, Iterable, Optional

from campus_events.api.client import ApiClient
from campus_events.core.errors import ApiError
from campus_events.core.logging import get_logger
from campus_events.core.metrics import record_optimistic_update, record_registration_sync
from campus_events.schemas.registration import RegistrationResponse, RegistrationStatus
from campus_events.services import registration_service
from campus_events.services.session import SessionStore

logger = get_logger(__name__)


class RegistrationStore:
    def __init__(
        self,
        client: ApiClient,
        session: SessionStore,
        max_age: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.session = session
        self.max_age = max_age
        self._clock = clock
        self._records: list[RegistrationResponse] = []
        self._status: dict[str, RegistrationStatus] = {}
        self._synced_at: Optional[float] = None
        self._owner: Optional[str] = None  # token the data was loaded with
        self._version = 0  # bumped on every local mutation
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def is_loaded(self) -> bool:
        return self._synced_at is not None and self._owner == self.session.token

    def is_registered(self, event_id: str) -> bool:
        if not self.session.is_authenticated or self._owner != self.session.token:
            return False
        return self._status.get(event_id) == RegistrationStatus.REGISTERED

    def status_map(self, event_ids: Iterable[str]) -> dict[str, bool]:
        return {event_id: self.is_registered(event_id) for event_id in event_ids}

    def records(self) -> list[RegistrationResponse]:
        if not self.session.is_authenticated or self._owner != self.session.token:
            return []
        return list(self._records)

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    def _is_fresh(self) -> bool:
        if not self.is_loaded:
            return False
        if self.max_age is None:
            return True
        return self._clock() - self._synced_at < self.max_age

    async def sync(self, raise_errors: bool = False) -> None:
        """Load the registration history from the server when needed."""
        if not self.session.is_authenticated:
            self.clear()
            record_registration_sync("skipped")
            return

        async with self._lock:
            if self._is_fresh():
                record_registration_sync("skipped")
                return

            token = self.session.token
            version = self._version
            try:
                registrations = await registration_service.get_my_registrations(self.client)
            except ApiError as e:
                logger.warning("registration_sync_failed", error=e.message)
                record_registration_sync("failed")
                self._reset(owner=token)
                if raise_errors:
                    raise
                return

            if version != self._version or token != self.session.token:
                logger.info("registration_sync_discarded", reason="local_change_during_fetch")
                record_registration_sync("discarded")
                self._synced_at = None
                return

            self._records = registrations
            self._status = _status_index(registrations)
            self._synced_at = self._clock()
            self._owner = token
            record_registration_sync("loaded")
            logger.debug("registration_sync_loaded", count=len(registrations))

    def invalidate(self) -> None:
        """Keep current data but force the next `sync()` to fetch."""
        self._synced_at = None

    def clear(self) -> None:
        self._reset(owner=None)

    def _reset(self, owner: Optional[str]) -> None:
        self._records = []
        self._status = {}
        self._synced_at = None
        self._owner = owner

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def register(self, event_id: str) -> None:
        """Register on the server, then mark the event locally. Raises ApiError."""
        registration = await registration_service.register_for_event(self.client, event_id)
        self.mark_registered(event_id, registration)

    async def cancel(self, event_id: str) -> None:
        """Cancel on the server, then unmark the event locally. Raises ApiError."""
        await registration_service.cancel_registration(self.client, event_id)
        self.mark_cancelled(event_id)

    def mark_registered(
        self, event_id: str, registration: Optional[RegistrationResponse] = None
    ) -> None:
        self._claim()
        self._status[event_id] = RegistrationStatus.REGISTERED
        if registration is not None:
            self._records = [r for r in self._records if r.id != registration.id]
            self._records.insert(0, registration)
        else:
            self._set_record_status(event_id, RegistrationStatus.REGISTERED)
        record_optimistic_update("register")

    def mark_cancelled(self, event_id: str) -> None:
        self._claim()
        self._status[event_id] = RegistrationStatus.CANCELLED
        self._set_record_status(event_id, RegistrationStatus.CANCELLED)
        record_optimistic_update("cancel")

    def _claim(self) -> None:
        self._version += 1
        if self._owner != self.session.token:
            self._reset(owner=self.session.token)

    def _set_record_status(self, event_id: str, status: RegistrationStatus) -> None:
        for index, record in enumerate(self._records):
            if record.event_id != event_id:
                continue
            if status == RegistrationStatus.CANCELLED:
                if record.status == RegistrationStatus.REGISTERED:
                    self._records[index] = record.model_copy(update={"status": status})
            else:
                # newest row for the event takes the new registration
                self._records[index] = record.model_copy(update={"status": status})
                return


def _status_index(registrations: list[RegistrationResponse]) -> dict[str, RegistrationStatus]:
    """Event id -> status; a `registered` entry wins over older cancelled ones."""
    index: dict[str, RegistrationStatus] = {}
    for registration in registrations:
        current = index.get(registration.event_id)
        if current != RegistrationStatus.REGISTERED:
            index[registration.event_id] = registration.status
    return index
