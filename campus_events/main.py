"""
Campus Events client - application container.

Wires the shared pieces every view needs:
- One httpx-backed API client that carries the session token
- The session/auth context persisted to SESSION_FILE
- The shared registration store read by the listing, detail and history views
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from campus_events.api.client import ApiClient
from campus_events.core.config import Settings, get_settings
from campus_events.core.logging import get_logger, setup_logging
from campus_events.services.registration_store import RegistrationStore
from campus_events.services.session import AuthContext, SessionStore

logger = get_logger(__name__)


class ClientApp:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        session: Optional[SessionStore] = None,
    ):
        self.settings = settings or get_settings()
        self.session = session or SessionStore(self.settings.SESSION_FILE)
        self.client = ApiClient(lambda: self.session.token, self.settings, transport)
        self.auth = AuthContext(self.client, self.session)
        self.registrations = RegistrationStore(
            self.client,
            self.session,
            max_age=self.settings.REGISTRATION_RESYNC_SECONDS,
        )

    @property
    def user(self):
        return self.session.user

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    def logout(self) -> None:
        self.auth.logout()
        self.registrations.clear()

    async def aclose(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "ClientApp":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


@asynccontextmanager
async def lifespan(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[ClientApp]:
    """Client lifecycle: logging setup, then a ClientApp closed on exit."""
    settings = settings or get_settings()
    setup_logging()

    logger.info(
        "client_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        api=settings.API_BASE_URL,
    )

    app = ClientApp(settings, transport)
    try:
        yield app
    finally:
        await app.aclose()
        logger.info("client_shutdown")
