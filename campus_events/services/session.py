"""
Session/auth context.

Holds the bearer token and the serialized user profile in a small JSON file
so a session survives between runs. Presence of the token is the only
authentication signal: no token means unauthenticated.
"""

import os
from typing import Optional

from pydantic import BaseModel, ValidationError

from campus_events.api.client import ApiClient
from campus_events.core.errors import AuthenticationRequired
from campus_events.core.logging import get_logger
from campus_events.schemas.user import UserCreate, UserLogin, UserResponse
from campus_events.services import auth_service

logger = get_logger(__name__)


class PersistedSession(BaseModel):
    token: str
    user: Optional[UserResponse] = None


class SessionStore:
    """Token and user profile, mirrored to `path`."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        self._token: Optional[str] = None
        self._user: Optional[UserResponse] = None
        self._load()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[UserResponse]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def save(self, token: str, user: Optional[UserResponse]) -> None:
        self._token = token
        self._user = user
        if not self.path:
            return
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(PersistedSession(token=token, user=user).model_dump_json(by_alias=True))
        logger.debug("session_saved", path=self.path)

    def update_user(self, user: UserResponse) -> None:
        if self._token:
            self.save(self._token, user)

    def clear(self) -> None:
        self._token = None
        self._user = None
        if self.path and os.path.exists(self.path):
            os.remove(self.path)
        logger.debug("session_cleared", path=self.path)

    def _load(self) -> None:
        if not self.path or not os.path.exists(self.path):
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                persisted = PersistedSession.model_validate_json(f.read())
        except (OSError, ValidationError) as e:
            logger.warning("session_file_unreadable", path=self.path, error=str(e))
            return
        self._token = persisted.token or None
        self._user = persisted.user


class AuthContext:
    """Login, logout and profile refresh on top of a `SessionStore`."""

    def __init__(self, client: ApiClient, session: SessionStore):
        self.client = client
        self.session = session

    @property
    def user(self) -> Optional[UserResponse]:
        return self.session.user

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    async def login(self, email: str, password: str) -> UserResponse:
        token = await auth_service.authenticate_user(
            self.client, UserLogin(email=email, password=password)
        )
        self.session.save(token.token, token.user)
        return token.user

    async def register(self, user_data: UserCreate) -> UserResponse:
        token = await auth_service.register_user(self.client, user_data)
        self.session.save(token.token, token.user)
        return token.user

    async def refresh_profile(self) -> UserResponse:
        user = await auth_service.get_profile(self.client)
        self.session.update_user(user)
        return user

    def logout(self) -> None:
        user_id = self.user.id if self.user else None
        self.session.clear()
        logger.info("user_logged_out", user_id=user_id)


def require_login(session: SessionStore) -> None:
    """Guard for protected views: raise when there is no token."""
    if not session.is_authenticated:
        raise AuthenticationRequired()
