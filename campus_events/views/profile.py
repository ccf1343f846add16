"""
Profile: the current user's account as the server sees it.
"""

from typing import Optional

from campus_events.core.errors import ApiError
from campus_events.schemas.user import UserResponse
from campus_events.services.session import require_login
from campus_events.views.base import View


class ProfileView(View):
    name = "profile"

    def __init__(self, app):
        require_login(app.session)
        super().__init__(app)
        self.fetched: Optional[UserResponse] = None

    @property
    def profile(self) -> Optional[UserResponse]:
        """Server copy when loaded, else the user cached in the session."""
        return self.fetched or self.app.user

    async def load(self) -> None:
        generation = self._next_generation()
        self.loading = True
        self.error = None
        try:
            user = await self.app.auth.refresh_profile()
        except ApiError as e:
            if self._is_current(generation):
                self.error = e.message
                self.loading = False
            return
        if self._is_current(generation):
            self.fetched = user
            self.loading = False
