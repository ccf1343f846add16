"""
Authentication service: account registration, login, and profile lookup.
Session persistence lives in `campus_events.services.session`.
"""

from typing import Any

from pydantic import ValidationError

from campus_events.api.client import ApiClient, unwrap
from campus_events.core.errors import ApiError
from campus_events.core.logging import get_logger
from campus_events.schemas.user import Token, UserCreate, UserLogin, UserResponse

logger = get_logger(__name__)


def _parse_token(body: Any, default_message: str, operation: str) -> Token:
    try:
        return Token.model_validate(unwrap(body))
    except ValidationError as e:
        logger.error("invalid_auth_payload", operation=operation, error=str(e))
        raise ApiError(default_message, operation=operation) from e


async def register_user(client: ApiClient, user_data: UserCreate) -> Token:
    """Create an account. The backend logs the new user in directly."""
    body = await client.request(
        "register_user", "POST", "/auth/register",
        json=user_data.model_dump(mode="json"),
        default_message="Registration failed",
    )
    token = _parse_token(body, "Registration failed", "register_user")
    logger.info("user_registered", user_id=token.user.id, role=token.user.role.value)
    return token


async def authenticate_user(client: ApiClient, login_data: UserLogin) -> Token:
    body = await client.request(
        "authenticate_user", "POST", "/auth/login",
        json=login_data.model_dump(mode="json"),
        default_message="Login failed",
    )
    token = _parse_token(body, "Login failed", "authenticate_user")
    logger.info("user_logged_in", user_id=token.user.id)
    return token


async def get_profile(client: ApiClient) -> UserResponse:
    body = await client.request(
        "get_profile", "GET", "/auth/me",
        default_message="Failed to fetch profile",
    )
    try:
        return UserResponse.model_validate(unwrap(body))
    except ValidationError as e:
        logger.error("invalid_profile_payload", error=str(e))
        raise ApiError("Failed to fetch profile", operation="get_profile") from e
