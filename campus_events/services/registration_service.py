"""
Registration service: register, cancel, and list the current user's registrations.
"""

from typing import Any, Optional

from pydantic import ValidationError

from campus_events.api.client import ApiClient, unwrap
from campus_events.core.errors import ApiError
from campus_events.core.logging import get_logger
from campus_events.schemas.registration import RegistrationResponse

logger = get_logger(__name__)


def _try_parse(payload: Any) -> Optional[RegistrationResponse]:
    try:
        return RegistrationResponse.model_validate(payload)
    except ValidationError:
        return None


async def register_for_event(client: ApiClient, event_id: str) -> Optional[RegistrationResponse]:
    """
    Register the current user for an event.
    Returns the new registration when the server sends back a populated one.
    """
    body = await client.request(
        "register_for_event", "POST", f"/registrations/{event_id}",
        default_message="Failed to register for event",
    )
    logger.info("registration_created", event_id=event_id)
    return _try_parse(unwrap(body))


async def cancel_registration(client: ApiClient, event_id: str) -> None:
    await client.request(
        "cancel_registration", "DELETE", f"/registrations/{event_id}",
        default_message="Failed to cancel registration",
    )
    logger.info("registration_cancelled", event_id=event_id)


async def get_my_registrations(client: ApiClient) -> list[RegistrationResponse]:
    """Full registration history of the current user, every status included."""
    body = await client.request(
        "get_my_registrations", "GET", "/registrations",
        default_message="Failed to fetch registrations",
    )
    rows = unwrap(body) or []
    if not isinstance(rows, list):
        raise ApiError("Failed to fetch registrations", operation="get_my_registrations")

    registrations = []
    for row in rows:
        registration = _try_parse(row)
        if registration is None:
            # e.g. the event was deleted and is no longer populated
            logger.warning("registration_skipped", reason="unparseable", row_id=_row_id(row))
            continue
        registrations.append(registration)
    return registrations


def _row_id(row: Any) -> Optional[str]:
    if isinstance(row, dict):
        return row.get("_id") or row.get("id")
    return None
