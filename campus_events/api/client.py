"""
Shared HTTP client for the campus events backend.

Every service call goes through `ApiClient.request`, which:
  - attaches the bearer token when the session has one
  - maps any failure to a single `ApiError` carrying a user-facing message
    (the server's `message` field when present, else the caller's default)
  - records latency and outcome metrics

There are no retries: a failed call is reported once and the caller decides
whether to offer the user a retry.
"""

import time
from typing import Any, Callable, Optional

import httpx

from campus_events.api.middleware import RequestLoggingHooks
from campus_events.core.config import Settings, get_settings
from campus_events.core.errors import ApiError
from campus_events.core.logging import get_logger
from campus_events.core.metrics import record_api_call

logger = get_logger(__name__)

TokenGetter = Callable[[], Optional[str]]


def _server_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None


def unwrap(body: Any) -> Any:
    """Strip the `{"data": ...}` envelope the backend wraps payloads in."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class ApiClient:
    def __init__(
        self,
        token_getter: TokenGetter,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = settings or get_settings()
        self._token_getter = token_getter
        self._hooks = RequestLoggingHooks()
        self._http = httpx.AsyncClient(
            base_url=settings.API_BASE_URL,
            timeout=settings.HTTP_TIMEOUT,
            transport=transport,
            event_hooks=self._hooks.as_event_hooks(),
            headers={"Accept": "application/json"},
        )

    async def close(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        default_message: str,
        params: Optional[dict] = None,
        json: Any = None,
        files: Optional[list] = None,
    ) -> Any:
        """Issue one call and return the decoded JSON body (None when empty)."""
        headers = {}
        token = self._token_getter()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        start = time.perf_counter()
        request = self._http.build_request(
            method, path, params=params, json=json, files=files, headers=headers
        )
        try:
            response = await self._http.send(request)
        except httpx.HTTPError as e:
            self._hooks.discard(request)
            record_api_call(operation, False, time.perf_counter() - start)
            logger.error("request_failed", operation=operation, error=str(e))
            raise ApiError(default_message, operation=operation) from e

        record_api_call(operation, response.is_success, time.perf_counter() - start)

        if not response.is_success:
            message = _server_message(response) or default_message
            logger.warning(
                "api_error",
                operation=operation,
                status_code=response.status_code,
                message=message,
            )
            raise ApiError(message, status_code=response.status_code, operation=operation)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error("invalid_response_body", operation=operation)
            raise ApiError(default_message, response.status_code, operation) from e
