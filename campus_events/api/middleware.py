"""
httpx event hooks for request logging, timing, and request ID tracking.
"""

import time
import uuid

import httpx
import structlog

from campus_events.core.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingHooks:
    """
    Hooks that:
    1. Assign a unique request ID to each outgoing request
    2. Log request method, path, status code, and duration
    3. Bind request context to structlog for correlation
    """

    def __init__(self):
        self._started: dict[str, float] = {}

    async def on_request(self, request: httpx.Request) -> None:
        request_id = str(uuid.uuid4())[:8]
        request.headers[REQUEST_ID_HEADER] = request_id
        self._started[request_id] = time.perf_counter()

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

    async def on_response(self, response: httpx.Response) -> None:
        request_id = response.request.headers.get(REQUEST_ID_HEADER, "")
        started = self._started.pop(request_id, None)
        duration_ms = round((time.perf_counter() - started) * 1000, 2) if started else None

        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=duration_ms,
        )
        structlog.contextvars.unbind_contextvars("request_id", "method", "path")

    def discard(self, request: httpx.Request) -> None:
        """Forget a request that never produced a response."""
        self._started.pop(request.headers.get(REQUEST_ID_HEADER, ""), None)
        structlog.contextvars.unbind_contextvars("request_id", "method", "path")

    def as_event_hooks(self) -> dict:
        return {"request": [self.on_request], "response": [self.on_response]}
