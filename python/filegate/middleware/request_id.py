"""X-Request-ID middleware for request correlation and access logging.

Pure ASGI, like FileCORSMiddleware: file bodies stream through untouched.

- Incoming X-Request-ID values are kept when valid (UUIDs lowercased),
  replaced with a fresh UUID4 otherwise
- The id is stored in scope["state"] and bound to the logging context
- Every response start message gets the X-Request-ID header
- One request_completed entry is logged per request

Middleware Ordering (Critical):
- Must be added LAST to run FIRST (FastAPI middleware runs in reverse order)
- CORS preflights answered by FileCORSMiddleware still carry X-Request-ID
"""

import re
import time
import uuid

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from filegate.logging import clear_request_context, get_logger, set_request_context

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128

# Alphanumeric, dots, hyphens, underscores
VALID_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,128}$")

UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)

logger = get_logger(__name__)


def is_valid_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.match(value))


def is_valid_request_id(value: str) -> bool:
    """At most 128 bytes, and either a UUID or [A-Za-z0-9._-]+."""
    if len(value.encode("utf-8")) > MAX_REQUEST_ID_LENGTH:
        return False
    return is_valid_uuid(value) or bool(VALID_REQUEST_ID_PATTERN.match(value))


def normalize_request_id(value: str) -> str:
    """Lowercase UUIDs; keep other valid ids as-is."""
    return value.lower() if is_valid_uuid(value) else value


def generate_request_id() -> str:
    return str(uuid.uuid4())


def resolve_request_id(incoming: str | None) -> str:
    """The id to use for a request, given its X-Request-ID header."""
    if incoming and is_valid_request_id(incoming):
        return normalize_request_id(incoming)
    return generate_request_id()


class RequestIDMiddleware:
    """Pure ASGI middleware for X-Request-ID handling and access logging.

    Args:
        app: The ASGI application.
        log_requests: If True, log one access entry per request.
    """

    def __init__(self, app: ASGIApp, log_requests: bool = True):
        self.app = app
        self.log_requests = log_requests

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.monotonic()
        request_id = resolve_request_id(Headers(scope=scope).get(REQUEST_ID_HEADER))

        scope.setdefault("state", {})["request_id"] = request_id
        set_request_context(request_id, path=scope["path"], method=scope["method"])

        status_code: int | None = None

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                MutableHeaders(scope=message)[REQUEST_ID_HEADER] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        except Exception:
            # Context stays bound so the 500 handler can still report the id
            logger.exception("request_failed")
            raise

        if self.log_requests:
            logger.info(
                "request_completed",
                status_code=status_code,
                duration_ms=round((time.monotonic() - start_time) * 1000, 2),
            )
        clear_request_context()
