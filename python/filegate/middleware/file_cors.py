"""Pure ASGI CORS middleware for /file/* endpoints only.

- Does not use starlette's CORSMiddleware (not path-scoped, echoes origins).
- Does not use BaseHTTPMiddleware, so file bodies stream untouched.
- Answers OPTIONS preflights for /file/* before routing.
- Ensures every /file/* response (errors and redirects included) carries the
  CORS header set, without duplicating headers the route already set.
"""

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from filegate.services.delivery import CORS_HEADERS, preflight_response

FILE_PATH_PREFIX = "/file/"


class FileCORSMiddleware:
    """Pure ASGI middleware for path-scoped CORS on /file/* routes."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not scope["path"].startswith(FILE_PATH_PREFIX):
            await self.app(scope, receive, send)
            return

        if scope["method"] == "OPTIONS":
            response = preflight_response()
            await response(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                resp_headers = MutableHeaders(scope=message)
                for name, value in CORS_HEADERS.items():
                    if name.lower() not in resp_headers:
                        resp_headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_cors)
