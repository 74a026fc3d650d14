"""File read routes.

Routes are transport-only:
- Extract the id, Range header and caller context from the request
- Call exactly one service function
- Return its response or raise ApiError

OPTIONS preflights are answered by FileCORSMiddleware before routing.
Sync handlers: backend clients are blocking and run in the threadpool.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from starlette.responses import Response

from filegate.api.deps import get_gateway
from filegate.gateway import Gateway
from filegate.services import files as files_service
from filegate.services.access_policy import RequestContext

router = APIRouter()


def request_context(request: Request) -> RequestContext:
    """Origin and Referer of the incoming request."""
    origin = f"{request.url.scheme}://{request.url.netloc}"
    return RequestContext(origin=origin, referer=request.headers.get("referer"))


@router.api_route("/file/{file_id:path}", methods=["GET", "HEAD"])
def get_file(
    file_id: str,
    request: Request,
    gateway: Annotated[Gateway, Depends(get_gateway)],
) -> Response:
    """Serve a stored file, honouring single byte ranges.

    Returns 200 for full content, 206 for a satisfiable range, 416 for an
    unsatisfiable one, 302 when access policy redirects and 404 when the id
    is unknown. HEAD returns the same headers with no body.
    """
    return files_service.serve_file(
        gateway,
        file_id,
        request_context(request),
        range_header=request.headers.get("range"),
        head=request.method == "HEAD",
    )
