"""Response envelope helpers and exception handlers.

Errors are rendered in the shape each surface's clients expect:
- /file/*: plain-text body with CORS headers (media players and <img> tags)
- /api/manage/delete/*: { "success": false, "error": "..." }
- everything else: { "error": { "code": "E_...", "message": "...", "request_id": "..." } }
"""

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.responses import Response

from filegate.errors import ApiError, ApiErrorCode
from filegate.logging import get_logger, get_request_id
from filegate.services.delivery import error_text_response

logger = get_logger(__name__)

FILE_PATH_PREFIX = "/file/"
DELETE_PATH_PREFIX = "/api/manage/delete/"


def success_response(data: Any) -> dict[str, Any]:
    """Wrap JSON API data as {"data": ...}."""
    return {"data": data}


def error_response(
    code: ApiErrorCode, message: str, request_id: str | None = None
) -> dict[str, Any]:
    """JSON error envelope; request_id defaults to the one bound for this request."""
    if request_id is None:
        request_id = get_request_id()

    error = {"code": code.value, "message": message}
    if request_id:
        error["request_id"] = request_id

    return {"error": error}


def delete_failure_response(message: str) -> dict[str, Any]:
    """Failure body of the delete endpoint."""
    return {"success": False, "error": message}


def render_error(
    request: Request,
    status_code: int,
    code: ApiErrorCode,
    message: str,
    headers: dict[str, str] | None = None,
) -> Response:
    """Render an error in the format of the surface the request hit."""
    path = request.url.path
    if path.startswith(FILE_PATH_PREFIX):
        return error_text_response(status_code, message, headers)
    if path.startswith(DELETE_PATH_PREFIX):
        return JSONResponse(status_code=status_code, content=delete_failure_response(message))
    return JSONResponse(
        status_code=status_code, content=error_response(code, message), headers=headers
    )


async def api_error_handler(request: Request, exc: ApiError) -> Response:
    """Handle ApiError exceptions."""
    log = logger.warning if exc.status_code >= 500 else logger.info
    log("api_error", code=exc.code.value, status_code=exc.status_code, error=exc.message)
    return render_error(request, exc.status_code, exc.code, exc.message, exc.headers)


async def http_exception_handler(request: Request, exc: Any) -> Response:
    """Handle FastAPI HTTPException."""
    status_to_code = {
        400: ApiErrorCode.E_INVALID_REQUEST,
        404: ApiErrorCode.E_NOT_FOUND,
        405: ApiErrorCode.E_INVALID_REQUEST,
        422: ApiErrorCode.E_INVALID_REQUEST,
    }
    code = status_to_code.get(exc.status_code, ApiErrorCode.E_INTERNAL)
    message = str(exc.detail) if exc.detail else "An error occurred"
    return render_error(request, exc.status_code, code, message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
    """500 with E_INTERNAL. The exception is logged, never sent to the client."""
    logger.exception("unhandled_exception", error=str(exc))

    request_id = get_request_id()
    headers = {"X-Request-ID": request_id} if request_id else None
    return render_error(
        request, 500, ApiErrorCode.E_INTERNAL, "Internal server error", headers
    )
