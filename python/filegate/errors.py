"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the gateway.

    Format: E_CATEGORY_NAME
    """

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"
    E_FILE_NOT_FOUND = "E_FILE_NOT_FOUND"

    # Range errors
    E_RANGE_TOO_LARGE_TO_BUFFER = "E_RANGE_TOO_LARGE_TO_BUFFER"  # 413
    E_RANGE_NOT_SATISFIABLE = "E_RANGE_NOT_SATISFIABLE"  # 416

    # Server errors
    E_INTERNAL = "E_INTERNAL"  # 500
    E_METADATA_NOT_FOUND = "E_METADATA_NOT_FOUND"  # 500, delete path only
    E_BACKEND_UNAVAILABLE = "E_BACKEND_UNAVAILABLE"  # 500
    E_BACKEND_OPERATION_FAILED = "E_BACKEND_OPERATION_FAILED"  # 500
    E_MESSAGE_HOST_RESOLVE_FAILED = "E_MESSAGE_HOST_RESOLVE_FAILED"  # 500
    E_UPSTREAM_DELETE_REFUSED = "E_UPSTREAM_DELETE_REFUSED"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_FILE_NOT_FOUND: 404,
    ApiErrorCode.E_RANGE_TOO_LARGE_TO_BUFFER: 413,
    ApiErrorCode.E_RANGE_NOT_SATISFIABLE: 416,
    ApiErrorCode.E_INTERNAL: 500,
    ApiErrorCode.E_METADATA_NOT_FOUND: 500,
    ApiErrorCode.E_BACKEND_UNAVAILABLE: 500,
    ApiErrorCode.E_BACKEND_OPERATION_FAILED: 500,
    ApiErrorCode.E_MESSAGE_HOST_RESOLVE_FAILED: 500,
    ApiErrorCode.E_UPSTREAM_DELETE_REFUSED: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
        headers: Extra response headers (e.g. Content-Range on 416)
    """

    def __init__(self, code: ApiErrorCode, message: str, headers: dict[str, str] | None = None):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        self.headers = headers or {}
        super().__init__(message)


class NotFoundError(ApiError):
    """Resource not found error."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_FILE_NOT_FOUND, message: str = "File not found"
    ):
        super().__init__(code, message)


class BackendUnavailableError(ApiError):
    """A required backend binding or credential is not configured."""

    def __init__(self, message: str):
        super().__init__(ApiErrorCode.E_BACKEND_UNAVAILABLE, message)


class BackendOperationError(ApiError):
    """Network or storage-layer failure while talking to a backend."""

    def __init__(
        self,
        message: str,
        code: ApiErrorCode = ApiErrorCode.E_BACKEND_OPERATION_FAILED,
    ):
        super().__init__(code, message)


class RangeNotSatisfiableError(ApiError):
    """Requested byte window lies outside the file."""

    def __init__(self, total_size: int):
        super().__init__(
            ApiErrorCode.E_RANGE_NOT_SATISFIABLE,
            "Range Not Satisfiable",
            headers={"Content-Range": f"bytes */{total_size}"},
        )
        self.total_size = total_size
