"""Outbound response assembly for the file endpoints.

Every file response carries:
- CORS headers (any origin; GET/HEAD/OPTIONS; Range allowed and exposed)
- Content-Type from the file name's extension
- Content-Disposition: inline with both the plain and RFC 5987 filename
- Accept-Ranges: bytes
- Cache-Control: no-store, so deleted files stop being served immediately
"""

from urllib.parse import quote

from starlette.background import BackgroundTask
from starlette.responses import PlainTextResponse, RedirectResponse, Response, StreamingResponse

from filegate.services.backends import BackendResponse

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: dict[str, str] = {
    # Video
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogg": "video/ogg",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "mkv": "video/x-matroska",
    "m4v": "video/x-m4v",
    "wmv": "video/x-ms-wmv",
    "flv": "video/x-flv",
    "3gp": "video/3gpp",
    # Audio
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "flac": "audio/flac",
    "aac": "audio/aac",
    "m4a": "audio/mp4",
    "wma": "audio/x-ms-wma",
    "opus": "audio/opus",
    "oga": "audio/ogg",
    # Images
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    # Documents
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    # Text
    "txt": "text/plain",
    "html": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "json": "application/json",
    "xml": "application/xml",
    "md": "text/markdown",
    # Archives
    "zip": "application/zip",
    "rar": "application/x-rar-compressed",
    "7z": "application/x-7z-compressed",
    "tar": "application/x-tar",
    "gz": "application/gzip",
}

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
    "Access-Control-Allow-Headers": "Range, Content-Type, Accept, Origin",
    "Access-Control-Expose-Headers": (
        "Content-Length, Content-Range, Accept-Ranges, Content-Type, Content-Disposition"
    ),
}

PREFLIGHT_MAX_AGE = "86400"

# encodeURIComponent-compatible set of unescaped characters
_FILENAME_SAFE = "!'()*-._~"


def get_mime_type(file_name: str) -> str:
    """Map a file name's extension to a MIME type."""
    ext = file_name.rsplit(".", 1)[-1].lower()
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


def content_disposition(file_name: str) -> str:
    """Inline Content-Disposition carrying the percent-encoded file name.

    The plain filename parameter is percent-encoded too so the header stays
    latin-1 safe for non-ASCII names.
    """
    encoded = quote(file_name, safe=_FILENAME_SAFE)
    return f"inline; filename=\"{encoded}\"; filename*=UTF-8''{encoded}"


def file_headers(file_name: str) -> dict[str, str]:
    """Headers shared by every 200/206 file response."""
    return {
        **CORS_HEADERS,
        "Content-Type": get_mime_type(file_name),
        "Accept-Ranges": "bytes",
        "Cache-Control": "no-store, max-age=0",
        "Content-Disposition": content_disposition(file_name),
    }


def build_file_response(
    backend_response: BackendResponse,
    file_name: str,
    *,
    head: bool = False,
) -> Response:
    """Turn a backend response into the outbound HTTP response.

    Successful responses stream the body; the backend stream is released once
    streaming completes. HEAD responses carry the same headers and no body.
    """
    if not backend_response.ok:
        return upstream_error_response(backend_response, head=head)

    headers = file_headers(file_name)
    if backend_response.content_length is not None:
        headers["Content-Length"] = str(backend_response.content_length)
    if backend_response.status_code == 206 and backend_response.content_range:
        headers["Content-Range"] = backend_response.content_range

    if head:
        backend_response.close()
        return Response(status_code=backend_response.status_code, headers=headers)

    return StreamingResponse(
        backend_response.body,
        status_code=backend_response.status_code,
        headers=headers,
        background=BackgroundTask(backend_response.close),
    )


def upstream_error_response(backend_response: BackendResponse, *, head: bool = False) -> Response:
    """Pass an upstream error status and body through, with CORS headers."""
    body = b"" if head else backend_response.read_all()
    if head:
        backend_response.close()
    return Response(content=body, status_code=backend_response.status_code, headers=CORS_HEADERS)


def error_text_response(
    status_code: int, message: str, headers: dict[str, str] | None = None
) -> PlainTextResponse:
    """Plain-text error for the file endpoints."""
    return PlainTextResponse(
        message, status_code=status_code, headers={**CORS_HEADERS, **(headers or {})}
    )


def redirect_response(url: str) -> RedirectResponse:
    """302 to a placeholder page."""
    return RedirectResponse(url, status_code=302)


def preflight_response() -> Response:
    """204 answer to a CORS preflight."""
    return Response(
        status_code=204,
        headers={**CORS_HEADERS, "Access-Control-Max-Age": PREFLIGHT_MAX_AGE},
    )
