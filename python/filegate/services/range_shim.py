"""Range-compatibility shim over backend adapters.

Lets callers always ask for a byte range, whatever the backend can do:

1. The client's Range header is forwarded to the backend first.
2. A 206 (or any non-200) answer is passed straight through.
3. A 200 answer to a range request falls back to buffered slicing: the
   whole body is read into memory and the requested window cut out locally.
   A compressed body is decoded first and its decoded length taken as the
   size. Without any declared size the full 200 is served unsliced.

Buffered slicing trades memory for correctness and is unsuitable for large
files. It only runs for backends without native range support, and is
refused outright above max_buffered_bytes.

HEAD requests get the headers the equivalent GET would produce, without
reading the body, whenever the upstream declared its size.
"""

import httpx

from filegate.errors import ApiError, ApiErrorCode, BackendOperationError, RangeNotSatisfiableError
from filegate.logging import get_logger
from filegate.services.backends import BackendAdapter, BackendResponse
from filegate.services.ranges import (
    ByteRange,
    UnsatisfiableRange,
    parse_range_header,
    slice_window,
)

logger = get_logger(__name__)


class RangeCompatibilityShim:
    """Wraps a BackendAdapter so that range requests are always honoured."""

    def __init__(self, adapter: BackendAdapter, *, max_buffered_bytes: int):
        self.adapter = adapter
        self.max_buffered_bytes = max_buffered_bytes

    def fetch(self, range_header: str | None, *, head: bool = False) -> BackendResponse:
        """Fetch through the adapter, slicing locally when the backend ignored the range."""
        response = self.adapter.fetch(range_header, head=head)

        if not range_header or self.adapter.native_ranges:
            return response

        if response.status_code != 200:
            # 206 from an upstream that honoured the range, or an upstream error
            return response

        if head:
            return self._window_headers(response, range_header)

        return self._slice_locally(response, range_header)

    def _window_headers(self, response: BackendResponse, range_header: str) -> BackendResponse:
        total_size = response.content_length
        if not total_size:
            return response

        byte_range = self._resolve_window(response, range_header, total_size)
        if byte_range is None:
            return response

        response.close()
        return BackendResponse(
            status_code=206,
            content_length=byte_range.length,
            content_range=byte_range.content_range,
        )

    def _slice_locally(self, response: BackendResponse, range_header: str) -> BackendResponse:
        total_size = response.content_length

        if total_size:
            byte_range = self._resolve_window(response, range_header, total_size)
            if byte_range is None:
                return response
            data = self._read_body(response)
        elif not response.content_encoding:
            logger.info("range_fallback_unknown_size")
            return response
        else:
            data = self._read_body(response, limit=self.max_buffered_bytes)
            byte_range = self._resolve_window(response, range_header, len(data))
            if byte_range is None:
                return BackendResponse(
                    status_code=200, body=iter((data,)), content_length=len(data)
                )

        window = slice_window(data, byte_range)
        logger.info("range_sliced_locally", content_range=byte_range.content_range)

        return BackendResponse(
            status_code=206,
            body=iter((window,)),
            content_length=len(window),
            content_range=byte_range.content_range,
        )

    def _resolve_window(
        self, response: BackendResponse, range_header: str, total_size: int
    ) -> ByteRange | None:
        """The window to serve, or None when the header carries no usable range.

        Raises:
            RangeNotSatisfiableError: If the window lies outside the file.
            ApiError: E_RANGE_TOO_LARGE_TO_BUFFER above the buffering limit.
        """
        byte_range = parse_range_header(range_header, total_size)

        if byte_range is None:
            return None

        if isinstance(byte_range, UnsatisfiableRange):
            response.close()
            raise RangeNotSatisfiableError(total_size)

        if total_size > self.max_buffered_bytes:
            response.close()
            raise self._too_large(total_size)

        return byte_range

    def _read_body(self, response: BackendResponse, limit: int | None = None) -> bytes:
        chunks: list[bytes] = []
        size = 0
        try:
            for chunk in response.body:
                size += len(chunk)
                if limit is not None and size > limit:
                    raise self._too_large(size)
                chunks.append(chunk)
        except httpx.HTTPError as e:
            raise BackendOperationError(f"Error processing file: {e}") from e
        finally:
            response.close()
        return b"".join(chunks)

    def _too_large(self, size: int) -> ApiError:
        logger.warning("range_buffer_limit_exceeded", size=size, limit=self.max_buffered_bytes)
        return ApiError(
            ApiErrorCode.E_RANGE_TOO_LARGE_TO_BUFFER,
            "Upstream does not support ranges and the file is too large to slice",
        )
