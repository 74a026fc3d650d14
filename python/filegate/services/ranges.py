"""Byte-range arithmetic for partial content responses.

Pure functions, no I/O. A Range header is evaluated against a known total
size and yields one of:
- None: no usable range was requested (serve the whole file)
- ByteRange: a validated, clamped [start, end] window
- UnsatisfiableRange: the window lies outside the file (answer 416)

Only the first "bytes=A-B" range is honoured; multi-range requests are
treated as their first range.
"""

import re
from dataclasses import dataclass

RANGE_PATTERN = re.compile(r"bytes=(\d*)-(\d*)")


@dataclass(frozen=True)
class ByteRange:
    """Validated inclusive byte window within a file of total_size bytes."""

    start: int
    end: int
    total_size: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        """Content-Range header value for a 206 response."""
        return f"bytes {self.start}-{self.end}/{self.total_size}"


@dataclass(frozen=True)
class UnsatisfiableRange:
    """A requested window that cannot be served from total_size bytes."""

    total_size: int

    @property
    def content_range(self) -> str:
        """Content-Range header value for a 416 response."""
        return f"bytes */{self.total_size}"


def parse_range_header(
    range_header: str | None, total_size: int
) -> ByteRange | UnsatisfiableRange | None:
    """Evaluate a Range header against a file size.

    Args:
        range_header: Raw Range header value (may be None).
        total_size: Size of the full file in bytes.

    Returns:
        None if no range was requested, otherwise a ByteRange or
        UnsatisfiableRange.

    Example:
        >>> parse_range_header("bytes=-500", 1000)
        ByteRange(start=500, end=999, total_size=1000)
    """
    if not range_header:
        return None

    match = RANGE_PATTERN.search(range_header)
    if not match:
        return None

    first, last = match.group(1), match.group(2)

    if not first and last:
        # Suffix range: the last N bytes
        start = max(0, total_size - int(last))
        end = total_size - 1
    else:
        start = int(first) if first else 0
        end = int(last) if last else total_size - 1

    if start >= total_size or start < 0 or end < start:
        return UnsatisfiableRange(total_size=total_size)

    return ByteRange(start=start, end=min(end, total_size - 1), total_size=total_size)


def slice_window(data: bytes, byte_range: ByteRange) -> bytes:
    """Cut the requested window out of a fully buffered body."""
    return data[byte_range.start : byte_range.end + 1]
