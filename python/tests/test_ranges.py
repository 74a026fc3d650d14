"""Tests for byte-range arithmetic.

Tests cover:
- Explicit, open-ended and suffix ranges
- Clamping of ends past the file
- Unsatisfiable windows and their Content-Range
- Headers that carry no usable range
"""

import pytest

from filegate.services.ranges import (
    ByteRange,
    UnsatisfiableRange,
    parse_range_header,
    slice_window,
)


class TestParseRangeHeader:
    """Tests for parse_range_header."""

    def test_explicit_range(self):
        """bytes=A-B yields that exact window."""
        result = parse_range_header("bytes=100-199", 1000)
        assert result == ByteRange(start=100, end=199, total_size=1000)
        assert result.length == 100
        assert result.content_range == "bytes 100-199/1000"

    def test_open_ended_range(self):
        """bytes=A- runs to the last byte."""
        assert parse_range_header("bytes=900-", 1000) == ByteRange(900, 999, 1000)

    def test_suffix_range(self):
        """bytes=-N is the last N bytes."""
        assert parse_range_header("bytes=-500", 1000) == ByteRange(500, 999, 1000)

    def test_suffix_longer_than_file(self):
        """A suffix longer than the file covers the whole file."""
        assert parse_range_header("bytes=-5000", 1000) == ByteRange(0, 999, 1000)

    def test_end_clamped_to_last_byte(self):
        """An end past the file is clamped rather than rejected."""
        assert parse_range_header("bytes=0-5000", 1000) == ByteRange(0, 999, 1000)

    def test_single_byte(self):
        """bytes=A-A is a one-byte window."""
        result = parse_range_header("bytes=0-0", 1000)
        assert result == ByteRange(0, 0, 1000)
        assert result.length == 1

    def test_start_at_size_is_unsatisfiable(self):
        """A window starting at the file size is unsatisfiable."""
        result = parse_range_header("bytes=1000-", 1000)
        assert result == UnsatisfiableRange(total_size=1000)
        assert result.content_range == "bytes */1000"

    def test_start_past_size_is_unsatisfiable(self):
        """A window starting past the end is unsatisfiable."""
        assert isinstance(parse_range_header("bytes=2000-2100", 1000), UnsatisfiableRange)

    def test_end_before_start_is_unsatisfiable(self):
        """A reversed window is unsatisfiable."""
        assert isinstance(parse_range_header("bytes=500-100", 1000), UnsatisfiableRange)

    def test_zero_suffix_is_unsatisfiable(self):
        """bytes=-0 asks for no bytes at all."""
        assert isinstance(parse_range_header("bytes=-0", 1000), UnsatisfiableRange)

    def test_empty_file_is_unsatisfiable(self):
        """No window fits in an empty file."""
        assert isinstance(parse_range_header("bytes=0-10", 0), UnsatisfiableRange)

    @pytest.mark.parametrize("header", [None, "", "items=0-10", "bytes=abc"])
    def test_no_usable_range(self, header):
        """Headers without a bytes=A-B range mean no range was requested."""
        assert parse_range_header(header, 1000) is None

    def test_multi_range_uses_first(self):
        """Only the first range of a multi-range request is honoured."""
        assert parse_range_header("bytes=0-9,20-29", 1000) == ByteRange(0, 9, 1000)


class TestRangeHelpers:
    """Tests for slice_window."""

    def test_slice_window_is_inclusive(self):
        """The sliced window includes both start and end bytes."""
        data = bytes(range(256)) * 4
        window = slice_window(data, ByteRange(100, 199, len(data)))
        assert window == data[100:200]
        assert len(window) == 100
