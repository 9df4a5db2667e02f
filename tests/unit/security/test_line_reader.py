"""Bounded line reader tests."""

import io

import pytest

from inputguard.core.errors import ValidationAvailabilityError, ValidationError
from inputguard.security.line_reader import safe_read_line


class _BrokenStream(io.RawIOBase):
    def readable(self):
        return True

    def read(self, size=-1):
        raise OSError("device unplugged")


class TestSafeReadLine:
    """Bounded single-line reads."""

    def test_reads_lines_in_order(self) -> None:
        stream = io.BytesIO(b"ab\ncd")
        assert safe_read_line(stream, 10) == "ab"
        assert safe_read_line(stream, 10) == "cd"
        assert safe_read_line(stream, 10) is None

    def test_carriage_return_terminates(self) -> None:
        stream = io.BytesIO(b"a\r\nb")
        assert safe_read_line(stream, 5) == "a"
        assert safe_read_line(stream, 5) == ""
        assert safe_read_line(stream, 5) == "b"

    def test_empty_line(self) -> None:
        assert safe_read_line(io.BytesIO(b"\nrest"), 5) == ""

    def test_exhausted_stream(self) -> None:
        assert safe_read_line(io.BytesIO(b""), 5) is None

    def test_exactly_max_chars(self) -> None:
        assert safe_read_line(io.BytesIO(b"abcdefghij"), 10) == "abcdefghij"

    def test_overflow_raises(self) -> None:
        stream = io.BytesIO(b"abcdefghijk\n")
        with pytest.raises(ValidationAvailabilityError) as exc_info:
            safe_read_line(stream, 10)
        assert "maximum characters" in exc_info.value.log_message
        assert stream.tell() == 11

    def test_overflow_is_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            safe_read_line(io.BytesIO(b"xx"), 1)

    @pytest.mark.parametrize("max_chars", [0, -1], ids=["zero", "negative"])
    def test_non_positive_max_raises(self, max_chars) -> None:
        with pytest.raises(ValidationAvailabilityError, match="Invalid input"):
            safe_read_line(io.BytesIO(b"abc"), max_chars)

    def test_latin1_mapping(self) -> None:
        assert safe_read_line(io.BytesIO(b"caf\xe9\n"), 10) == "café"

    def test_stream_failure_wrapped(self) -> None:
        with pytest.raises(ValidationAvailabilityError) as exc_info:
            safe_read_line(_BrokenStream(), 10)
        assert isinstance(exc_info.value.cause, OSError)
