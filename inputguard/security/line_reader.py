"""Bounded line reader.

Reads one line from a byte stream without ever buffering more than a
fixed number of characters, so an attacker cannot exhaust memory by
sending an endless line.
"""

from __future__ import annotations

from typing import BinaryIO

from inputguard.core.errors import ValidationAvailabilityError

_TERMINATORS = (b"\n", b"\r")


def safe_read_line(stream: BinaryIO, max_chars: int) -> str | None:
    """Read a single line of at most *max_chars* characters.

    Bytes are read one at a time and mapped to characters one-to-one
    (Latin-1).  The line ends at ``\\n``, ``\\r`` or end of stream; the
    terminator is consumed but not returned.  ``\\r\\n`` therefore leaves the
    ``\\n`` for the next call.

    Returns ``None`` when the stream is already exhausted.

    Raises:
        ValidationAvailabilityError: If *max_chars* is not positive, the
            line exceeds *max_chars* (raised as soon as the overflowing
            character is read, without keeping it), or the stream fails.
            Stream failures carry the original ``OSError`` as ``cause``.
    """
    if max_chars <= 0:
        raise ValidationAvailabilityError(
            "Invalid input",
            "Invalid readline. Must read a positive number of bytes from the stream",
        )

    chars: list[str] = []
    try:
        while True:
            byte = stream.read(1)
            if not byte:
                if not chars:
                    return None
                break
            if byte in _TERMINATORS:
                break
            if len(chars) + 1 > max_chars:
                raise ValidationAvailabilityError(
                    "Invalid input",
                    f"Invalid readLine. Read more than maximum characters allowed ({max_chars})",
                )
            chars.append(byte.decode("latin-1"))
    except OSError as exc:
        raise ValidationAvailabilityError(
            "Invalid input",
            "Invalid readLine. Problem reading from input stream",
            cause=exc,
        ) from exc
    return "".join(chars)
