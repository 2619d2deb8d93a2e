"""Length-bounded line reading for the control connection."""

from __future__ import annotations

import asyncio

MAX_LINE_LENGTH = 65536
"""Largest control line accepted, newline included, in bytes."""


class LineTooLongError(ValueError):
    """Raised when a peer sends a line longer than MAX_LINE_LENGTH bytes."""

    def __init__(self, message: str = "Line exceeds maximum length") -> None:
        super().__init__(message)


async def read_bounded_line(reader: asyncio.StreamReader) -> str:
    """Read one newline-terminated line of at most MAX_LINE_LENGTH bytes.

    The returned text keeps its trailing newline. At end of stream whatever
    was read so far is returned, which is ``""`` if nothing was left.
    Invalid UTF-8 is replaced rather than rejected. Raises LineTooLongError
    as soon as more than MAX_LINE_LENGTH bytes arrive without a newline.
    """
    chunks: list[bytes] = []
    total = 0
    while True:
        try:
            chunk = await reader.readuntil(b"\n")
            done = True
        except asyncio.IncompleteReadError as exc:
            chunk = exc.partial
            done = True
        except asyncio.LimitOverrunError as exc:
            # The reader's own buffer limit was hit; drain what it holds
            # and keep looking for the newline.
            if total + exc.consumed > MAX_LINE_LENGTH:
                raise LineTooLongError() from None
            chunk = await reader.readexactly(exc.consumed)
            done = False
        total += len(chunk)
        if total > MAX_LINE_LENGTH:
            raise LineTooLongError()
        chunks.append(chunk)
        if done:
            return b"".join(chunks).decode("utf-8", errors="replace")