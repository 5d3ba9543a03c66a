"""
Blocking runtime: performs coroutine I/O on a socket-like stream.
"""

from __future__ import annotations

from typing import Any

from imap_starttls.contracts import (
    BlockingStream,
    IoOutput,
    IoRequest,
    ReadOutput,
    ReadRequest,
    UnexpectedIoError,
    WriteOutput,
    WriteRequest,
)


def handle(stream: BlockingStream, io: IoRequest) -> IoOutput:
    """
    Perform exactly one I/O request on stream.

    Reads use recv_into() so the coroutine's buffer is filled in place.
    Writes use send(), which may accept only a prefix of the data.

    ERRORS:
    - UnexpectedIoError: io is not a known request
    - OSError, ssl.SSLError: propagated from the stream
    """
    if isinstance(io, ReadRequest):
        bytes_count = stream.recv_into(io.buffer)
        return ReadOutput(io.buffer, bytes_count)

    if isinstance(io, WriteRequest):
        bytes_count = stream.send(io.data)
        return WriteOutput(bytes_count)

    raise UnexpectedIoError(f"Cannot handle I/O request {io!r}")


def drive(coroutine: Any, stream: BlockingStream) -> Any:
    """Resume coroutine until it stops requesting I/O and return its value."""
    io = None
    while True:
        result = coroutine.resume(io)
        if not isinstance(result, (ReadRequest, WriteRequest)):
            return result
        io = handle(stream, result)
