"""
Async runtime: performs coroutine I/O on an anyio byte stream.
"""

from __future__ import annotations

from typing import Any

import anyio

from imap_starttls.contracts import (
    AsyncStream,
    IoOutput,
    IoRequest,
    ReadOutput,
    ReadRequest,
    UnexpectedIoError,
    WriteOutput,
    WriteRequest,
)


async def handle(stream: AsyncStream, io: IoRequest) -> IoOutput:
    """
    Perform exactly one I/O request on stream.

    anyio streams hand out fresh bytes, which are copied into the
    coroutine's buffer. End of stream is reported as a zero-byte read and
    left to the Read coroutine to reject.

    ERRORS:
    - UnexpectedIoError: io is not a known request
    - anyio.BrokenResourceError, anyio.ClosedResourceError: propagated
    """
    if isinstance(io, ReadRequest):
        try:
            data = await stream.receive(len(io.buffer))
        except anyio.EndOfStream:
            return ReadOutput(io.buffer, 0)
        io.buffer[: len(data)] = data
        return ReadOutput(io.buffer, len(data))

    if isinstance(io, WriteRequest):
        await stream.send(io.data)
        return WriteOutput(len(io.data))

    raise UnexpectedIoError(f"Cannot handle I/O request {io!r}")


async def drive(coroutine: Any, stream: AsyncStream) -> Any:
    """Resume coroutine until it stops requesting I/O and return its value."""
    io = None
    while True:
        result = coroutine.resume(io)
        if not isinstance(result, (ReadRequest, WriteRequest)):
            return result
        io = await handle(stream, result)
