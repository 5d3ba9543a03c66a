"""
Resumable I/O Primitives
========================

Read and Write coroutines that describe I/O instead of performing it.

Both follow ResumableContract: resume(None) returns the pending request,
resume(output) consumes the answer produced by a runtime.
"""

from __future__ import annotations

from imap_starttls.contracts import (
    IoOutput,
    ReadOutput,
    ReadRequest,
    UnexpectedEofError,
    UnexpectedIoError,
    WriteOutput,
    WriteRequest,
    WriteZeroError,
)

READ_BUFFER_SIZE = 512


class Read:
    """
    Read one chunk of bytes.

    The coroutine owns a buffer that the runtime fills. Once an output came
    back, replace() re-arms the coroutine so the same buffer can be reused for
    the next chunk.
    """

    def __init__(self, buffer: bytearray | None = None) -> None:
        self._buffer = self._check_buffer(buffer)

    @staticmethod
    def _check_buffer(buffer: bytearray | None) -> bytearray:
        if buffer is None:
            return bytearray(READ_BUFFER_SIZE)
        if not buffer:
            raise ValueError("read buffer must not be empty")
        return buffer

    def replace(self, buffer: bytearray) -> None:
        """Re-arm the read with the given buffer."""
        self._buffer = self._check_buffer(buffer)

    def resume(self, io: IoOutput | None = None) -> ReadRequest | ReadOutput:
        """
        Make the read progress.

        POST: Returns ReadRequest until an output is fed back
        POST: Returns the ReadOutput once it carries at least one byte

        ERRORS:
        - UnexpectedIoError: io is not a ReadOutput for this read's buffer,
          or its count does not fit the buffer
        - UnexpectedEofError: io reports zero bytes read
        """
        if io is None:
            return ReadRequest(self._buffer)

        if not isinstance(io, ReadOutput):
            raise UnexpectedIoError(f"Expected read output, got {io!r}")

        if io.buffer is not self._buffer:
            raise UnexpectedIoError("Read output does not answer the pending request")

        if not 0 <= io.bytes_count <= len(self._buffer):
            raise UnexpectedIoError(
                f"Read {io.bytes_count} bytes into a {len(self._buffer)}-byte buffer"
            )

        if io.bytes_count == 0:
            raise UnexpectedEofError("Unexpected end of stream while reading")

        return io


class Write:
    """Write all the given bytes, across as many partial writes as needed."""

    def __init__(self, data: bytes = b"") -> None:
        self._data = bytes(data)
        self._written = 0

    @property
    def remaining(self) -> bytes:
        return self._data[self._written :]

    def resume(self, io: IoOutput | None = None) -> WriteRequest | WriteOutput:
        """
        Make the write progress.

        POST: Returns WriteRequest for the unwritten tail
        POST: Returns WriteOutput with the total once every byte is written

        ERRORS:
        - UnexpectedIoError: io is not a WriteOutput or overshoots the data
        - WriteZeroError: io reports zero bytes written
        """
        if io is not None:
            if not isinstance(io, WriteOutput):
                raise UnexpectedIoError(f"Expected write output, got {io!r}")

            if io.bytes_count == 0:
                raise WriteZeroError("Transport accepted zero bytes")

            if not 0 < io.bytes_count <= len(self._data) - self._written:
                raise UnexpectedIoError(
                    f"Wrote {io.bytes_count} bytes, only "
                    f"{len(self._data) - self._written} were pending"
                )

            self._written += io.bytes_count

        if self._written < len(self._data):
            return WriteRequest(self.remaining)

        return WriteOutput(self._written)
