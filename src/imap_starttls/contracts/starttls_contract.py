"""
IMAP STARTTLS Contract
======================

Behavioral contract for the sans-I/O STARTTLS negotiation.

The negotiation core never touches a socket. It exchanges the values defined
here with a runtime bridge: the core emits an I/O request, the bridge performs
it on a transport and answers with an I/O output.

AUTHORITY: This file is the SINGLE authoritative source for the I/O values,
error types and transport shapes shared by coroutines and runtimes.
"""

from dataclasses import dataclass
from typing import Protocol, Union, runtime_checkable


# =============================================================================
# I/O REQUESTS
# =============================================================================

@dataclass(frozen=True)
class ReadRequest:
    """Read at most len(buffer) bytes into buffer."""
    buffer: bytearray


@dataclass(frozen=True)
class WriteRequest:
    """Write some non-empty prefix of data."""
    data: bytes


# =============================================================================
# I/O OUTPUTS
# =============================================================================

@dataclass(frozen=True)
class ReadOutput:
    """Result of a ReadRequest: buffer filled with bytes_count bytes."""
    buffer: bytearray
    bytes_count: int

    @property
    def bytes(self) -> bytes:
        return bytes(self.buffer[: self.bytes_count])


@dataclass(frozen=True)
class WriteOutput:
    """Result of a WriteRequest: how many bytes the transport accepted."""
    bytes_count: int


IoRequest = Union[ReadRequest, WriteRequest]
IoOutput = Union[ReadOutput, WriteOutput]


# =============================================================================
# ERROR TYPES
# =============================================================================

class StartTlsError(Exception):
    """Base error for all STARTTLS operations."""
    code: str


class UnexpectedIoError(StartTlsError):
    """
    An I/O value of the wrong kind reached a coroutine or a runtime.

    RECOVERY: Fatal for the negotiation. The caller fed back the output of a
    different request.
    """
    code = "UNEXPECTED_IO"


class UnexpectedEofError(StartTlsError):
    """
    The transport reported end of stream while a read was pending.

    RECOVERY: Fatal. The server closed the connection mid-negotiation.
    """
    code = "UNEXPECTED_EOF"


class WriteZeroError(StartTlsError):
    """
    The transport accepted zero bytes of a non-empty write.

    RECOVERY: Fatal. The connection can no longer carry the command.
    """
    code = "WRITE_ZERO"


class UpgradeAlreadyStartedError(StartTlsError):
    """
    Greeting handling was reconfigured after the first resume.

    RECOVERY: Caller error. Configure before driving, or build a new instance.
    """
    code = "ALREADY_STARTED"


class UpgradeFinishedError(StartTlsError):
    """
    The negotiation was resumed after it completed.

    RECOVERY: Caller error. Instances are single use.
    """
    code = "ALREADY_FINISHED"


class InvalidSettingsError(StartTlsError):
    """
    Host, port or timeout configuration is not usable.

    RECOVERY: Fatal. Fix the environment or the answer to the prompt.
    """
    code = "INVALID_SETTINGS"


class ConnectionFailedError(StartTlsError):
    """
    Network unreachable or host not found.

    RECOVERY: Fatal. Check network connectivity and retry.
    """
    code = "CONNECTION_FAILED"


# =============================================================================
# RESUMABLE OPERATION CONTRACT
# =============================================================================

@runtime_checkable
class ResumableContract(Protocol):
    """
    A unit of work that suspends on I/O instead of performing it.

    resume(None) starts or re-polls the operation. resume(output) feeds back
    the output produced for the last request.

    POST: Returns an IoRequest while the operation needs I/O.
    POST: Returns the operation's final value once done.
    INV: At most one request is outstanding at any time.
    INV: resume(None) while a request is outstanding returns an equivalent
         request and changes no state.
    INV: Each accepted output makes monotonic progress.

    ERRORS:
    - UnexpectedIoError: output does not answer the outstanding request
    """

    def resume(self, io: "IoOutput | None" = None) -> object:
        ...


# =============================================================================
# TRANSPORT CONTRACTS
# =============================================================================

@runtime_checkable
class BlockingStream(Protocol):
    """
    Transport driven by the blocking runtime.

    Satisfied by socket.socket and ssl.SSLSocket.
    """

    def recv_into(self, buffer: bytearray, nbytes: int = 0) -> int:
        ...

    def send(self, data: bytes) -> int:
        ...


@runtime_checkable
class AsyncStream(Protocol):
    """
    Transport driven by the async runtime.

    Satisfied by anyio byte streams (SocketStream, TLSStream).
    """

    async def receive(self, max_bytes: int = 65536) -> bytes:
        ...

    async def send(self, item: bytes) -> None:
        ...
