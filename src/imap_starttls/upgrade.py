"""
STARTTLS Upgrade
================

Sans-I/O negotiation that prepares a plain IMAP stream for TLS.

SEQUENCE:
1. Discard the server greeting line (optional)
2. Write "<TAG> STARTTLS\\r\\n"
3. Discard lines until the one tagged with <TAG>

Once resume() returns None the caller may wrap its transport with TLS.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from imap_starttls.contracts import (
    IoOutput,
    IoRequest,
    ReadRequest,
    UpgradeAlreadyStartedError,
    UpgradeFinishedError,
    WriteRequest,
)
from imap_starttls.coroutines import Read, Write

logger = logging.getLogger("imap-starttls")

DEFAULT_TAG = "NGC6543"


@dataclass(frozen=True)
class DiscardGreeting:
    """The greeting needs to be discarded."""

    read: Read


@dataclass(frozen=True)
class WriteCommand:
    """The STARTTLS command needs to be written."""

    write: Write


@dataclass(frozen=True)
class DiscardResponse:
    """The tagged STARTTLS response needs to be discarded."""

    read: Read


State = Union[DiscardGreeting, WriteCommand, DiscardResponse]


def validate_tag(tag: str) -> str:
    if not tag or not tag.isascii() or any(c in tag for c in " \r\n"):
        raise ValueError(f"Invalid IMAP tag: {tag!r}")
    return tag


class UpgradeTls:
    """
    STARTTLS coroutine upgrading a plain IMAP stream to a secure one.

    Drive it with a runtime:

        io = None
        upgrade = UpgradeTls()
        while (request := upgrade.resume(io)) is not None:
            io = handle(stream, request)

    Instances are single use.
    """

    def __init__(self, discard_greeting: bool = True, tag: str = DEFAULT_TAG) -> None:
        self._tag = validate_tag(tag).encode("ascii")
        self._bytes = bytearray()
        self._started = False
        self._finished = False
        self._state: State = self._initial_state(discard_greeting)

    @property
    def command(self) -> bytes:
        """The STARTTLS command sent to the server."""
        return self._tag + b" STARTTLS\r\n"

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def state(self) -> State:
        return self._state

    def _initial_state(self, discard_greeting: bool) -> State:
        if discard_greeting:
            return DiscardGreeting(Read())
        return WriteCommand(Write(self.command))

    def discard_greeting(self, discard: bool) -> None:
        """
        Tell the coroutine how to handle the greeting.

        By default the greeting is read from the plain stream and discarded.
        Pass False when the greeting was already consumed elsewhere: the
        coroutine then starts by writing the STARTTLS command.

        PRE: resume() was never called

        ERRORS:
        - UpgradeAlreadyStartedError: negotiation already in progress
        """
        if self._started:
            raise UpgradeAlreadyStartedError(
                "Greeting handling cannot change once the upgrade started"
            )
        self._state = self._initial_state(discard)

    def with_discard_greeting(self, discard: bool) -> UpgradeTls:
        """Builder alternative to discard_greeting()."""
        self.discard_greeting(discard)
        return self

    def resume(self, io: IoOutput | None = None) -> IoRequest | None:
        """
        Make the negotiation progress.

        POST: Returns the next I/O request, or None once the tagged response
              line was received

        ERRORS:
        - UpgradeFinishedError: negotiation already completed
        - UnexpectedIoError, UnexpectedEofError, WriteZeroError: from the
          underlying read/write coroutines
        """
        if self._finished:
            raise UpgradeFinishedError("STARTTLS negotiation already completed")
        self._started = True

        while True:
            state = self._state

            if isinstance(state, DiscardGreeting):
                output = state.read.resume(io)
                io = None
                if isinstance(output, ReadRequest):
                    return output
                self._bytes.extend(output.bytes)

                n = self._bytes.find(b"\n")
                if n < 0:
                    state.read.replace(output.buffer)
                    continue

                line = self._bytes[: n + 1].decode("utf-8", errors="replace")
                logger.debug(f"discard greeting line {line!r}")

                self._bytes.clear()
                self._state = WriteCommand(Write(self.command))
                logger.debug(f"enqueue command {self.command.decode('ascii')!r}")

            elif isinstance(state, WriteCommand):
                output = state.write.resume(io)
                io = None
                if isinstance(output, WriteRequest):
                    return output

                self._bytes.clear()
                self._state = DiscardResponse(Read())

            elif isinstance(state, DiscardResponse):
                output = state.read.resume(io)
                io = None
                if isinstance(output, ReadRequest):
                    return output
                self._bytes.extend(output.bytes)

                # no tagged line yet, keep reading
                n = self._bytes.find(self._tag + b" ")
                if n < 0:
                    state.read.replace(output.buffer)
                    continue

                m = self._bytes.find(b"\n", n)
                if m < 0:
                    state.read.replace(output.buffer)
                    continue

                self._log_response(bytes(self._bytes[n : m + 1]))
                self._bytes.clear()
                self._finished = True
                return None

    def _log_response(self, line: bytes) -> None:
        text = line.decode("utf-8", errors="replace")
        logger.debug(f"discard line {text!r}")

        status = line[len(self._tag) + 1 :].split(maxsplit=1)[:1]
        if [word.upper() for word in status] != [b"OK"]:
            # still reported as success
            logger.warning(f"server did not accept STARTTLS: {text.strip()!r}")
