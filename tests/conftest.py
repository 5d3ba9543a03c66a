"""Shared fixtures and helpers for the STARTTLS test-suite."""

import pytest

from imap_starttls.contracts import ReadOutput, ReadRequest


@pytest.fixture
def anyio_backend():
    return "asyncio"


def fill(request: ReadRequest, chunk: bytes) -> ReadOutput:
    """Answer a read request the way a runtime would."""
    request.buffer[: len(chunk)] = chunk
    return ReadOutput(request.buffer, len(chunk))
