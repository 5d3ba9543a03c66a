"""
Demo Tests
==========

Both demo flows against scripted transports: no network, no real TLS.
"""

from unittest.mock import AsyncMock, Mock, patch

import anyio
import pytest

from imap_starttls.contracts import ConnectionFailedError, InvalidSettingsError
from imap_starttls.demo import NOOP_COMMAND, log_level, main, run_async, run_blocking
from imap_starttls.settings import ServerSettings

COMMAND = b"NGC6543 STARTTLS\r\n"
GREETING = b"* OK IMAP4rev1 Service Ready\r\n"
RESPONSE = b"NGC6543 OK Begin TLS negotiation now\r\n"
NOOP_RESPONSE = b"A OK NOOP completed\r\n"


# =============================================================================
# TEST FIXTURES
# =============================================================================

class FakeSocket:
    """Socket double: scripted reads, recorded writes, context manager."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.sent = bytearray()
        self.closed = False

    def recv_into(self, buffer, nbytes=0):
        chunk = self.chunks.pop(0)
        buffer[: len(chunk)] = chunk
        return len(chunk)

    def send(self, data):
        self.sent += data
        return len(data)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


class FakeStream:
    """anyio byte stream double."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.sent = bytearray()
        self.closed = False

    async def receive(self, max_bytes=65536):
        if not self.chunks:
            raise anyio.EndOfStream
        return self.chunks.pop(0)

    async def send(self, item):
        self.sent += item

    async def aclose(self):
        self.closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()


@pytest.fixture
def settings():
    return ServerSettings(host="imap.example.com", port=143, timeout=5)


# =============================================================================
# BLOCKING DEMO
# =============================================================================

class TestRunBlocking:
    """run_blocking() over a patched socket and TLS wrapper."""

    def test_upgrade_then_noop(self, settings):
        plain = FakeSocket([GREETING, RESPONSE])
        secure = FakeSocket([NOOP_RESPONSE])

        with patch("imap_starttls.demo.socket.create_connection", return_value=plain) as connect, \
                patch("imap_starttls.demo.tls.wrap_socket", return_value=secure) as wrap:
            response = run_blocking(settings)

        assert response == NOOP_RESPONSE
        connect.assert_called_once_with(("imap.example.com", 143), timeout=5)
        wrap.assert_called_once_with(plain, None, "imap.example.com")
        assert bytes(plain.sent) == COMMAND
        assert bytes(secure.sent) == NOOP_COMMAND
        assert plain.closed and secure.closed

    def test_greeting_already_consumed(self):
        settings = ServerSettings(host="localhost", discard_greeting=False)
        plain = FakeSocket([RESPONSE])
        secure = FakeSocket([NOOP_RESPONSE])

        with patch("imap_starttls.demo.socket.create_connection", return_value=plain), \
                patch("imap_starttls.demo.tls.wrap_socket", return_value=secure):
            run_blocking(settings)

        assert bytes(plain.sent) == COMMAND

    def test_custom_tag(self):
        settings = ServerSettings(host="localhost", tag="S1")
        plain = FakeSocket([GREETING, b"S1 OK go\r\n"])
        secure = FakeSocket([NOOP_RESPONSE])

        with patch("imap_starttls.demo.socket.create_connection", return_value=plain), \
                patch("imap_starttls.demo.tls.wrap_socket", return_value=secure):
            run_blocking(settings)

        assert bytes(plain.sent) == b"S1 STARTTLS\r\n"

    def test_connection_failed(self, settings):
        with patch(
            "imap_starttls.demo.socket.create_connection",
            side_effect=ConnectionRefusedError("refused"),
        ):
            with pytest.raises(ConnectionFailedError):
                run_blocking(settings)


# =============================================================================
# ASYNC DEMO
# =============================================================================

class TestRunAsync:
    """run_async() over patched anyio connect and TLS wrap."""

    @pytest.mark.anyio
    async def test_upgrade_then_noop(self, settings):
        plain = FakeStream([GREETING, RESPONSE])
        secure = FakeStream([NOOP_RESPONSE])

        with patch("imap_starttls.demo.anyio.connect_tcp", new=AsyncMock(return_value=plain)), \
                patch("imap_starttls.demo.TLSStream.wrap", new=AsyncMock(return_value=secure)) as wrap:
            response = await run_async(settings)

        assert response == NOOP_RESPONSE
        wrap.assert_awaited_once_with(
            plain,
            hostname="imap.example.com",
            ssl_context=None,
            standard_compatible=False,
        )
        assert bytes(plain.sent) == COMMAND
        assert bytes(secure.sent) == NOOP_COMMAND
        assert plain.closed and secure.closed

    @pytest.mark.anyio
    async def test_connection_failed(self, settings):
        with patch(
            "imap_starttls.demo.anyio.connect_tcp",
            new=AsyncMock(side_effect=OSError("unreachable")),
        ):
            with pytest.raises(ConnectionFailedError):
                await run_async(settings)

    @pytest.mark.anyio
    async def test_connect_bounded_by_timeout(self):
        settings = ServerSettings(host="imap.example.com", timeout=0.05)

        async def hang(*args, **kwargs):
            await anyio.sleep(10)

        with patch("imap_starttls.demo.anyio.connect_tcp", new=hang):
            with pytest.raises(ConnectionFailedError):
                await run_async(settings)

    @pytest.mark.anyio
    async def test_tls_handshake_bounded_by_timeout(self):
        settings = ServerSettings(host="imap.example.com", timeout=0.05)
        plain = FakeStream([GREETING, RESPONSE])

        async def hang(*args, **kwargs):
            await anyio.sleep(10)

        with patch("imap_starttls.demo.anyio.connect_tcp", new=AsyncMock(return_value=plain)), \
                patch("imap_starttls.demo.TLSStream.wrap", new=hang):
            with pytest.raises(TimeoutError):
                await run_async(settings)

        assert bytes(plain.sent) == COMMAND
        assert plain.closed


# =============================================================================
# ENTRY POINT
# =============================================================================

class TestMain:
    """Command-line entry point."""

    def test_std_runtime(self, settings):
        with patch("imap_starttls.demo.load_settings", return_value=settings), \
                patch("imap_starttls.demo.run_blocking") as run:
            assert main([]) == 0

        run.assert_called_once_with(settings)

    def test_anyio_runtime(self, settings):
        run = AsyncMock(return_value=NOOP_RESPONSE)

        with patch("imap_starttls.demo.load_settings", return_value=settings), \
                patch("imap_starttls.demo.run_async", new=run):
            assert main(["--runtime", "anyio"]) == 0

        run.assert_awaited_once_with(settings)

    def test_error_exit_code(self):
        with patch(
            "imap_starttls.demo.load_settings",
            Mock(side_effect=InvalidSettingsError("Invalid port: 'imap'")),
        ):
            assert main([]) == 1

    def test_unknown_runtime(self):
        with pytest.raises(SystemExit):
            main(["--runtime", "trio-ish"])

    def test_invalid_log_level_exit_code(self, settings):
        with patch.dict("os.environ", {"IMAP_STARTTLS_LOG": "chatty"}), \
                patch("imap_starttls.demo.load_settings", return_value=settings), \
                patch("imap_starttls.demo.run_blocking") as run:
            assert main([]) == 1

        run.assert_not_called()


class TestLogLevel:
    """IMAP_STARTTLS_LOG resolution."""

    @pytest.mark.parametrize("name, level", [("debug", 10), ("INFO", 20), ("Warning", 30)])
    def test_known_levels(self, name, level):
        assert log_level(name) == level

    def test_unknown_level(self):
        with pytest.raises(InvalidSettingsError):
            log_level("chatty")
