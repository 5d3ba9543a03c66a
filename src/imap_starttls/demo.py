"""
STARTTLS Demo
=============

Upgrades a plain IMAP connection to TLS, then sends NOOP over the secure
channel. The same UpgradeTls coroutine is driven by the blocking runtime
(std) or by the async runtime (anyio).

    HOST=imap.example.com PORT=143 imap-starttls-demo --runtime anyio
"""

from __future__ import annotations

import argparse
import logging
import os
import socket
import ssl

import anyio
from anyio.streams.tls import TLSStream
from imapclient import tls

from imap_starttls.contracts import (
    ConnectionFailedError,
    InvalidSettingsError,
    StartTlsError,
)
from imap_starttls.coroutines import Read, Write
from imap_starttls.runtimes import aio, std
from imap_starttls.settings import ServerSettings, load_settings
from imap_starttls.upgrade import UpgradeTls

logger = logging.getLogger("imap-starttls")

NOOP_COMMAND = b"A NOOP\r\n"


def _new_upgrade(settings: ServerSettings) -> UpgradeTls:
    return UpgradeTls(tag=settings.tag).with_discard_greeting(settings.discard_greeting)


def run_blocking(settings: ServerSettings, ssl_context: ssl.SSLContext | None = None) -> bytes:
    """Negotiate STARTTLS on a blocking socket and return the NOOP response."""
    try:
        sock = socket.create_connection((settings.host, settings.port), timeout=settings.timeout)
    except OSError as e:
        raise ConnectionFailedError(f"Failed to connect: {e}") from e

    with sock:
        std.drive(_new_upgrade(settings), sock)

        logger.info("upgrade current TCP stream to TLS")
        secure = tls.wrap_socket(sock, ssl_context, settings.host)

        with secure:
            logger.info("send NOOP command via TLS")
            std.drive(Write(NOOP_COMMAND), secure)
            output = std.drive(Read(), secure)

    response = output.bytes
    logger.info(f"receive NOOP response via TLS: {response.decode('utf-8', errors='replace')!r}")
    return response


async def run_async(settings: ServerSettings, ssl_context: ssl.SSLContext | None = None) -> bytes:
    """Negotiate STARTTLS on an anyio stream and return the NOOP response."""
    try:
        with anyio.fail_after(settings.timeout):
            stream = await anyio.connect_tcp(settings.host, settings.port)
    except OSError as e:
        raise ConnectionFailedError(f"Failed to connect: {e}") from e

    async with stream:
        with anyio.fail_after(settings.timeout):
            await aio.drive(_new_upgrade(settings), stream)

        logger.info("upgrade current TCP stream to TLS")
        with anyio.fail_after(settings.timeout):
            secure = await TLSStream.wrap(
                stream,
                hostname=settings.host,
                ssl_context=ssl_context,
                standard_compatible=False,
            )

        async with secure:
            logger.info("send NOOP command via TLS")
            with anyio.fail_after(settings.timeout):
                await aio.drive(Write(NOOP_COMMAND), secure)
                output = await aio.drive(Read(), secure)

    response = output.bytes
    logger.info(f"receive NOOP response via TLS: {response.decode('utf-8', errors='replace')!r}")
    return response


def log_level(name: str) -> int:
    """Resolve a logging level name such as "debug" or "WARNING"."""
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise InvalidSettingsError(f"Invalid log level: {name!r}")
    return level


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="imap-starttls-demo",
        description="Upgrade a plain IMAP connection with STARTTLS and send NOOP.",
    )
    parser.add_argument(
        "--runtime",
        choices=["std", "anyio"],
        default="std",
        help="runtime driving the negotiation (default: std)",
    )
    args = parser.parse_args(argv)

    try:
        logging.basicConfig(
            level=log_level(os.environ.get("IMAP_STARTTLS_LOG", "DEBUG")),
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )
        settings = load_settings()
        if args.runtime == "anyio":
            anyio.run(run_async, settings)
        else:
            run_blocking(settings)
    except StartTlsError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
