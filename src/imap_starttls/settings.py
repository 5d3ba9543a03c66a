"""
Server Settings
===============

Where to connect and how to negotiate. Values come from the environment,
falling back to an interactive prompt for the host and port.

ENVIRONMENT:
- HOST: IMAP server host
- PORT: IMAP server plain port
- TIMEOUT: seconds allowed per I/O operation (optional)
- DISCARD_GREETING: whether to read the greeting first (optional, default yes)
- TAG: tag of the STARTTLS command (optional)
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from imap_starttls.contracts import InvalidSettingsError
from imap_starttls.upgrade import DEFAULT_TAG, validate_tag

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class ServerSettings:
    """Connection settings for a STARTTLS negotiation."""

    host: str
    port: int = 143
    timeout: float | None = None
    discard_greeting: bool = True
    tag: str = DEFAULT_TAG


def prompt(message: str) -> str:
    """Ask a question on the terminal and return the stripped answer."""
    return input(f"{message} ").strip()


def load_settings(
    environ: Mapping[str, str] | None = None,
    ask: Callable[[str], str] = prompt,
) -> ServerSettings:
    """
    Build settings from the environment.

    POST: Returns ServerSettings with a non-empty host and a valid port

    ERRORS:
    - InvalidSettingsError: host empty, port or timeout not a valid number,
      DISCARD_GREETING not a boolean, TAG not a valid IMAP tag
    """
    if environ is None:
        environ = os.environ

    host = environ.get("HOST") or ask("TCP server host?")
    if not host:
        raise InvalidSettingsError("Server host must not be empty")

    raw_port = environ.get("PORT") or ask("TCP server port?")
    try:
        port = int(raw_port)
    except ValueError as e:
        raise InvalidSettingsError(f"Invalid port: {raw_port!r}") from e
    if not 0 < port < 65536:
        raise InvalidSettingsError(f"Port out of range: {port}")

    timeout = None
    raw_timeout = environ.get("TIMEOUT")
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError as e:
            raise InvalidSettingsError(f"Invalid timeout: {raw_timeout!r}") from e
        if timeout <= 0:
            raise InvalidSettingsError(f"Timeout must be positive: {timeout}")

    discard_greeting = True
    raw_discard = environ.get("DISCARD_GREETING")
    if raw_discard:
        if raw_discard.lower() in TRUE_VALUES:
            discard_greeting = True
        elif raw_discard.lower() in FALSE_VALUES:
            discard_greeting = False
        else:
            raise InvalidSettingsError(f"Invalid DISCARD_GREETING: {raw_discard!r}")

    tag = environ.get("TAG") or DEFAULT_TAG
    try:
        validate_tag(tag)
    except ValueError as e:
        raise InvalidSettingsError(str(e)) from e

    return ServerSettings(
        host=host,
        port=port,
        timeout=timeout,
        discard_greeting=discard_greeting,
        tag=tag,
    )
