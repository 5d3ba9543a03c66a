"""
IMAP STARTTLS
=============

Sans-I/O STARTTLS negotiation for IMAP, driven by blocking or async runtimes.
"""

__version__ = "0.1.0"

from imap_starttls.coroutines import Read, Write
from imap_starttls.settings import ServerSettings, load_settings
from imap_starttls.upgrade import (
    DEFAULT_TAG,
    DiscardGreeting,
    DiscardResponse,
    UpgradeTls,
    WriteCommand,
)

__all__ = [
    "UpgradeTls",
    "DiscardGreeting",
    "WriteCommand",
    "DiscardResponse",
    "DEFAULT_TAG",
    "Read",
    "Write",
    "ServerSettings",
    "load_settings",
]
