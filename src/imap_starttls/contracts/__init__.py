"""
IMAP STARTTLS Contract Index
============================

AUTHORITY: This file is the SINGLE authoritative entrypoint for all
STARTTLS contracts. Import from here, not from individual contract files.
"""

from imap_starttls.contracts.starttls_contract import (
    # Transport Contracts
    AsyncStream,
    BlockingStream,
    ConnectionFailedError,
    InvalidSettingsError,
    IoOutput,
    IoRequest,
    ReadOutput,
    # I/O Values
    ReadRequest,
    # Resumable Contract
    ResumableContract,
    # Error Types
    StartTlsError,
    UnexpectedEofError,
    UnexpectedIoError,
    UpgradeAlreadyStartedError,
    UpgradeFinishedError,
    WriteOutput,
    WriteRequest,
    WriteZeroError,
)

__all__ = [
    # I/O Values
    "ReadRequest",
    "WriteRequest",
    "ReadOutput",
    "WriteOutput",
    "IoRequest",
    "IoOutput",
    # Error Types
    "StartTlsError",
    "UnexpectedIoError",
    "UnexpectedEofError",
    "WriteZeroError",
    "UpgradeAlreadyStartedError",
    "UpgradeFinishedError",
    "InvalidSettingsError",
    "ConnectionFailedError",
    # Contracts
    "ResumableContract",
    "BlockingStream",
    "AsyncStream",
]
