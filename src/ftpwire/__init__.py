"""ftpwire: a blocking FTP client protocol engine.

Drives an FTP control connection, frames server replies and moves
file content over passive-mode data connections.
"""

from ftpwire.ftp.codes import ResponseCode, StatusType, TransferType
from ftpwire.ftp.connection import Connection, ConnectionState, connect, connect_on
from ftpwire.ftp.exceptions import (
    FTPAddressParseError,
    FTPAuthenticationError,
    FTPConnectionError,
    FTPError,
    FTPFramingError,
    FTPNotConnectedError,
    FTPProtocolError,
    FTPTimeoutError,
    FTPTransferError,
)
from ftpwire.ftp.response import Response
from ftpwire.ftp.wire_log import LoggingProtocolLogger, NullProtocolLogger, ProtocolLogger

__version__ = "1.0.0"

__all__ = [
    "Connection",
    "ConnectionState",
    "connect",
    "connect_on",
    "Response",
    "ResponseCode",
    "StatusType",
    "TransferType",
    "ProtocolLogger",
    "NullProtocolLogger",
    "LoggingProtocolLogger",
    "FTPError",
    "FTPConnectionError",
    "FTPTimeoutError",
    "FTPNotConnectedError",
    "FTPFramingError",
    "FTPProtocolError",
    "FTPAuthenticationError",
    "FTPAddressParseError",
    "FTPTransferError",
]
