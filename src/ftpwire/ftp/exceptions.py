"""FTP-specific exceptions for ftpwire.

Custom exception hierarchy for control and data channel failures,
so callers can tell a dead transport from a refused command.
"""

from typing import Optional


class FTPError(Exception):
    """Base exception for all FTP-related errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class FTPConnectionError(FTPError):
    """Transport-level failure on the control or data connection."""


class FTPTimeoutError(FTPConnectionError):
    """Dialing the server timed out."""

    def __init__(self, address: str, timeout: Optional[float] = None):
        self.address = address
        self.timeout = timeout
        message = f"Connection to {address} timed out"
        if timeout is not None:
            message += f" after {timeout} seconds"
        super().__init__(message)


class FTPNotConnectedError(FTPError):
    """Operation attempted on a closed connection."""

    def __init__(self, operation: str = "Operation"):
        self.operation = operation
        message = f"{operation} requires an open FTP connection"
        super().__init__(message)


class FTPFramingError(FTPError):
    """Reply could not be framed (malformed, truncated or unreadable)."""

    def __init__(
        self,
        reason: str,
        received: bytes = b"",
        original_error: Exception = None
    ):
        self.reason = reason
        self.received = received
        message = f"Malformed FTP reply ({reason})"
        if received:
            message += f": {received!r}"
        super().__init__(message, original_error)


class FTPProtocolError(FTPError):
    """Well-formed reply carrying an unexpected response code."""

    def __init__(self, command: str, response: bytes, encoding: str = "utf-8"):
        self.command = command
        self.response = response
        self.code = response[:3].decode("ascii", errors="replace")
        text = response.decode(encoding, errors="replace").rstrip("\r\n")
        message = f"FTP server responded to {command} with error: {text}"
        super().__init__(message)


class FTPAuthenticationError(FTPProtocolError):
    """Server rejected the USER/PASS sequence."""

    def __init__(
        self,
        username: str,
        command: str,
        response: bytes,
        encoding: str = "utf-8"
    ):
        self.username = username
        super().__init__(command, response, encoding)


class FTPAddressParseError(FTPProtocolError):
    """Passive mode reply does not contain a usable address tuple."""

    def __init__(self, response: bytes):
        super().__init__("address extraction", response)


class FTPTransferError(FTPError):
    """Data connection failed or the transfer did not complete."""

    def __init__(
        self,
        command: str,
        path: str = "",
        original_error: Exception = None,
        response: Optional[bytes] = None,
        encoding: str = "utf-8"
    ):
        self.command = command
        self.path = path
        self.response = response
        target = f"{command} {path}".rstrip()
        if response is not None:
            text = response.decode(encoding, errors="replace").rstrip("\r\n")
            message = f"Transfer '{target}' did not complete: {text}"
        else:
            message = f"Transfer '{target}' failed"
        super().__init__(message, original_error)
