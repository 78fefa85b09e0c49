"""Observers for raw control-connection traffic.

A ProtocolLogger is handed to a Connection at construction and sees every
message sent and every reply received, together with the error (if any)
of that exchange.
"""

import logging
import re
from typing import Optional

_PASS_LINE = re.compile(rb"^(PASS )[^\r\n]*", re.IGNORECASE)


def mask_password(message: bytes) -> bytes:
    """Replace the argument of a PASS command with asterisks."""
    return _PASS_LINE.sub(rb"\1****", message)


class ProtocolLogger:
    """Receives control-connection traffic. The base implementation ignores it."""

    def sent_ftp(self, message: bytes, error: Optional[Exception]) -> None:
        """Called after a command was written to the control connection."""

    def received_ftp(self, response: bytes, error: Optional[Exception]) -> None:
        """Called after a reply was read from the control connection."""


class NullProtocolLogger(ProtocolLogger):
    """Default logger that discards all traffic."""


class LoggingProtocolLogger(ProtocolLogger):
    """Forwards control-connection traffic to a standard library logger."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("ftpwire.wire")

    def sent_ftp(self, message: bytes, error: Optional[Exception]) -> None:
        line = mask_password(message).decode("utf-8", errors="replace").rstrip()
        if error is not None:
            self._logger.warning(">> %s (send failed: %s)", line, error)
        else:
            self._logger.debug(">> %s", line)

    def received_ftp(self, response: bytes, error: Optional[Exception]) -> None:
        text = response.decode("utf-8", errors="replace").rstrip()
        if error is not None:
            self._logger.warning("<< %s (receive failed: %s)", text, error)
        else:
            self._logger.debug("<< %s", text)
