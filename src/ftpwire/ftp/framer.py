"""Reply framing for the FTP control connection.

A reply is either a single line ``CCC <text>\\r\\n`` or a multi-line block
opened by ``CCC-<text>\\r\\n`` and closed by the first later line that
starts with the same ``CCC`` followed by a space.
"""

import socket
from typing import Optional

from ftpwire.ftp.exceptions import FTPFramingError
from ftpwire.ftp.response import Response

CRLF = b"\r\n"

# Bytes requested per recv() on the control socket
READ_SIZE = 1024


def _reply_code(first_line: bytes) -> bytes:
    """Validate the opening line of a reply and return its code."""
    if len(first_line) < 4:
        raise FTPFramingError("reply code cannot be determined", first_line)
    if not first_line[:3].isdigit() or first_line[3:4] not in (b" ", b"-"):
        raise FTPFramingError("invalid reply code", first_line)
    return first_line[:3]


def reply_length(data: bytes) -> Optional[int]:
    """
    Find the end of the first complete reply in ``data``.

    Args:
        data: Bytes accumulated from the control connection

    Returns:
        Length of the first complete reply, or None if more bytes are needed

    Raises:
        FTPFramingError: If the opening line is not a valid reply line
    """
    first_end = data.find(CRLF)
    if first_end < 0:
        return None

    code = _reply_code(data[:first_end])
    if data[3:4] == b" ":
        return first_end + len(CRLF)

    terminator = code + b" "
    pos = first_end + len(CRLF)
    while True:
        line_end = data.find(CRLF, pos)
        if line_end < 0:
            return None
        if data.startswith(terminator, pos):
            return line_end + len(CRLF)
        pos = line_end + len(CRLF)


def is_complete_response(data: bytes) -> bool:
    """True if ``data`` holds at least one complete reply."""
    return reply_length(data) is not None


class ResponseReader:
    """
    Reads whole replies off a control socket.

    Bytes received past the end of one reply are kept for the next
    call, so replies that arrive in the same segment are still framed
    one at a time.
    """

    def __init__(
        self,
        sock: socket.socket,
        encoding: str = "utf-8",
        read_size: int = READ_SIZE
    ):
        self._sock = sock
        self._encoding = encoding
        self._read_size = read_size
        self._buffer = b""

    @property
    def pending(self) -> bytes:
        """Bytes already received that belong to a later reply."""
        return self._buffer

    def read_response(self) -> Response:
        """
        Block until one complete reply is available and return it.

        Raises:
            FTPFramingError: On malformed data, EOF mid-reply or read failure
        """
        while True:
            try:
                length = reply_length(self._buffer)
            except FTPFramingError:
                self._buffer = b""
                raise

            if length is not None:
                raw = self._buffer[:length]
                self._buffer = self._buffer[length:]
                return Response(raw[:3].decode("ascii"), raw, self._encoding)

            try:
                chunk = self._sock.recv(self._read_size)
            except OSError as e:
                received, self._buffer = self._buffer, b""
                raise FTPFramingError("read failed", received, e)

            if not chunk:
                received, self._buffer = self._buffer, b""
                if received:
                    raise FTPFramingError("connection closed mid-reply", received)
                raise FTPFramingError("connection closed by server")

            self._buffer += chunk
