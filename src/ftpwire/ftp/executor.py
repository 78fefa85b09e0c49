"""Command/response exchange over the FTP control connection.

Every higher-level operation goes through CommandExecutor so the control
connection never has more than one command waiting for its reply.
"""

import socket
from typing import Optional, Tuple

from ftpwire.ftp.codes import ResponseCode
from ftpwire.ftp.exceptions import (
    FTPConnectionError,
    FTPFramingError,
    FTPProtocolError,
)
from ftpwire.ftp.framer import ResponseReader
from ftpwire.ftp.response import Response
from ftpwire.ftp.wire_log import NullProtocolLogger, ProtocolLogger


def command_words(command: str, argument: str = "") -> Tuple[str, ...]:
    """Build the word list for a command whose argument may be omitted."""
    if argument:
        return (command, argument)
    return (command,)


class CommandExecutor:
    """Sends commands and reads their replies on one control socket."""

    def __init__(
        self,
        sock: socket.socket,
        protocol_logger: Optional[ProtocolLogger] = None,
        encoding: str = "utf-8"
    ):
        """
        Initialize the executor.

        Args:
            sock: Connected control socket
            protocol_logger: Optional observer of raw traffic
            encoding: Character set used for commands and replies
        """
        self._sock = sock
        self._encoding = encoding
        self._reader = ResponseReader(sock, encoding)
        self._protocol_logger = protocol_logger or NullProtocolLogger()

    @property
    def sock(self) -> socket.socket:
        """The underlying control socket."""
        return self._sock

    @property
    def encoding(self) -> str:
        """Character set of the control connection."""
        return self._encoding

    def send(self, *words: str) -> None:
        """
        Write one command line to the control connection.

        Args:
            *words: Command name followed by its arguments

        Raises:
            ValueError: If an argument contains CR or LF
            FTPConnectionError: If the write fails
        """
        for word in words:
            if "\r" in word or "\n" in word:
                raise ValueError("an illegal newline character should not be contained")

        message = (" ".join(words) + "\r\n").encode(self._encoding)
        try:
            self._sock.sendall(message)
        except OSError as e:
            self._protocol_logger.sent_ftp(message, e)
            raise FTPConnectionError(f"Failed to send {words[0]} command", e)
        self._protocol_logger.sent_ftp(message, None)

    def receive(self) -> Response:
        """
        Read the next complete reply.

        Raises:
            FTPFramingError: If no well-formed reply could be read
        """
        try:
            response = self._reader.read_response()
        except FTPFramingError as e:
            self._protocol_logger.received_ftp(e.received, e)
            raise
        self._protocol_logger.received_ftp(response.raw, None)
        return response

    def send_and_receive(self, *words: str) -> Response:
        """Send a command and return its reply whatever the code."""
        self.send(*words)
        return self.receive()

    def execute(self, expected: ResponseCode, *words: str) -> Response:
        """
        Send a command and require a specific reply code.

        Args:
            expected: Code that signals success
            *words: Command name followed by its arguments

        Returns:
            The matching reply

        Raises:
            FTPProtocolError: If the server answered with another code
        """
        response = self.send_and_receive(*words)
        if response.code != expected:
            raise FTPProtocolError(words[0], response.raw, self.encoding)
        return response
