"""Data transfers over passive connections.

Each transfer opens one data connection, issues the transfer command on
the control connection, moves the bytes, closes the data connection and
then reads the server's final verdict.
"""

import io
import logging
import socket
from typing import BinaryIO, Callable, List, Optional

from ftpwire.ftp.codes import ResponseCode, TransferType, is_completion, is_preliminary
from ftpwire.ftp.exceptions import FTPError, FTPProtocolError, FTPTransferError
from ftpwire.ftp.executor import CommandExecutor, command_words
from ftpwire.ftp.passive import PassiveNegotiator, data_channel

logger = logging.getLogger("ftpwire.transfer")

# Type alias for per-block progress callback
BlockCallback = Callable[[bytes], None]


def parse_name_list(data: str) -> List[str]:
    """Split NLST output into names, dropping the empty entry after the last line break."""
    lines = data.replace("\r\n", "\n").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


class TransferEngine:
    """Runs single transfers and tracks the TYPE set on the server."""

    # Block size for data connection reads and writes (8KB)
    BLOCK_SIZE = 8192

    def __init__(self, executor: CommandExecutor, negotiator: PassiveNegotiator):
        self._executor = executor
        self._negotiator = negotiator
        self._transfer_type = TransferType.ASCII

    @property
    def transfer_type(self) -> TransferType:
        """Representation type last confirmed by the server."""
        return self._transfer_type

    def set_transfer_type(self, transfer_type: TransferType) -> None:
        """Send TYPE unless the server is already in the requested mode."""
        if self._transfer_type == transfer_type:
            return
        self._executor.execute(ResponseCode.COMMAND_OK, "TYPE", transfer_type.value)
        self._transfer_type = transfer_type

    def download(
        self,
        path: str,
        destination: BinaryIO,
        blocksize: int = BLOCK_SIZE,
        callback: Optional[BlockCallback] = None
    ) -> int:
        """
        Retrieve a remote file into a writable binary sink.

        Args:
            path: Remote file path
            destination: Object with a ``write(bytes)`` method
            blocksize: Maximum bytes per read from the data connection
            callback: Optional callable invoked with each block received

        Returns:
            Number of bytes written to the destination

        Raises:
            FTPProtocolError: If the server refuses RETR
            FTPTransferError: If the copy fails or the transfer is not confirmed
        """
        def copy(data_sock: socket.socket) -> int:
            received = 0
            while True:
                block = data_sock.recv(blocksize)
                if not block:
                    return received
                destination.write(block)
                received += len(block)
                if callback:
                    callback(block)

        self.set_transfer_type(TransferType.BINARY)
        return self._transfer("RETR", path, copy)

    def upload(
        self,
        source: BinaryIO,
        path: str,
        blocksize: int = BLOCK_SIZE,
        callback: Optional[BlockCallback] = None
    ) -> int:
        """Store a readable binary source as a remote file (STOR)."""
        return self._store("STOR", source, path, blocksize, callback)

    def append(
        self,
        source: BinaryIO,
        path: str,
        blocksize: int = BLOCK_SIZE,
        callback: Optional[BlockCallback] = None
    ) -> int:
        """Append a readable binary source to a remote file (APPE)."""
        return self._store("APPE", source, path, blocksize, callback)

    def list_dir(self, path: str = "") -> str:
        """Return the raw LIST output for a path (or the working directory)."""
        return self._read_listing("LIST", path)

    def name_list(self, path: str = "") -> List[str]:
        """Return the names reported by NLST in server order."""
        return parse_name_list(self._read_listing("NLST", path))

    def _store(
        self,
        command: str,
        source: BinaryIO,
        path: str,
        blocksize: int,
        callback: Optional[BlockCallback]
    ) -> int:
        def copy(data_sock: socket.socket) -> int:
            sent = 0
            while True:
                block = source.read(blocksize)
                if not block:
                    return sent
                data_sock.sendall(block)
                sent += len(block)
                if callback:
                    callback(block)

        self.set_transfer_type(TransferType.BINARY)
        return self._transfer(command, path, copy)

    def _read_listing(self, command: str, path: str) -> str:
        buffer = io.BytesIO()

        def copy(data_sock: socket.socket) -> int:
            while True:
                block = data_sock.recv(self.BLOCK_SIZE)
                if not block:
                    return buffer.tell()
                buffer.write(block)

        self.set_transfer_type(TransferType.ASCII)
        self._transfer(command, path, copy)
        return buffer.getvalue().decode(self._executor.encoding, errors="replace")

    def _transfer(
        self,
        command: str,
        path: str,
        copy: Callable[[socket.socket], int]
    ) -> int:
        """
        Run one command over a fresh data connection.

        The data connection is closed before the final reply is read, and
        also when the server refuses the command or the copy fails. A failed
        copy still consumes the final reply so the next command gets its own.
        """
        data_sock = self._negotiator.enter_passive_mode()
        try:
            with data_channel(data_sock):
                response = self._executor.send_and_receive(*command_words(command, path))
                if not is_preliminary(response.code):
                    raise FTPProtocolError(command, response.raw, response.encoding)
                transferred = copy(data_sock)
        except OSError as e:
            self._discard_final_reply(command)
            raise FTPTransferError(command, path, e)

        response = self._executor.receive()
        if not is_completion(response.code):
            raise FTPTransferError(command, path, response=response.raw, encoding=response.encoding)

        logger.debug("%s %s: %d bytes", command, path, transferred)
        return transferred

    def _discard_final_reply(self, command: str) -> None:
        try:
            response = self._executor.receive()
        except FTPError as e:
            logger.warning("No final reply after failed %s: %s", command, e)
            return
        logger.debug("Failed %s closed by server: %s", command, response)
