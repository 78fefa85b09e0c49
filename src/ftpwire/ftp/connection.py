"""FTP control connection and high-level operations for ftpwire.

Provides ConnectionState enum and the Connection class, which drives one
control connection through connect, login, file operations and teardown.
A Connection is not safe for concurrent use; use one per session.
"""

import logging
import socket
from enum import Enum
from typing import BinaryIO, List, Optional, Tuple

from ftpwire.ftp.codes import ResponseCode, StatusType, TransferType
from ftpwire.ftp.exceptions import (
    FTPAuthenticationError,
    FTPConnectionError,
    FTPError,
    FTPNotConnectedError,
    FTPProtocolError,
    FTPTimeoutError,
)
from ftpwire.ftp.executor import CommandExecutor, command_words
from ftpwire.ftp.passive import PassiveNegotiator
from ftpwire.ftp.transfer import BlockCallback, TransferEngine
from ftpwire.ftp.wire_log import ProtocolLogger

logger = logging.getLogger("ftpwire.connection")

FTP_PORT = 21


class ConnectionState(Enum):
    """FTP session state."""
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class Connection:
    """An FTP session over one control connection."""

    def __init__(
        self,
        sock: socket.socket,
        protocol_logger: Optional[ProtocolLogger] = None,
        encoding: str = "utf-8",
        trust_pasv_host: bool = True,
        blocksize: int = TransferEngine.BLOCK_SIZE
    ):
        """
        Wrap an open control socket. Use connect() or connect_on() instead
        of calling this directly; they also check the server greeting.

        Args:
            sock: Connected control socket, owned by the Connection from now on
            protocol_logger: Optional observer of raw control traffic
            encoding: Character set of the control connection
            trust_pasv_host: Dial the host advertised in PASV replies
            blocksize: Default block size for downloads and uploads
        """
        self._sock = sock
        self._executor = CommandExecutor(sock, protocol_logger, encoding)
        self._negotiator = PassiveNegotiator(self._executor, trust_pasv_host)
        self._transfers = TransferEngine(self._executor, self._negotiator)
        self._blocksize = blocksize
        self._state = ConnectionState.CONNECTED

    @classmethod
    def connect(
        cls,
        host: str,
        port: int = FTP_PORT,
        timeout: Optional[float] = None,
        protocol_logger: Optional[ProtocolLogger] = None,
        **kwargs
    ) -> "Connection":
        """
        Dial an FTP server and wait for its greeting.

        Args:
            host: Server host name or IPv4 address
            port: Server port
            timeout: Socket timeout in seconds for all later I/O (None blocks)
            protocol_logger: Optional observer of raw control traffic
            **kwargs: Passed on to the constructor

        Raises:
            FTPTimeoutError: If dialing timed out
            FTPConnectionError: If dialing failed or the greeting was refused
        """
        address = f"{host}:{port}"
        logger.info("Connecting to %s", address)
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except socket.timeout:
            raise FTPTimeoutError(address, timeout)
        except OSError as e:
            raise FTPConnectionError(f"Failed to connect to {address}", e)

        try:
            return cls.connect_on(sock, protocol_logger, **kwargs)
        except FTPError:
            sock.close()
            raise

    @classmethod
    def connect_on(
        cls,
        sock: socket.socket,
        protocol_logger: Optional[ProtocolLogger] = None,
        **kwargs
    ) -> "Connection":
        """
        Use an already connected socket as the control connection.

        This lets callers set socket options such as timeouts beforehand.
        On failure the socket is left open and still belongs to the caller.

        Raises:
            FTPConnectionError: If the greeting is missing or not 220
        """
        connection = cls(sock, protocol_logger, **kwargs)
        try:
            response = connection._executor.receive()
        except FTPError as e:
            raise FTPConnectionError("No greeting from FTP server", e)
        if response.code != ResponseCode.SERVICE_READY:
            raise FTPConnectionError(
                "FTP server refused the connection",
                FTPProtocolError("connect", response.raw, response.encoding)
            )
        logger.info("Connected: %s", response.text)
        return connection

    @property
    def state(self) -> ConnectionState:
        """Current session state."""
        return self._state

    @property
    def is_authenticated(self) -> bool:
        """True once login() has succeeded."""
        return self._state == ConnectionState.AUTHENTICATED

    @property
    def transfer_type(self) -> TransferType:
        """Representation type last set on the server."""
        return self._transfers.transfer_type

    def _require_open(self, operation: str) -> None:
        if self._state == ConnectionState.CLOSED:
            raise FTPNotConnectedError(operation)

    def _execute(self, expected: ResponseCode, *words: str):
        self._require_open(words[0])
        return self._executor.execute(expected, *words)

    def close(self) -> None:
        """
        Close the control socket.

        Does not send QUIT; call quit() first for an orderly shutdown.
        Safe to call more than once.

        Raises:
            FTPConnectionError: If the socket reported an error while closing
        """
        if self._state == ConnectionState.CLOSED:
            return
        self._state = ConnectionState.CLOSED
        try:
            self._sock.close()
        except OSError as e:
            raise FTPConnectionError("Failed to close control connection", e)
        logger.info("Control connection closed")

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._state != ConnectionState.CLOSED:
            try:
                self.quit()
            except FTPError as e:
                logger.debug("QUIT failed during close: %s", e)
        if exc_type is None:
            self.close()
            return
        try:
            self.close()
        except FTPConnectionError as e:
            logger.warning("%s while handling %s", e, exc_type.__name__)

    def login(self, user: str, password: str) -> None:
        """
        Authenticate with USER and, if requested, PASS.

        Raises:
            FTPAuthenticationError: If the server rejects either command
        """
        self._require_open("USER")
        response = self._executor.send_and_receive("USER", user)
        if response.code == ResponseCode.NEED_PASSWORD:
            response = self._executor.send_and_receive("PASS", password)
            if response.code != ResponseCode.USER_LOGGED_IN:
                raise FTPAuthenticationError(user, "PASS", response.raw, response.encoding)
        elif response.code != ResponseCode.USER_LOGGED_IN:
            raise FTPAuthenticationError(user, "USER", response.raw, response.encoding)

        self._state = ConnectionState.AUTHENTICATED
        logger.info("Logged in as %s", user)

    def quit(self) -> None:
        """Ask the server to end the session. The socket stays open until close()."""
        self._execute(ResponseCode.CLOSING_CONTROL_CONNECTION, "QUIT")

    def change_working_dir_to(self, path: str) -> None:
        """Change the remote working directory."""
        self._execute(ResponseCode.FILE_ACTION_COMPLETED, "CWD", path)

    def print_working_directory(self) -> str:
        """Return the remote working directory."""
        return self._execute(ResponseCode.PATHNAME_CREATED, "PWD").quoted_path()

    def make_directory(self, path: str) -> str:
        """Create a remote directory and return the path the server reports."""
        return self._execute(ResponseCode.PATHNAME_CREATED, "MKD", path).quoted_path()

    def remove_directory(self, path: str) -> None:
        """Remove an empty remote directory."""
        self._execute(ResponseCode.FILE_ACTION_COMPLETED, "RMD", path)

    def delete(self, path: str) -> None:
        """Delete a remote file."""
        self._execute(ResponseCode.FILE_ACTION_COMPLETED, "DELE", path)

    def rename(self, from_path: str, to_path: str) -> None:
        """Rename a remote file or directory with RNFR/RNTO."""
        self._execute(ResponseCode.FILE_ACTION_PENDING, "RNFR", from_path)
        self._execute(ResponseCode.FILE_ACTION_COMPLETED, "RNTO", to_path)

    def size(self, path: str) -> int:
        """
        Return the size in bytes of a remote file.

        Switches to binary mode first since byte counts depend on it.

        Raises:
            FTPProtocolError: If SIZE is refused or the reply is not a number
        """
        self._require_open("SIZE")
        self._transfers.set_transfer_type(TransferType.BINARY)
        response = self._executor.execute(ResponseCode.FILE_STATUS, "SIZE", path)
        try:
            return int(response.text.strip())
        except ValueError:
            raise FTPProtocolError("SIZE", response.raw, response.encoding)

    def no_operation(self) -> None:
        """Send NOOP, e.g. to keep an idle session alive."""
        self._execute(ResponseCode.COMMAND_OK, "NOOP")

    def system(self) -> str:
        """Return the server's system type as reported by SYST."""
        return self._execute(ResponseCode.SYSTEM_NAME, "SYST").text

    def status(self) -> Tuple[StatusType, str]:
        """Return the general server status."""
        return self.status_of("")

    def status_of(self, path: str) -> Tuple[StatusType, str]:
        """
        Return STAT information for a path.

        Raises:
            FTPProtocolError: If the reply is not a 211, 212 or 213
        """
        self._require_open("STAT")
        response = self._executor.send_and_receive(*command_words("STAT", path))
        try:
            status_type = StatusType.from_code(response.code)
        except KeyError:
            raise FTPProtocolError("STAT", response.raw, response.encoding)
        return status_type, response.text

    def abort(self) -> None:
        """
        Abort the previous data transfer.

        Servers may answer 426 for the aborted transfer followed by a
        separate 226; both replies are consumed.

        Raises:
            FTPProtocolError: If the reply sequence is not recognized
        """
        self._require_open("ABOR")
        response = self._executor.send_and_receive("ABOR")
        if response.code in (
            ResponseCode.NO_TRANSFER_IN_PROGRESS,
            ResponseCode.CLOSING_DATA_CONNECTION,
        ):
            return
        if response.code == ResponseCode.TRANSFER_ABORTED:
            response = self._executor.receive()
            if response.code == ResponseCode.CLOSING_DATA_CONNECTION:
                return
        raise FTPProtocolError("ABOR", response.raw, response.encoding)

    def set_ascii_transfer(self) -> None:
        """Switch to ASCII mode (TYPE A) unless already set."""
        self._require_open("TYPE")
        self._transfers.set_transfer_type(TransferType.ASCII)

    def set_binary_transfer(self) -> None:
        """Switch to binary mode (TYPE I) unless already set."""
        self._require_open("TYPE")
        self._transfers.set_transfer_type(TransferType.BINARY)

    def download(
        self,
        path: str,
        destination: BinaryIO,
        blocksize: Optional[int] = None,
        callback: Optional[BlockCallback] = None
    ) -> int:
        """
        Download a remote file in binary mode.

        The destination may hold a partial file if an error is raised.

        Returns:
            Number of bytes written
        """
        self._require_open("RETR")
        return self._transfers.download(path, destination, blocksize or self._blocksize, callback)

    def upload(
        self,
        source: BinaryIO,
        path: str,
        blocksize: Optional[int] = None,
        callback: Optional[BlockCallback] = None
    ) -> int:
        """
        Upload a binary source to a remote path, replacing any existing file.

        Returns:
            Number of bytes sent
        """
        self._require_open("STOR")
        return self._transfers.upload(source, path, blocksize or self._blocksize, callback)

    def append(
        self,
        source: BinaryIO,
        path: str,
        blocksize: Optional[int] = None,
        callback: Optional[BlockCallback] = None
    ) -> int:
        """Append a binary source to a remote file, creating it if missing."""
        self._require_open("APPE")
        return self._transfers.append(source, path, blocksize or self._blocksize, callback)

    def list_dir(self, path: str = "") -> str:
        """Return the server's raw LIST output."""
        self._require_open("LIST")
        return self._transfers.list_dir(path)

    def name_list(self, path: str = "") -> List[str]:
        """Return the names in a remote directory (NLST)."""
        self._require_open("NLST")
        return self._transfers.name_list(path)


def connect(
    host: str,
    port: int = FTP_PORT,
    timeout: Optional[float] = None,
    protocol_logger: Optional[ProtocolLogger] = None,
    **kwargs
) -> Connection:
    """Dial an FTP server. See Connection.connect."""
    return Connection.connect(host, port, timeout, protocol_logger, **kwargs)


def connect_on(
    sock: socket.socket,
    protocol_logger: Optional[ProtocolLogger] = None,
    **kwargs
) -> Connection:
    """Adopt a connected socket. See Connection.connect_on."""
    return Connection.connect_on(sock, protocol_logger, **kwargs)
