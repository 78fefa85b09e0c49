"""Passive mode negotiation and data connection handling.

The server advertises ``(h1,h2,h3,h4,p1,p2)`` in its 227 reply; the client
dials ``h1.h2.h3.h4`` on port ``p1 * 256 + p2``. Each data connection
carries exactly one transfer and is closed on every exit path.
"""

import logging
import re
import socket
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from ftpwire.ftp.codes import ResponseCode
from ftpwire.ftp.exceptions import (
    FTPAddressParseError,
    FTPConnectionError,
    FTPTimeoutError,
)
from ftpwire.ftp.executor import CommandExecutor

logger = logging.getLogger("ftpwire.passive")

_PASV_TUPLE = re.compile(rb"\((\d+),(\d+),(\d+),(\d+),(\d+),(\d+)\)")


@dataclass(frozen=True)
class DataAddress:
    """Host and port of a passive data connection."""
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def parse_pasv_address(response: bytes) -> DataAddress:
    """
    Extract the data connection address from a 227 reply.

    Args:
        response: Raw PASV reply

    Returns:
        DataAddress to dial

    Raises:
        FTPAddressParseError: If the tuple is absent or out of range
    """
    match = _PASV_TUPLE.search(response)
    if match is None:
        raise FTPAddressParseError(response)

    numbers = [int(group) for group in match.groups()]
    if any(n > 255 for n in numbers):
        raise FTPAddressParseError(response)

    host = ".".join(str(n) for n in numbers[:4])
    port = numbers[4] * 256 + numbers[5]
    return DataAddress(host, port)


@contextmanager
def data_channel(sock: socket.socket) -> Iterator[socket.socket]:
    """
    Scope a data connection to one block of work.

    The socket is closed exactly once when the block exits. If the block
    raised, a failure while closing is logged and the original error is
    the one that propagates.
    """
    try:
        yield sock
    except BaseException:
        try:
            sock.close()
        except OSError as close_error:
            logger.warning("Failed to close data connection: %s", close_error)
        raise
    sock.close()


class PassiveNegotiator:
    """Opens data connections with PASV."""

    def __init__(self, executor: CommandExecutor, trust_pasv_host: bool = True):
        """
        Initialize the negotiator.

        Args:
            executor: Executor bound to the control connection
            trust_pasv_host: Dial the advertised host. When False, the
                control connection's peer host is used with the advertised
                port (for servers behind NAT that advertise private addresses).
        """
        self._executor = executor
        self._trust_pasv_host = trust_pasv_host

    def request_address(self) -> DataAddress:
        """Send PASV and return the address the server is listening on."""
        response = self._executor.execute(ResponseCode.ENTERING_PASSIVE_MODE, "PASV")
        address = parse_pasv_address(response.raw)
        if not self._trust_pasv_host:
            peer_host = self._executor.sock.getpeername()[0]
            address = DataAddress(peer_host, address.port)
        return address

    def enter_passive_mode(self) -> socket.socket:
        """
        Negotiate and dial a new data connection.

        The caller owns the returned socket for one transfer.

        Raises:
            FTPProtocolError: If PASV is refused
            FTPAddressParseError: If the reply carries no address
            FTPConnectionError: If the data connection cannot be opened
        """
        address = self.request_address()
        timeout = self._executor.sock.gettimeout()
        logger.debug("Opening data connection to %s", address)
        try:
            return socket.create_connection((address.host, address.port), timeout=timeout)
        except socket.timeout:
            raise FTPTimeoutError(str(address), timeout)
        except OSError as e:
            raise FTPConnectionError(f"Failed to open data connection to {address}", e)
