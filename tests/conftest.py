"""Shared test helpers for ftpwire tests."""

import socket
from typing import List
from unittest.mock import MagicMock


# Test constants
TEST_FTP_HOST = "127.0.0.1"

GREETING = b"220 Service ready for new user.\r\n"


def make_socket(*chunks: bytes) -> MagicMock:
    """Socket mock whose recv() returns the given chunks, then EOF."""
    sock = MagicMock(spec=socket.socket)
    sock.recv.side_effect = list(chunks) + [b""]
    sock.gettimeout.return_value = 10.0
    sock.getpeername.return_value = (TEST_FTP_HOST, 21)
    return sock


def sent_lines(sock: MagicMock) -> List[bytes]:
    """All byte strings written with sendall(), in order."""
    return [c.args[0] for c in sock.sendall.call_args_list]
