"""Unit tests for passive mode negotiation and data channel scoping."""

import socket
import pytest
from unittest.mock import MagicMock, patch

from ftpwire.ftp.exceptions import (
    FTPAddressParseError,
    FTPConnectionError,
    FTPProtocolError,
    FTPTimeoutError,
)
from ftpwire.ftp.executor import CommandExecutor
from ftpwire.ftp.passive import DataAddress, PassiveNegotiator, data_channel, parse_pasv_address

from tests.conftest import make_socket, sent_lines

PASV_REPLY = b"227 Entering Passive Mode (127,0,0,1,200,13).\r\n"


class TestParsePasvAddress:
    """Tests for parse_pasv_address."""

    def test_address_and_port(self):
        """Tuple is converted into host and p1 * 256 + p2."""
        address = parse_pasv_address(PASV_REPLY)

        assert address == DataAddress("127.0.0.1", 51213)
        assert str(address) == "127.0.0.1:51213"

    def test_tuple_missing(self):
        """Reply without a tuple cannot be used."""
        with pytest.raises(FTPAddressParseError) as exc_info:
            parse_pasv_address(b"227 Entering Passive Mode\r\n")

        assert isinstance(exc_info.value, FTPProtocolError)

    def test_value_out_of_range(self):
        """Tuple values above 255 are rejected."""
        with pytest.raises(FTPAddressParseError):
            parse_pasv_address(b"227 Entering Passive Mode (127,0,0,1,300,13).\r\n")


class TestDataChannel:
    """Tests for the data_channel context manager."""

    def test_closed_after_success(self):
        """Socket is closed once on normal exit."""
        sock = MagicMock()

        with data_channel(sock) as channel:
            assert channel is sock

        sock.close.assert_called_once()

    def test_closed_after_error(self):
        """Socket is closed once and the block's error propagates."""
        sock = MagicMock()

        with pytest.raises(RuntimeError, match="copy failed"):
            with data_channel(sock):
                raise RuntimeError("copy failed")

        sock.close.assert_called_once()

    def test_close_error_does_not_mask_original(self):
        """A failing close never replaces the error from the block."""
        sock = MagicMock()
        sock.close.side_effect = OSError("close failed")

        with pytest.raises(RuntimeError, match="copy failed"):
            with data_channel(sock):
                raise RuntimeError("copy failed")

        sock.close.assert_called_once()

    def test_close_error_after_success_propagates(self):
        """Without an earlier error, a failing close is reported."""
        sock = MagicMock()
        sock.close.side_effect = OSError("close failed")

        with pytest.raises(OSError, match="close failed"):
            with data_channel(sock):
                pass


class TestPassiveNegotiator:
    """Tests for PassiveNegotiator."""

    @patch("ftpwire.ftp.passive.socket.create_connection")
    def test_enter_passive_mode(self, mock_create_connection):
        """PASV is sent and the advertised address dialed."""
        data_sock = MagicMock()
        mock_create_connection.return_value = data_sock
        control = make_socket(PASV_REPLY)

        result = PassiveNegotiator(CommandExecutor(control)).enter_passive_mode()

        assert result is data_sock
        assert sent_lines(control) == [b"PASV\r\n"]
        mock_create_connection.assert_called_once_with(("127.0.0.1", 51213), timeout=10.0)

    @patch("ftpwire.ftp.passive.socket.create_connection")
    def test_untrusted_pasv_host_uses_peer(self, mock_create_connection):
        """Control peer host replaces the advertised one when not trusted."""
        control = make_socket(b"227 Entering Passive Mode (10,0,0,5,4,1).\r\n")
        control.getpeername.return_value = ("203.0.113.7", 21)

        PassiveNegotiator(CommandExecutor(control), trust_pasv_host=False).enter_passive_mode()

        mock_create_connection.assert_called_once_with(("203.0.113.7", 1025), timeout=10.0)

    def test_pasv_refused(self):
        """Non-227 reply is a protocol error naming PASV."""
        control = make_socket(b"500 PASV not understood\r\n")

        with pytest.raises(FTPProtocolError) as exc_info:
            PassiveNegotiator(CommandExecutor(control)).enter_passive_mode()

        assert exc_info.value.command == "PASV"

    @patch("ftpwire.ftp.passive.socket.create_connection")
    def test_dial_failure(self, mock_create_connection):
        """Dial errors are reported as connection errors."""
        mock_create_connection.side_effect = ConnectionRefusedError("refused")
        control = make_socket(PASV_REPLY)

        with pytest.raises(FTPConnectionError, match="127.0.0.1:51213"):
            PassiveNegotiator(CommandExecutor(control)).enter_passive_mode()

    @patch("ftpwire.ftp.passive.socket.create_connection")
    def test_dial_timeout(self, mock_create_connection):
        """Dial timeouts are reported as timeout errors."""
        mock_create_connection.side_effect = socket.timeout("timed out")
        control = make_socket(PASV_REPLY)

        with pytest.raises(FTPTimeoutError):
            PassiveNegotiator(CommandExecutor(control)).enter_passive_mode()
