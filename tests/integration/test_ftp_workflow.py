"""Integration tests for the FTP client against a real server.

Runs connect, login, navigation, transfers and teardown against a
pyftpdlib server on localhost.
"""

import io
import pytest

from ftpwire.config.settings import ConnectionConfig
from ftpwire.ftp.codes import StatusType, TransferType
from ftpwire.ftp.connection import Connection, ConnectionState
from ftpwire.ftp.exceptions import FTPAuthenticationError, FTPConnectionError, FTPProtocolError
from ftpwire.ftp.session import open_session
from ftpwire.ftp.wire_log import ProtocolLogger

from .mock_ftp_server import ftp_server  # noqa: F401


class RecordingLogger(ProtocolLogger):
    """Collects control traffic for assertions."""

    def __init__(self):
        self.sent = []
        self.received = []

    def sent_ftp(self, message, error):
        self.sent.append(message)

    def received_ftp(self, response, error):
        self.received.append(response)


@pytest.fixture
def ftp_session(ftp_server):
    """Logged-in connection to the mock server."""
    connection = Connection.connect(ftp_server.host, ftp_server.port, timeout=10)
    connection.login(ftp_server.username, ftp_server.password)
    yield connection
    connection.close()


class TestConnectionWorkflow:
    """Connect, login and teardown."""

    def test_connect_login_quit(self, ftp_server):
        recorder = RecordingLogger()
        connection = Connection.connect(
            ftp_server.host, ftp_server.port, timeout=10, protocol_logger=recorder
        )
        assert connection.state == ConnectionState.CONNECTED

        connection.login(ftp_server.username, ftp_server.password)
        assert connection.is_authenticated is True

        connection.quit()
        connection.close()

        assert connection.state == ConnectionState.CLOSED
        assert recorder.sent[:2] == [
            f"USER {ftp_server.username}\r\n".encode(),
            f"PASS {ftp_server.password}\r\n".encode(),
        ]
        assert recorder.received[0].startswith(b"220")
        assert recorder.received[-1].startswith(b"221")

    def test_wrong_password(self, ftp_server):
        connection = Connection.connect(ftp_server.host, ftp_server.port, timeout=10)

        with pytest.raises(FTPAuthenticationError):
            connection.login(ftp_server.username, "wrongpassword")

        connection.close()

    def test_connection_refused(self):
        with pytest.raises(FTPConnectionError):
            Connection.connect("127.0.0.1", 21299, timeout=5)

    def test_open_session(self, ftp_server):
        config = ConnectionConfig(host=ftp_server.host, port=ftp_server.port, username=ftp_server.username)

        with open_session(config, password=ftp_server.password) as connection:
            assert connection.is_authenticated is True
            assert connection.print_working_directory() == "/"

        assert connection.state == ConnectionState.CLOSED

    def test_anonymous_session(self, ftp_server):
        config = ConnectionConfig(host=ftp_server.host, port=ftp_server.port)

        with open_session(config) as connection:
            assert set(connection.name_list("/pub")) == {"data.bin", "readme.txt"}


class TestNavigation:
    """Directory and status commands."""

    def test_directories(self, ftp_session, ftp_server):
        assert ftp_session.print_working_directory() == "/"

        assert ftp_session.make_directory("/incoming") == "/incoming"
        assert (ftp_server.root_dir / "incoming").is_dir()

        ftp_session.change_working_dir_to("/incoming")
        assert ftp_session.print_working_directory() == "/incoming"

        ftp_session.change_working_dir_to("/")
        ftp_session.remove_directory("/incoming")
        assert not (ftp_server.root_dir / "incoming").exists()

    def test_change_to_missing_directory(self, ftp_session):
        with pytest.raises(FTPProtocolError) as exc_info:
            ftp_session.change_working_dir_to("/does-not-exist")

        assert exc_info.value.command == "CWD"
        # Session is still usable afterwards
        ftp_session.no_operation()

    def test_system_and_status(self, ftp_session):
        assert ftp_session.system()

        status_type, text = ftp_session.status()
        assert status_type == StatusType.GENERAL
        assert text

    def test_size(self, ftp_session, ftp_server):
        expected = (ftp_server.root_dir / "pub" / "data.bin").stat().st_size

        assert ftp_session.size("/pub/data.bin") == expected
        assert ftp_session.transfer_type == TransferType.BINARY

    def test_abort_without_transfer(self, ftp_session):
        ftp_session.abort()
        ftp_session.no_operation()


class TestTransfers:
    """Uploads, downloads and listings over passive data connections."""

    def test_download(self, ftp_session, ftp_server):
        sink = io.BytesIO()

        count = ftp_session.download("/pub/data.bin", sink)

        expected = (ftp_server.root_dir / "pub" / "data.bin").read_bytes()
        assert sink.getvalue() == expected
        assert count == len(expected)

    def test_upload_append_rename_delete(self, ftp_session, ftp_server):
        ftp_session.upload(io.BytesIO(b"first "), "/upload.txt")
        ftp_session.append(io.BytesIO(b"second"), "/upload.txt")
        assert (ftp_server.root_dir / "upload.txt").read_bytes() == b"first second"

        ftp_session.rename("/upload.txt", "/renamed.txt")
        assert (ftp_server.root_dir / "renamed.txt").exists()

        ftp_session.delete("/renamed.txt")
        assert not (ftp_server.root_dir / "renamed.txt").exists()

    def test_download_missing_file(self, ftp_session):
        with pytest.raises(FTPProtocolError) as exc_info:
            ftp_session.download("/pub/missing.bin", io.BytesIO())

        assert exc_info.value.command == "RETR"
        ftp_session.no_operation()

    def test_listings(self, ftp_session):
        names = ftp_session.name_list("/pub")
        assert sorted(names) == ["data.bin", "readme.txt"]
        assert ftp_session.transfer_type == TransferType.ASCII

        listing = ftp_session.list_dir("/pub")
        assert "readme.txt" in listing
        assert "data.bin" in listing

    def test_empty_directory_listing(self, ftp_session):
        assert ftp_session.name_list("/empty") == []

    def test_many_transfers_on_one_session(self, ftp_session):
        for i in range(5):
            ftp_session.upload(io.BytesIO(f"file {i}".encode()), f"/f{i}.txt")

        for i in range(5):
            sink = io.BytesIO()
            ftp_session.download(f"/f{i}.txt", sink)
            assert sink.getvalue() == f"file {i}".encode()
