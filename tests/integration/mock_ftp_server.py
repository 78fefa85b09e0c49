"""Mock FTP server for integration testing.

Uses pyftpdlib to run a local FTP server over a temporary directory.
"""

import tempfile
import threading
import time
from pathlib import Path
from typing import Optional

import pytest
from pyftpdlib.authorizers import DummyAuthorizer
from pyftpdlib.handlers import FTPHandler
from pyftpdlib.servers import FTPServer


class MockFTPServer:
    """
    Local FTP server serving a temporary directory.

    Usage:
        with MockFTPServer(port=2121) as server:
            # Connect to localhost:2121
            # server.root_dir contains the served files
            pass
    """

    DEFAULT_USER = "testuser"
    DEFAULT_PASS = "testpass"

    def __init__(
        self,
        port: int = 2121,
        username: str = DEFAULT_USER,
        password: str = DEFAULT_PASS,
    ):
        """
        Initialize the mock FTP server.

        Args:
            port: Port to listen on
            username: FTP username
            password: FTP password
        """
        self.port = port
        self.username = username
        self.password = password

        self._server: Optional[FTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._temp_dir: Optional[tempfile.TemporaryDirectory] = None
        self._root_dir: Optional[Path] = None

    @property
    def root_dir(self) -> Path:
        """Root directory of the served filesystem."""
        if self._root_dir is None:
            raise RuntimeError("Server not started")
        return self._root_dir

    @property
    def host(self) -> str:
        """Server host address."""
        return "127.0.0.1"

    def _create_files(self) -> None:
        """Create the initial served files."""
        root = self._root_dir

        pub = root / "pub"
        pub.mkdir()
        (pub / "readme.txt").write_text("hello from the server\n")
        (pub / "data.bin").write_bytes(bytes(range(256)) * 64)
        (root / "empty").mkdir()

    def start(self) -> None:
        """Start the FTP server in a background thread."""
        self._temp_dir = tempfile.TemporaryDirectory(prefix="ftpwire_test_")
        self._root_dir = Path(self._temp_dir.name)
        self._create_files()

        authorizer = DummyAuthorizer()
        authorizer.add_user(
            self.username,
            self.password,
            str(self._root_dir),
            perm="elradfmw"  # Full permissions
        )
        authorizer.add_anonymous(str(self._root_dir))

        handler = FTPHandler
        handler.authorizer = authorizer
        handler.passive_ports = range(60100, 60200)

        self._server = FTPServer((self.host, self.port), handler)

        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

        # Give server time to start
        time.sleep(0.2)

    def stop(self) -> None:
        """Stop the FTP server and clean up."""
        if self._server:
            self._server.close_all()

        if self._temp_dir:
            self._temp_dir.cleanup()

        self._server = None
        self._thread = None
        self._temp_dir = None
        self._root_dir = None

    def __enter__(self) -> "MockFTPServer":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()


@pytest.fixture
def ftp_server():
    """Pytest fixture providing a running mock FTP server."""
    server = MockFTPServer(port=21211)  # Non-standard port for tests
    server.start()
    yield server
    server.stop()
