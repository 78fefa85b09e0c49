"""Session setup from stored configuration.

Combines ConnectionConfig and the keyring-backed CredentialManager to
produce a logged-in Connection.
"""

import logging
from typing import Optional

from ftpwire.config.credentials import CredentialManager
from ftpwire.config.settings import ConnectionConfig
from ftpwire.ftp.connection import Connection
from ftpwire.ftp.exceptions import FTPError
from ftpwire.ftp.wire_log import ProtocolLogger

logger = logging.getLogger("ftpwire.session")

ANONYMOUS_USER = "anonymous"
ANONYMOUS_PASSWORD = "anonymous@"


def resolve_password(
    config: ConnectionConfig,
    password: Optional[str] = None,
    credentials: Optional[CredentialManager] = None
) -> str:
    """
    Pick the password for a login.

    An explicit password wins, then one stored in the keyring, then the
    conventional anonymous password for the anonymous user.
    """
    if password is not None:
        return password
    if credentials is not None:
        stored = credentials.get_password(config.host, config.username)
        if stored is not None:
            return stored
    if config.username == ANONYMOUS_USER:
        return ANONYMOUS_PASSWORD
    return ""


def open_session(
    config: ConnectionConfig,
    password: Optional[str] = None,
    credentials: Optional[CredentialManager] = None,
    protocol_logger: Optional[ProtocolLogger] = None
) -> Connection:
    """
    Connect and log in.

    Args:
        config: Connection configuration
        password: Explicit password, overrides stored credentials
        credentials: Optional keyring access for stored passwords
        protocol_logger: Optional observer of raw control traffic

    Returns:
        An authenticated Connection

    Raises:
        FTPConnectionError: If the server cannot be reached
        FTPAuthenticationError: If login fails (the connection is closed)
    """
    connection = Connection.connect(
        config.host,
        config.port,
        timeout=config.timeout,
        protocol_logger=protocol_logger,
        encoding=config.encoding,
        trust_pasv_host=config.trust_pasv_host,
        blocksize=config.blocksize,
    )
    try:
        connection.login(config.username, resolve_password(config, password, credentials))
    except FTPError:
        logger.warning("Login to %s:%d failed", config.host, config.port)
        connection.close()
        raise
    return connection
