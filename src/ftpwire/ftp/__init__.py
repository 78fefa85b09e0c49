"""FTP protocol engine for ftpwire.

This module drives the FTP control and data connections:
- framer: Reply framing for single- and multi-line replies
- executor: Command/response exchange with expected codes
- passive: PASV negotiation and scoped data connections
- transfer: Downloads, uploads and directory listings
- connection: Connection class with the high-level operations
- session: Connect and log in from stored configuration
- exceptions: FTP-specific error types
"""
