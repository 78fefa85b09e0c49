"""Configuration module for ftpwire.

This module handles connection settings and credentials:
- ConnectionConfig: Validated connection settings dataclass
- SettingsManager: JSON-based settings persistence
- CredentialManager: Secure credential storage via keyring
- Paths: Platform data directory discovery
"""
