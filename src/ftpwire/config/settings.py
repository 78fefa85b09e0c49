"""Connection settings for ftpwire.

Provides the ConnectionConfig dataclass and SettingsManager for
persisting it between sessions.
"""

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from ftpwire.config.paths import get_settings_path
from ftpwire.utils.validators import validate_host, validate_port, validate_timeout


@dataclass
class ConnectionConfig:
    """FTP connection configuration."""
    host: str
    port: int = 21
    username: str = "anonymous"
    timeout: float = 30
    encoding: str = "utf-8"
    trust_pasv_host: bool = True
    blocksize: int = 8192

    def __post_init__(self):
        """Validate configuration after initialization."""
        for is_valid, error in (
            validate_host(self.host),
            validate_port(self.port),
            validate_timeout(self.timeout),
        ):
            if not is_valid:
                raise ValueError(error)
        if self.blocksize <= 0:
            raise ValueError(f"Block size must be positive, got {self.blocksize}")

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ConnectionConfig":
        """Create settings from dictionary, ignoring unknown keys."""
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)


class SettingsManager:
    """Manages connection settings persistence."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            config_path: Optional custom path, defaults to platform standard
        """
        self._config_path = config_path or get_settings_path()

    @property
    def config_path(self) -> Path:
        """Path to settings file."""
        return self._config_path

    def load(self) -> Optional[ConnectionConfig]:
        """
        Load the saved connection settings.

        Returns:
            ConnectionConfig, or None if no valid settings are saved
        """
        if not self._config_path.exists():
            return None
        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return ConnectionConfig.from_dict(data)
        except (json.JSONDecodeError, IOError, TypeError, ValueError):
            # Invalid or unreadable file
            return None

    def save(self, config: ConnectionConfig) -> None:
        """
        Persist settings to disk.

        Args:
            config: Settings to save
        """
        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self._config_path, "w", encoding="utf-8") as f:
            json.dump(config.to_dict(), f, indent=2)

    def reset(self) -> None:
        """Remove saved settings."""
        if self._config_path.exists():
            self._config_path.unlink()
