"""
Configuration models and data structures.

This module defines the configuration models used throughout the application,
providing type safety and validation for configuration values.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    static_directory: Optional[str] = "htdocs"
    index_template: Optional[str] = None


@dataclass
class TransferConfig:
    """Session and key configuration."""
    key_charset: str = "abcdefghijklmnopqrstuvwxyz0123456789"
    key_length: int = 10
    key_attempts: int = 3
    timeout_minutes: float = 3.0
    check_minutes: float = 3.0
    file_field: str = "file"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_minutes * 60.0

    @property
    def check_seconds(self) -> float:
        return self.check_minutes * 60.0


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_directory: str = "log"
    log_file: str = "http.log"
    max_file_size: str = "1 GB"
    backup_count: int = 5
    console_enabled: bool = True
    file_enabled: bool = True


@dataclass
class ApplicationConfig:
    """Main application configuration."""

    # Basic application settings
    name: str = "Nethermes"
    version: str = "0.1.0"
    debug: bool = False

    # Component configurations
    server: ServerConfig = field(default_factory=ServerConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    config_file_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        self._validate_ports()
        self._validate_keys()
        self._validate_timeouts()

    def _validate_ports(self) -> None:
        """Validate port numbers."""
        if not (1 <= self.server.port <= 65535):
            raise ValueError(
                f"Server port must be between 1 and 65535, got {self.server.port}")

    def _validate_keys(self) -> None:
        """Validate key alphabet and sizes."""
        charset = self.transfer.key_charset
        if not charset:
            raise ValueError("Key charset cannot be empty")
        if len(set(charset)) != len(charset):
            raise ValueError(f"Key charset contains duplicate characters: {charset!r}")
        if self.transfer.key_length <= 0:
            raise ValueError(
                f"Key length must be positive, got {self.transfer.key_length}")
        if self.transfer.key_attempts <= 0:
            raise ValueError(
                f"Key attempts must be positive, got {self.transfer.key_attempts}")
        if not self.transfer.file_field:
            raise ValueError("File field name cannot be empty")

    def _validate_timeouts(self) -> None:
        """Validate timeout values."""
        timeouts = [
            ("Upload timeout", self.transfer.timeout_minutes),
            ("Reaper interval", self.transfer.check_minutes),
        ]

        for name, timeout in timeouts:
            if timeout <= 0:
                raise ValueError(f"{name} must be positive, got {timeout}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """Create configuration from dictionary."""
        return cls(
            name=data.get('name', 'Nethermes'),
            version=data.get('version', '0.1.0'),
            debug=data.get('debug', False),
            server=ServerConfig(**data.get('server', {})),
            transfer=TransferConfig(**data.get('transfer', {})),
            logging=LoggingConfig(**data.get('logging', {})),
            config_file_path=data.get('config_file_path')
        )
