"""Configuration schema dataclasses for git-remote-s3.

This module defines all configuration options as typed dataclasses,
providing a single source of truth for default values and types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_LOG_FORMAT = "git-remote-s3: %(levelname)s - %(name)s - %(message)s"


@dataclass
class LoggingConfig:
    """Logging configuration.

    Log output always goes to stderr or a file; stdout carries the
    remote-helper protocol.
    """

    level: str = "WARNING"
    format: str = DEFAULT_LOG_FORMAT
    file: Optional[str] = None
    console: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "level": self.level,
            "format": self.format,
            "file": self.file,
            "console": self.console,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggingConfig:
        """Create from dictionary."""
        return cls(
            level=data.get("level", "WARNING"),
            format=data.get("format", DEFAULT_LOG_FORMAT),
            file=data.get("file"),
            console=data.get("console", True),
        )


@dataclass
class S3StorageConfig:
    """S3/MinIO transport settings."""

    # Scheme used for endpoints given without one (localhost:9000)
    endpoint_scheme: str = "https"
    # Prepended to every key; empty keeps objects at the bucket root
    prefix: str = ""

    # botocore retry and timeout policy
    max_attempts: int = 3
    connect_timeout: float = 10
    read_timeout: float = 60

    # Credentials (prefer profiles or environment variables for secrets)
    access_key: Optional[str] = None
    secret_key: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.connect_timeout <= 0 or self.read_timeout <= 0:
            raise ValueError("timeouts must be positive")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (excludes secrets)."""
        return {
            "endpoint_scheme": self.endpoint_scheme,
            "prefix": self.prefix,
            "max_attempts": self.max_attempts,
            "connect_timeout": self.connect_timeout,
            "read_timeout": self.read_timeout,
            # Intentionally exclude access_key and secret_key
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> S3StorageConfig:
        """Create from dictionary."""
        return cls(
            endpoint_scheme=data.get("endpoint_scheme", "https"),
            prefix=data.get("prefix", ""),
            max_attempts=data.get("max_attempts", 3),
            connect_timeout=data.get("connect_timeout", 10),
            read_timeout=data.get("read_timeout", 60),
            access_key=data.get("access_key"),
            secret_key=data.get("secret_key"),
        )


@dataclass
class PushConfig:
    """Push behaviour."""

    # Write refs with a conditional put on the previously read version
    compare_and_swap: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"compare_and_swap": self.compare_and_swap}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PushConfig:
        """Create from dictionary."""
        return cls(compare_and_swap=data.get("compare_and_swap", False))


@dataclass
class TransferConfig:
    """Transfer reporting."""

    progress: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"progress": self.progress}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransferConfig:
        """Create from dictionary."""
        return cls(progress=data.get("progress", False))


@dataclass
class HelperConfig:
    """Main configuration container for git-remote-s3.

    Configuration is loaded from multiple sources with the following priority:
    1. Programmatic (highest) - Direct API calls
    2. Environment Variables - GIT_REMOTE_S3_* prefixed
    3. Repository Config - <GIT_DIR>/remote-s3.toml
    4. User Config - ~/.config/git-remote-s3/config.toml
    5. Defaults (lowest) - Built-in defaults
    """

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    s3: S3StorageConfig = field(default_factory=S3StorageConfig)
    push: PushConfig = field(default_factory=PushConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "logging": self.logging.to_dict(),
            "s3": self.s3.to_dict(),
            "push": self.push.to_dict(),
            "transfer": self.transfer.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HelperConfig:
        """Create configuration from dictionary."""
        return cls(
            logging=LoggingConfig.from_dict(data.get("logging", {})),
            s3=S3StorageConfig.from_dict(data.get("s3", {})),
            push=PushConfig.from_dict(data.get("push", {})),
            transfer=TransferConfig.from_dict(data.get("transfer", {})),
        )

