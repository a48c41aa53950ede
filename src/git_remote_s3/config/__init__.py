"""Configuration system for git-remote-s3.

Configuration Sources (Priority Order):
1. Programmatic (highest) - Direct API calls
2. Environment Variables - GIT_REMOTE_S3_* prefixed variables
3. Repository Config - <GIT_DIR>/remote-s3.toml (per-repository)
4. User Config - ~/.config/git-remote-s3/config.toml (global)
5. Defaults (lowest) - Built-in defaults

Example Usage:
    from git_remote_s3.config import load_config

    config = load_config(git_dir=Path(".git"))
    print(config.s3.endpoint_scheme)     # "https"
    print(config.push.compare_and_swap)  # False

Environment Variables:
    All settings can be overridden with GIT_REMOTE_S3_ prefixed variables:
    - GIT_REMOTE_S3_LOGGING_LEVEL=DEBUG
    - GIT_REMOTE_S3_S3_ENDPOINT_SCHEME=http
    - GIT_REMOTE_S3_PUSH_COMPARE_AND_SWAP=true
"""

from .loader import (
    ConfigLoader,
    load_config,
)
from .schema import (
    HelperConfig,
    LoggingConfig,
    PushConfig,
    S3StorageConfig,
    TransferConfig,
)
from .validation import (
    ConfigValidationError,
    ValidationError,
    ValidationResult,
    validate_config,
)

__all__ = [
    # Main config class
    "HelperConfig",
    # Section configs
    "LoggingConfig",
    "S3StorageConfig",
    "PushConfig",
    "TransferConfig",
    # Loader
    "ConfigLoader",
    "load_config",
    # Validation
    "validate_config",
    "ValidationError",
    "ValidationResult",
    "ConfigValidationError",
]
