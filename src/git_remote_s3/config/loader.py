"""Configuration loader for git-remote-s3.

This module handles loading configuration from multiple sources:
1. Default values (lowest priority)
2. User config file (~/.config/git-remote-s3/config.toml)
3. Repository config file (<GIT_DIR>/remote-s3.toml)
4. Environment variables (GIT_REMOTE_S3_* prefix)
5. Programmatic overrides (highest priority)
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping, Optional, get_type_hints

from .schema import (
    HelperConfig,
    LoggingConfig,
    PushConfig,
    S3StorageConfig,
    TransferConfig,
)
from .validation import ConfigValidationError, ValidationError, validate_config

# Use tomllib (3.11+) or tomli for older Python versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

# Default paths
USER_CONFIG_DIR = Path.home() / ".config" / "git-remote-s3"
USER_CONFIG_PATH = USER_CONFIG_DIR / "config.toml"
REPO_CONFIG_NAME = "remote-s3.toml"
ENV_PREFIX = "GIT_REMOTE_S3_"
CONFIG_PATH_ENV = "GIT_REMOTE_S3_CONFIG"

# Known sections (first level) and the dataclass each one loads into
SECTION_TYPES = {
    "logging": LoggingConfig,
    "s3": S3StorageConfig,
    "push": PushConfig,
    "transfer": TransferConfig,
}

TRUE_VALUES = ("true", "yes", "on", "1")
FALSE_VALUES = ("false", "no", "off", "0")


def _field_types(section_cls: type) -> dict[str, Any]:
    """Map each field of a section dataclass to its resolved type."""
    hints = get_type_hints(section_cls)
    return {f.name: hints[f.name] for f in fields(section_cls)}


def _parse_env_value(key: str, value: str, field_type: Any) -> Any:
    """Convert an environment variable value to the type of its field.

    Only bool, int and float fields are converted. String fields keep the
    raw value, including an empty string.

    Raises:
        ConfigValidationError: If the value does not parse as the field type
    """
    if field_type is bool:
        lowered = value.strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
        raise ConfigValidationError(
            f"Invalid value in {key}",
            errors=[ValidationError(key, "must be a boolean", value)],
        )

    if field_type in (int, float):
        try:
            return field_type(value)
        except ValueError as e:
            raise ConfigValidationError(
                f"Invalid value in {key}",
                errors=[
                    ValidationError(key, f"must be {field_type.__name__}", value)
                ],
            ) from e

    return value


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


class ConfigLoader:
    """Load configuration from multiple sources with priority handling."""

    def __init__(
        self,
        git_dir: Optional[Path] = None,
        user_config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize the configuration loader.

        Args:
            git_dir: Path to the repository's git directory
            user_config_path: Optional override for user config path
            environ: Environment to read overrides from (default: os.environ)
        """
        self.environ = os.environ if environ is None else environ
        self.git_dir = Path(git_dir) if git_dir else None
        if user_config_path is None and self.environ.get(CONFIG_PATH_ENV):
            user_config_path = Path(self.environ[CONFIG_PATH_ENV])
        self.user_config_path = Path(
            os.path.expanduser(str(user_config_path or USER_CONFIG_PATH))
        )

    def load(self, overrides: Optional[dict[str, Any]] = None) -> HelperConfig:
        """Load configuration from all sources with priority handling.

        Args:
            overrides: Programmatic overrides, applied last

        Returns:
            Merged HelperConfig instance
        """
        config_dict: dict[str, Any] = {}

        if self.user_config_path.exists():
            user_data = self._load_toml(self.user_config_path)
            config_dict = _deep_merge(config_dict, user_data)
            logger.debug(f"Loaded user config from {self.user_config_path}")

        if self.git_dir:
            repo_config_path = self.git_dir / REPO_CONFIG_NAME
            if repo_config_path.exists():
                repo_data = self._load_toml(repo_config_path)
                config_dict = _deep_merge(config_dict, repo_data)
                logger.debug(f"Loaded repo config from {repo_config_path}")

        env_overrides = self._load_env_vars()
        if env_overrides:
            config_dict = _deep_merge(config_dict, env_overrides)
            logger.debug("Applied environment variable overrides")

        if overrides:
            config_dict = _deep_merge(config_dict, overrides)

        return HelperConfig.from_dict(config_dict)

    def _load_toml(self, path: Path) -> dict[str, Any]:
        """Load a TOML configuration file.

        A file that exists but does not parse is an error.
        """
        try:
            with open(path, "rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigValidationError(
                f"Failed to load config from {path}: {e}", errors=[]
            ) from e

    def _load_env_vars(self) -> dict[str, Any]:
        """Load configuration from environment variables.

        Environment variables are prefixed with GIT_REMOTE_S3_ and use
        underscores to separate the section from the key. Values are
        converted to the type of the field they set. For example:
        - GIT_REMOTE_S3_LOGGING_LEVEL -> logging.level
        - GIT_REMOTE_S3_PUSH_COMPARE_AND_SWAP -> push.compare_and_swap

        Returns:
            Configuration dictionary from environment variables
        """
        result: dict[str, Any] = {}

        for key, value in self.environ.items():
            if not key.startswith(ENV_PREFIX) or key == CONFIG_PATH_ENV:
                continue

            parts = key[len(ENV_PREFIX) :].lower().split("_")
            if parts[0] not in SECTION_TYPES or len(parts) < 2:
                logger.debug(f"Ignoring unknown config variable {key}")
                continue

            section, name = parts[0], "_".join(parts[1:])
            field_type = _field_types(SECTION_TYPES[section]).get(name)
            if field_type is None:
                logger.debug(f"Ignoring unknown config variable {key}")
                continue

            parsed = _parse_env_value(key, value, field_type)
            result = _deep_merge(result, {section: {name: parsed}})

        return result


def load_config(
    git_dir: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
    validate: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> HelperConfig:
    """Load git-remote-s3 configuration from all sources.

    This is the main entry point for loading configuration.

    Args:
        git_dir: Optional path to the repository's git directory
        user_config_path: Optional override for user config path
        overrides: Programmatic overrides (highest priority)
        validate: Raise ConfigValidationError if validation finds errors
        environ: Environment to read overrides from (default: os.environ)

    Returns:
        Merged HelperConfig instance
    """
    loader = ConfigLoader(git_dir, user_config_path, environ=environ)
    try:
        config = loader.load(overrides)
    except (TypeError, ValueError) as e:
        raise ConfigValidationError(f"Invalid configuration: {e}", errors=[]) from e

    if validate:
        result = validate_config(config)
        for warning in result.warnings:
            logger.warning(f"Configuration warning: {warning}")
        if not result.valid:
            raise ConfigValidationError(
                "Configuration validation failed",
                errors=result.errors,
                warnings=result.warnings,
            )
    return config
