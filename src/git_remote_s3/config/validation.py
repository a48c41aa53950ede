"""Configuration validation for git-remote-s3.

This module provides validation utilities for configuration values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .schema import HelperConfig

VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
VALID_SCHEMES = {"http", "https"}


@dataclass
class ValidationError:
    """Represents a configuration validation error."""

    key: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.key}: {self.message} (got: {self.value!r})"
        return f"{self.key}: {self.message}"


@dataclass
class ValidationResult:
    """Result of configuration validation."""

    valid: bool
    errors: list[ValidationError]
    warnings: list[ValidationError]

    def __bool__(self) -> bool:
        return self.valid


class ConfigValidationError(Exception):
    """Raised when configuration cannot be loaded or fails validation.

    Attributes:
        errors: List of ValidationError objects describing what failed
        warnings: List of ValidationError objects for non-fatal issues
    """

    def __init__(
        self,
        message: str,
        errors: list[ValidationError],
        warnings: Optional[list[ValidationError]] = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors
        self.warnings = warnings or []

    def __str__(self) -> str:
        lines = [super().__str__()]
        if self.errors:
            lines.append("Errors:")
            for error in self.errors:
                lines.append(f"  - {error}")
        if self.warnings:
            lines.append("Warnings:")
            for warning in self.warnings:
                lines.append(f"  - {warning}")
        return "\n".join(lines)


def validate_config(config: HelperConfig) -> ValidationResult:
    """Validate a configuration instance.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with errors and warnings
    """
    errors: list[ValidationError] = []
    warnings: list[ValidationError] = []

    _validate_logging(config, errors, warnings)
    _validate_s3(config, errors, warnings)

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_logging(
    config: HelperConfig,
    errors: list[ValidationError],
    warnings: list[ValidationError],
) -> None:
    """Validate logging configuration."""
    logging_cfg = config.logging

    if str(logging_cfg.level).upper() not in VALID_LEVELS:
        errors.append(
            ValidationError(
                "logging.level",
                f"must be one of {sorted(VALID_LEVELS)}",
                logging_cfg.level,
            )
        )

    if not logging_cfg.console and not logging_cfg.file:
        warnings.append(
            ValidationError(
                "logging.console",
                "console logging disabled and no log file set; logs are discarded",
            )
        )


def _validate_s3(
    config: HelperConfig,
    errors: list[ValidationError],
    warnings: list[ValidationError],
) -> None:
    """Validate S3 transport configuration."""
    s3 = config.s3

    if s3.endpoint_scheme not in VALID_SCHEMES:
        errors.append(
            ValidationError(
                "s3.endpoint_scheme",
                f"must be one of {sorted(VALID_SCHEMES)}",
                s3.endpoint_scheme,
            )
        )
    elif s3.endpoint_scheme == "http":
        warnings.append(
            ValidationError(
                "s3.endpoint_scheme",
                "plain http sends credentials unencrypted",
                s3.endpoint_scheme,
            )
        )

    if s3.max_attempts < 1:
        errors.append(
            ValidationError("s3.max_attempts", "must be at least 1", s3.max_attempts)
        )

    for key in ("connect_timeout", "read_timeout"):
        value = getattr(s3, key)
        if value <= 0:
            errors.append(ValidationError(f"s3.{key}", "must be positive", value))

    if s3.prefix and not s3.prefix.endswith("/"):
        warnings.append(
            ValidationError(
                "s3.prefix",
                "prefix without a trailing '/' is joined directly to object ids",
                s3.prefix,
            )
        )

    if s3.access_key or s3.secret_key:
        warnings.append(
            ValidationError(
                "s3.access_key",
                "credentials in config files are discouraged; use a profile",
            )
        )
        if not (s3.access_key and s3.secret_key):
            errors.append(
                ValidationError(
                    "s3.secret_key",
                    "access_key and secret_key must be set together",
                )
            )

