"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
and configuration validation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from clinidoc.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from clinidoc.config.schema import (
    Config,
    ExportConfig,
    LocaleConfig,
    LoggingConfig,
    OperationLoggingConfig,
    PracticeConfig,
)
from clinidoc.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "CLINIDOC_"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (CLINIDOC_* prefix)
    3. Configuration file (JSON)
    4. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> output_dir = config.export.output_dir
        >>>
        >>> # Use with defaults
        >>> config = load_config()
        >>> log_level = config.logging.level
    """
    # Load .env file if present in project root
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)

    try:
        config_dict = _apply_env_overrides(config_dict)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid {ENV_PREFIX}* environment variable: {e}\n"
            f"Fix: Numeric settings must be plain numbers."
        ) from e

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format."
        ) from e


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file or return defaults.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigurationError: If JSON is malformed or the file cannot be read
    """
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
            logger.info(f"Loaded configuration from {config_path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check file permissions and path"
            ) from e

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a JSON object"
            )
        return config_dict

    logger.info(
        f"Config file not found: {config_path}. Using default configuration."
    )
    # Return a deep copy of defaults to avoid mutation
    return json.loads(json.dumps(DEFAULT_CONFIG))


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with CLINIDOC_ prefix.

    Environment variables follow the pattern: CLINIDOC_<FIELD>
    For example: CLINIDOC_DATA_DIR, CLINIDOC_LOG_LEVEL

    Args:
        config_dict: Configuration dictionary to update

    Returns:
        Updated configuration dictionary with environment overrides applied

    Raises:
        ValueError: If a numeric override is not a number
    """
    # Storage section
    if data_dir := os.getenv(f"{ENV_PREFIX}DATA_DIR"):
        config_dict.setdefault("storage", {})["data_dir"] = data_dir
        logger.debug("Override: data_dir from environment")

    # Export section
    if output_dir := os.getenv(f"{ENV_PREFIX}OUTPUT_DIR"):
        config_dict.setdefault("export", {})["output_dir"] = output_dir
        logger.debug("Override: output_dir from environment")

    if font_name := os.getenv(f"{ENV_PREFIX}FONT_NAME"):
        config_dict.setdefault("export", {})["font_name"] = font_name
        logger.debug("Override: font_name from environment")

    if margin_inches := os.getenv(f"{ENV_PREFIX}MARGIN_INCHES"):
        config_dict.setdefault("export", {})["margin_inches"] = float(margin_inches)
        logger.debug("Override: margin_inches from environment")

    # Practice section
    if therapist_name := os.getenv(f"{ENV_PREFIX}THERAPIST_NAME"):
        config_dict.setdefault("practice", {})["therapist_name"] = therapist_name
        logger.debug("Override: therapist_name from environment")

    if license_number := os.getenv(f"{ENV_PREFIX}LICENSE_NUMBER"):
        config_dict.setdefault("practice", {})["license_number"] = license_number
        logger.debug("Override: license_number from environment")

    if clinic_name := os.getenv(f"{ENV_PREFIX}CLINIC_NAME"):
        config_dict.setdefault("practice", {})["clinic_name"] = clinic_name
        logger.debug("Override: clinic_name from environment")

    # Locale section
    if date_format := os.getenv(f"{ENV_PREFIX}DATE_FORMAT"):
        config_dict.setdefault("locale", {})["date_format"] = date_format
        logger.debug("Override: date_format from environment")

    # Logging section
    if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config_dict.setdefault("logging", {})["level"] = log_level
        logger.debug("Override: log_level from environment")

    if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config_dict.setdefault("logging", {})["log_file"] = log_file
        logger.debug("Override: log_file from environment")

    if redact_pii := os.getenv(f"{ENV_PREFIX}REDACT_PII"):
        config_dict.setdefault("logging", {})["redact_pii"] = _parse_bool(redact_pii)
        logger.debug("Override: redact_pii from environment")

    return _apply_operation_logging_env_overrides(config_dict)


def _apply_operation_logging_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply per-operation logging configuration environment variable overrides.

    Environment variables follow the pattern: CLINIDOC_OP_LOG_<OPERATION>_LEVEL
    For example: CLINIDOC_OP_LOG_EXPORT_LEVEL, CLINIDOC_OP_LOG_STORAGE_LEVEL

    Args:
        config_dict: Configuration dictionary to update

    Returns:
        Updated configuration dictionary with operation logging overrides applied
    """
    for operation in ("assembly", "export", "storage", "csv"):
        if level := os.getenv(f"{ENV_PREFIX}OP_LOG_{operation.upper()}_LEVEL"):
            config_dict.setdefault("operation_logging", {})[
                f"{operation}_log_level"
            ] = level
            logger.debug(f"Override: {operation}_log_level from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string.

    Args:
        value: String value to parse (case-insensitive)

    Returns:
        Boolean value
    """
    return value.lower() in ("true", "1", "yes", "on")


def get_export_config(config: Config) -> ExportConfig:
    """Get export configuration."""
    return config.export


def get_practice_config(config: Config) -> PracticeConfig:
    """Get practice details configuration."""
    return config.practice


def get_locale_config(config: Config) -> LocaleConfig:
    """Get locale formatting configuration."""
    return config.locale


def get_logging_config(config: Config) -> LoggingConfig:
    """Get logging configuration.

    Example:
        >>> config = load_config()
        >>> logging_cfg = get_logging_config(config)
        >>> log_level = logging_cfg.level
    """
    return config.logging


def get_operation_logging_config(config: Config) -> OperationLoggingConfig:
    """Get per-operation logging configuration."""
    return config.operation_logging
