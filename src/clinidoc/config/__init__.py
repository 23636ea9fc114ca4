"""Config module.

This module provides configuration management functionality.
"""

from clinidoc.config.manager import (
    get_export_config,
    get_locale_config,
    get_logging_config,
    get_operation_logging_config,
    get_practice_config,
    load_config,
)
from clinidoc.config.schema import (
    Config,
    ExportConfig,
    LocaleConfig,
    LoggingConfig,
    OperationLoggingConfig,
    PracticeConfig,
    StorageConfig,
)

__all__ = [
    # Main configuration loading
    "load_config",
    # Helper functions
    "get_export_config",
    "get_locale_config",
    "get_logging_config",
    "get_operation_logging_config",
    "get_practice_config",
    # Configuration models
    "Config",
    "ExportConfig",
    "LocaleConfig",
    "LoggingConfig",
    "OperationLoggingConfig",
    "PracticeConfig",
    "StorageConfig",
]
