"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# Default configuration dictionary
# This is used as a fallback when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "storage": {
        "data_dir": "data",
    },
    "export": {
        "output_dir": "output",
        # Arial renders Hebrew in both Word and LibreOffice
        "font_name": "Arial",
        "title_font_size": 18,
        "heading_font_size": 14,
        "body_font_size": 12,
        "footer_font_size": 9,
        "margin_inches": 1.0,
    },
    "practice": {
        # Printed under the signature lines; blank lines when unset
        "therapist_name": None,
        "license_number": None,
        "clinic_name": None,
    },
    "locale": {
        "date_format": "%d/%m/%Y",
        "datetime_format": "%d/%m/%Y %H:%M",
        "time_format": "%H:%M",
        "export_blank_marker": "_" * 29,
        "preview_blank_marker": "לא מולא",
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/clinidoc.log",
        # Do not redact PII by default (user must opt-in for privacy)
        "redact_pii": False,
    },
    "operation_logging": {
        "assembly_log_level": "INFO",
        "export_log_level": "INFO",
        "storage_log_level": "WARNING",
        "csv_log_level": "INFO",
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"
