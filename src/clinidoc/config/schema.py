"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _validate_level(v: str) -> str:
    v_upper = v.upper()
    if v_upper not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level: {v}. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )
    return v_upper


class StorageConfig(BaseModel):
    """Configuration for record storage.

    Attributes:
        data_dir: Directory holding patients.json, templates.json and documents.json
    """

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory for JSON record stores"
    )


class ExportConfig(BaseModel):
    """Configuration for .docx export.

    Attributes:
        output_dir: Directory exported files are written to
        font_name: Font used for all text (Latin and complex script)
        title_font_size: Title size in points
        heading_font_size: Section heading size in points
        body_font_size: Body text size in points
        footer_font_size: Footer text size in points
        margin_inches: Page margin on every side
    """

    output_dir: Path = Field(
        default=Path("output"),
        description="Directory for exported documents"
    )
    font_name: str = Field(default="Arial", min_length=1)
    title_font_size: int = Field(default=18, ge=6, le=72)
    heading_font_size: int = Field(default=14, ge=6, le=72)
    body_font_size: int = Field(default=12, ge=6, le=72)
    footer_font_size: int = Field(default=9, ge=6, le=72)
    margin_inches: float = Field(
        default=1.0,
        ge=0.25,
        le=3.0,
        description="Page margin in inches"
    )


class PracticeConfig(BaseModel):
    """Details of the practice printed in exported signature sections.

    Attributes:
        therapist_name: Name of the treating therapist
        license_number: Therapist licence number
        clinic_name: Clinic name shown in headers
    """

    therapist_name: Optional[str] = None
    license_number: Optional[str] = None
    clinic_name: Optional[str] = None


class LocaleConfig(BaseModel):
    """Locale formatting rules.

    Attributes:
        date_format: strftime format for dates
        datetime_format: strftime format for date and time
        time_format: strftime format for times
        export_blank_marker: Text for blank values in exported output
        preview_blank_marker: Text for blank values in preview
    """

    date_format: str = "%d/%m/%Y"
    datetime_format: str = "%d/%m/%Y %H:%M"
    time_format: str = "%H:%M"
    export_blank_marker: str = Field(default="_" * 29, min_length=1)
    preview_blank_marker: str = Field(default="לא מולא", min_length=1)

    @field_validator("date_format", "datetime_format", "time_format")
    @classmethod
    def validate_strftime(cls, v: str) -> str:
        """Validate that a format string contains at least one directive.

        Raises:
            ValueError: If no strftime directive is present
        """
        if "%" not in v:
            raise ValueError(
                f"Invalid date format: {v!r}. Must contain strftime directives "
                f"such as %d, %m, %Y"
            )
        return v

    @model_validator(mode="after")
    def validate_markers(self) -> "LocaleConfig":
        """Reject blank markers that would themselves look like placeholders.

        Raises:
            ValueError: If a marker contains "{{" or "}}"
        """
        for marker in (self.export_blank_marker, self.preview_blank_marker):
            if "{{" in marker or "}}" in marker:
                raise ValueError(
                    f"Blank marker {marker!r} must not contain '{{{{' or '}}}}'"
                )
        return self


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact PII from logs
    """

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/clinidoc.log"),
        description="Log file path"
    )
    redact_pii: bool = Field(
        default=False,
        description="Redact PII from logs"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Returns:
            Validated log level (uppercase)

        Raises:
            ValueError: If log level is not valid
        """
        return _validate_level(v)


class OperationLoggingConfig(BaseModel):
    """Per-operation logging configuration.

    Allows different log levels for different subsystems to enable focused
    debugging without excessive log noise.

    Attributes:
        assembly_log_level: Log level for formatting, resolution and assembly
        export_log_level: Log level for .docx export
        storage_log_level: Log level for record stores
        csv_log_level: Log level for patient CSV import

    Example:
        >>> op_logging = OperationLoggingConfig(
        ...     assembly_log_level="DEBUG",
        ...     export_log_level="INFO"
        ... )
    """

    assembly_log_level: str = Field(
        default="INFO",
        description="Log level for document assembly"
    )
    export_log_level: str = Field(
        default="INFO",
        description="Log level for document export"
    )
    storage_log_level: str = Field(
        default="WARNING",
        description="Log level for record stores"
    )
    csv_log_level: str = Field(
        default="INFO",
        description="Log level for CSV import"
    )

    @field_validator(
        "assembly_log_level", "export_log_level", "storage_log_level", "csv_log_level"
    )
    @classmethod
    def validate_operation_log_level(cls, v: str) -> str:
        """Validate operation-specific log level.

        Returns:
            Validated log level (uppercase)

        Raises:
            ValueError: If log level is not valid
        """
        return _validate_level(v)


class Config(BaseModel):
    """Root configuration model.

    Attributes:
        storage: Record storage configuration
        export: Export layout configuration
        practice: Practice details for signature sections
        locale: Date formats and blank markers
        logging: Logging configuration
        operation_logging: Per-operation logging configuration

    Example:
        >>> config = Config(export=ExportConfig(output_dir=Path("exports")))
        >>> config.export.output_dir
        PosixPath('exports')
        >>> config.locale.date_format
        '%d/%m/%Y'
    """

    storage: StorageConfig = StorageConfig()
    export: ExportConfig = ExportConfig()
    practice: PracticeConfig = PracticeConfig()
    locale: LocaleConfig = LocaleConfig()
    logging: LoggingConfig = LoggingConfig()
    operation_logging: OperationLoggingConfig = OperationLoggingConfig()
