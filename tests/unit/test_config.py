"""Unit tests for configuration management.

Tests cover configuration loading, validation, environment variable overrides,
and error handling.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from clinidoc.config import (
    Config,
    ExportConfig,
    LocaleConfig,
    LoggingConfig,
    OperationLoggingConfig,
    get_export_config,
    get_locale_config,
    get_logging_config,
    get_operation_logging_config,
    get_practice_config,
    load_config,
)
from clinidoc.config.defaults import DEFAULT_CONFIG
from clinidoc.utils.exceptions import ConfigurationError


def write_config(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
    return path


class TestConfigurationSchema:
    """Test pydantic configuration models validation."""

    def test_defaults(self) -> None:
        """Test Config defaults match the default dictionary."""
        # Act
        config = Config()

        # Assert
        assert config.storage.data_dir == Path("data")
        assert config.export.font_name == "Arial"
        assert config.export.margin_inches == 1.0
        assert config.locale.export_blank_marker == "_" * 29
        assert config.locale.preview_blank_marker == "לא מולא"
        assert config.logging.redact_pii is False
        assert config.operation_logging.storage_log_level == "WARNING"
        assert Config(**DEFAULT_CONFIG) == config

    def test_logging_config_case_insensitive(self) -> None:
        """Test log levels are normalized to upper case."""
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_logging_config_invalid_level(self) -> None:
        """Test LoggingConfig rejects unknown levels."""
        with pytest.raises(ValidationError) as exc_info:
            LoggingConfig(level="VERBOSE")
        assert "Invalid log level" in str(exc_info.value)

    def test_operation_logging_invalid_level(self) -> None:
        """Test OperationLoggingConfig rejects unknown levels."""
        with pytest.raises(ValidationError):
            OperationLoggingConfig(export_log_level="LOUD")

    @pytest.mark.parametrize("margin", [0.1, 3.5])
    def test_margin_out_of_range(self, margin: float) -> None:
        """Test page margins outside 0.25..3 inches are rejected."""
        with pytest.raises(ValidationError):
            ExportConfig(margin_inches=margin)

    def test_date_format_requires_directive(self) -> None:
        """Test a date format without strftime directives is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            LocaleConfig(date_format="dd/mm/yyyy")
        assert "Invalid date format" in str(exc_info.value)

    def test_blank_marker_cannot_look_like_placeholder(self) -> None:
        """Test blank markers may not contain placeholder braces."""
        with pytest.raises(ValidationError):
            LocaleConfig(preview_blank_marker="{{missing}}")

    def test_empty_blank_marker_rejected(self) -> None:
        """Test blank markers must not be empty."""
        with pytest.raises(ValidationError):
            LocaleConfig(export_blank_marker="")


class TestConfigurationLoading:
    """Test loading configuration files."""

    def test_load_config_with_valid_file(self, tmp_path: Path) -> None:
        """Test values from a JSON file are applied."""
        # Arrange
        config_file = write_config(
            tmp_path / "config.json",
            {
                "export": {"output_dir": "exports", "font_name": "David"},
                "practice": {"therapist_name": "יעל לוי"},
            },
        )

        # Act
        config = load_config(config_file)

        # Assert
        assert config.export.output_dir == Path("exports")
        assert config.export.font_name == "David"
        assert config.export.body_font_size == 12
        assert config.practice.therapist_name == "יעל לוי"

    def test_load_config_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        """Test a missing file falls back to defaults."""
        config = load_config(tmp_path / "nonexistent.json")
        assert config == Config()

    def test_load_config_malformed_json(self, tmp_path: Path) -> None:
        """Test malformed JSON raises ConfigurationError."""
        # Arrange
        config_file = tmp_path / "config.json"
        config_file.write_text("{ invalid json }", encoding="utf-8")

        # Act & Assert
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)
        assert "Invalid JSON in config file" in str(exc_info.value)

    def test_load_config_non_object(self, tmp_path: Path) -> None:
        """Test a JSON array at the top level is rejected."""
        config_file = write_config(tmp_path / "config.json", ["not", "an", "object"])
        with pytest.raises(ConfigurationError, match="must contain a JSON object"):
            load_config(config_file)

    def test_load_config_with_validation_error(self, tmp_path: Path) -> None:
        """Test schema violations raise ConfigurationError."""
        # Arrange
        config_file = write_config(
            tmp_path / "config.json", {"logging": {"level": "CHATTY"}}
        )

        # Act & Assert
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)
        assert "Configuration validation failed" in str(exc_info.value)
        assert str(config_file) in str(exc_info.value)

    def test_empty_json_object(self, tmp_path: Path) -> None:
        """Test an empty object yields defaults."""
        config_file = write_config(tmp_path / "config.json", {})
        assert load_config(config_file) == Config()


class TestEnvironmentVariableOverrides:
    """Test CLINIDOC_* environment overrides."""

    def test_env_override_paths(self, tmp_path: Path, monkeypatch) -> None:
        """Test directory overrides."""
        # Arrange
        monkeypatch.setenv("CLINIDOC_DATA_DIR", "/srv/clinic/data")
        monkeypatch.setenv("CLINIDOC_OUTPUT_DIR", "/srv/clinic/out")

        # Act
        config = load_config(tmp_path / "missing.json")

        # Assert
        assert config.storage.data_dir == Path("/srv/clinic/data")
        assert config.export.output_dir == Path("/srv/clinic/out")

    def test_env_override_log_level(self, tmp_path: Path, monkeypatch) -> None:
        """Test log level override is validated and normalized."""
        monkeypatch.setenv("CLINIDOC_LOG_LEVEL", "debug")
        assert load_config(tmp_path / "missing.json").logging.level == "DEBUG"

    @pytest.mark.parametrize(
        "raw, expected",
        [("true", True), ("1", True), ("YES", True), ("on", True), ("false", False), ("0", False)],
    )
    def test_env_override_boolean_values(
        self, tmp_path: Path, monkeypatch, raw: str, expected: bool
    ) -> None:
        """Test boolean parsing of CLINIDOC_REDACT_PII."""
        monkeypatch.setenv("CLINIDOC_REDACT_PII", raw)
        assert load_config(tmp_path / "missing.json").logging.redact_pii is expected

    def test_env_override_numeric_values(self, tmp_path: Path, monkeypatch) -> None:
        """Test numeric override is converted."""
        monkeypatch.setenv("CLINIDOC_MARGIN_INCHES", "0.75")
        assert load_config(tmp_path / "missing.json").export.margin_inches == 0.75

    def test_env_override_bad_number(self, tmp_path: Path, monkeypatch) -> None:
        """Test a non-numeric margin raises ConfigurationError."""
        monkeypatch.setenv("CLINIDOC_MARGIN_INCHES", "wide")
        with pytest.raises(ConfigurationError, match="Invalid CLINIDOC_"):
            load_config(tmp_path / "missing.json")

    def test_env_override_practice(self, tmp_path: Path, monkeypatch) -> None:
        """Test practice detail overrides."""
        # Arrange
        monkeypatch.setenv("CLINIDOC_THERAPIST_NAME", "יעל לוי")
        monkeypatch.setenv("CLINIDOC_LICENSE_NUMBER", "12345")
        monkeypatch.setenv("CLINIDOC_CLINIC_NAME", "מרפאת הצפון")

        # Act
        practice = get_practice_config(load_config(tmp_path / "missing.json"))

        # Assert
        assert practice.therapist_name == "יעל לוי"
        assert practice.license_number == "12345"
        assert practice.clinic_name == "מרפאת הצפון"

    def test_env_override_operation_level(self, tmp_path: Path, monkeypatch) -> None:
        """Test per-operation level overrides."""
        # Arrange
        monkeypatch.setenv("CLINIDOC_OP_LOG_EXPORT_LEVEL", "debug")
        monkeypatch.setenv("CLINIDOC_OP_LOG_CSV_LEVEL", "ERROR")

        # Act
        op_logging = get_operation_logging_config(load_config(tmp_path / "missing.json"))

        # Assert
        assert op_logging.export_log_level == "DEBUG"
        assert op_logging.csv_log_level == "ERROR"
        assert op_logging.assembly_log_level == "INFO"

    def test_precedence_env_over_file(self, tmp_path: Path, monkeypatch) -> None:
        """Test environment wins over the file."""
        # Arrange
        config_file = write_config(
            tmp_path / "config.json", {"locale": {"date_format": "%Y-%m-%d"}}
        )
        monkeypatch.setenv("CLINIDOC_DATE_FORMAT", "%d.%m.%Y")

        # Act
        config = load_config(config_file)

        # Assert
        assert config.locale.date_format == "%d.%m.%Y"
        assert config.locale.time_format == "%H:%M"

    def test_invalid_env_value_fails_validation(self, tmp_path: Path, monkeypatch) -> None:
        """Test env values go through schema validation."""
        monkeypatch.setenv("CLINIDOC_DATE_FORMAT", "plain")
        with pytest.raises(ConfigurationError, match="Configuration validation failed"):
            load_config(tmp_path / "missing.json")


class TestConfigurationHelpers:
    """Test section getters."""

    def test_getters_return_sections(self) -> None:
        """Test each getter returns its section."""
        # Arrange
        config = Config(export=ExportConfig(font_name="David"))

        # Assert
        assert get_export_config(config).font_name == "David"
        assert get_locale_config(config) is config.locale
        assert get_logging_config(config) is config.logging
        assert get_practice_config(config) is config.practice
        assert get_operation_logging_config(config) is config.operation_logging
