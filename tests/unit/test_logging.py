"""Unit tests for logging_audit module."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from clinidoc.config.schema import OperationLoggingConfig
from clinidoc.export.exporter import DocumentExporter
from clinidoc.logging_audit import (
    PIIRedactingFormatter,
    configure_logging,
    configure_operation_logging_from_config,
    get_logger,
    get_operation_logger,
    log_audit_event,
    set_operation_log_level,
)


def make_record(message: str) -> logging.LogRecord:
    return logging.LogRecord(
        name="clinidoc.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=None,
        exc_info=None,
    )


class TestConfigureLogging:
    """Test logging configuration."""

    def test_configure_logging_creates_file(self, tmp_path):
        """Test logging configuration creates log file."""
        # Arrange
        log_file = tmp_path / "test.log"

        # Act
        configure_logging(level="INFO", log_file=log_file, redact_pii=False)
        get_logger(__name__).info("Test message")

        # Assert
        assert log_file.exists()
        assert "Test message" in log_file.read_text(encoding="utf-8")

    def test_configure_logging_creates_directory(self, tmp_path):
        """Test logging creates parent directories if needed."""
        log_file = tmp_path / "nested" / "dir" / "test.log"
        configure_logging(level="INFO", log_file=log_file)
        assert log_file.parent.is_dir()

    def test_file_handler_rotates_and_logs_debug(self, tmp_path):
        """Test file handler is rotating and always at DEBUG."""
        # Arrange
        log_file = tmp_path / "test.log"

        # Act
        configure_logging(level="WARNING", log_file=log_file)

        # Assert
        root_logger = logging.getLogger()
        file_handlers = [h for h in root_logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG
        console_handlers = [
            h
            for h in root_logger.handlers
            if isinstance(h.formatter, PIIRedactingFormatter)
            and not isinstance(h, RotatingFileHandler)
        ]
        assert console_handlers[0].level == logging.WARNING

    def test_reconfigure_does_not_duplicate_handlers(self, tmp_path):
        """Test configure_logging is idempotent."""
        configure_logging(level="INFO", log_file=tmp_path / "a.log")
        configure_logging(level="INFO", log_file=tmp_path / "b.log")
        assert len(logging.getLogger().handlers) == 2

    def test_hebrew_is_written_as_utf8(self, tmp_path):
        """Test Hebrew messages survive the file handler."""
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file)
        get_logger(__name__).info("מסמך נוצר")
        assert "מסמך נוצר" in log_file.read_text(encoding="utf-8")

    def test_invalid_level(self, tmp_path):
        """Test invalid level is rejected."""
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="LOUD", log_file=tmp_path / "x.log")

    def test_redaction_in_file(self, tmp_path):
        """Test redact_pii applies to the file handler."""
        # Arrange
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file, redact_pii=True)

        # Act
        get_logger(__name__).info("Imported patient 000000018 phone 050-1234567")

        # Assert
        content = log_file.read_text(encoding="utf-8")
        assert "000000018" not in content
        assert "050-1234567" not in content

    @pytest.mark.asyncio
    async def test_patient_export_keeps_name_out_of_log(self, tmp_path, clock, sample_patient):
        """Test exporting a patient record never writes the patient name to the log."""
        # Arrange
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", log_file=log_file, redact_pii=True)
        exporter = DocumentExporter(tmp_path / "out", clock=clock)

        # Act
        result = await exporter.export_patient(sample_patient)

        # Assert
        content = log_file.read_text(encoding="utf-8")
        assert result.path.name.startswith(sample_patient.first_name)
        assert sample_patient.first_name not in content
        assert sample_patient.last_name not in content
        assert f"Wrote export patient:{sample_patient.id}" in content
        assert "AUDIT [PATIENT_EXPORTED]" in content


class TestPIIRedactingFormatter:
    """Test PII redaction patterns."""

    @pytest.mark.parametrize(
        "message, secret, marker",
        [
            ("contact dana@example.com now", "dana@example.com", "[EMAIL-REDACTED]"),
            ("call 050-1234567", "050-1234567", "[PHONE-REDACTED]"),
            ("call 0501234567", "0501234567", "[PHONE-REDACTED]"),
            ("call +972-501234567", "501234567", "[PHONE-REDACTED]"),
            ("id 000000018 checked", "000000018", "[ID-REDACTED]"),
            ('name="דנה כהן" imported', "דנה כהן", "[NAME-REDACTED]"),
            ("מטופל: דנה כהן", "דנה כהן", "[NAME-REDACTED]"),
            ("Patient: Dana Cohen", "Dana Cohen", "[NAME-REDACTED]"),
        ],
    )
    def test_patterns(self, message, secret, marker):
        """Test each PII kind is replaced by its marker."""
        # Arrange
        formatter = PIIRedactingFormatter(fmt="%(message)s", redact_pii=True)

        # Act
        output = formatter.format(make_record(message))

        # Assert
        assert secret not in output
        assert marker in output

    @pytest.mark.parametrize(
        "message",
        [
            "FileName: report.docx",
            "template_name=סיכום",
            "רשם: מזכירות",
        ],
    )
    def test_name_labels_inside_words_are_kept(self, message):
        """Test name patterns only match whole labels."""
        formatter = PIIRedactingFormatter(fmt="%(message)s", redact_pii=True)
        assert formatter.format(make_record(message)) == message

    def test_redaction_disabled(self):
        """Test messages pass through when redaction is off."""
        formatter = PIIRedactingFormatter(fmt="%(message)s", redact_pii=False)
        assert formatter.format(make_record("id 000000018")) == "id 000000018"

    def test_document_ids_are_not_redacted(self):
        """Test uuid-like ids survive redaction."""
        formatter = PIIRedactingFormatter(fmt="%(message)s", redact_pii=True)
        message = "document 3f2a9c1e-0b7d-4e2a-9f00-abcdef123456 exported"
        assert formatter.format(make_record(message)) == message


class TestOperationLogging:
    """Test per-operation log levels."""

    def test_operation_logger_names(self):
        """Test operation loggers map to package loggers."""
        assert get_operation_logger("export").name == "clinidoc.export"
        assert get_operation_logger("csv").name == "clinidoc.csv_parser"

    def test_unknown_operation(self):
        """Test unknown operation is rejected."""
        with pytest.raises(ValueError, match="Unknown operation"):
            get_operation_logger("telepathy")

    def test_set_level(self):
        """Test setting one operation's level."""
        set_operation_log_level("storage", "error")
        assert get_operation_logger("storage").level == logging.ERROR

    def test_configure_from_config(self):
        """Test levels are taken from OperationLoggingConfig."""
        # Arrange
        config = OperationLoggingConfig(export_log_level="DEBUG", storage_log_level="ERROR")

        # Act
        configure_operation_logging_from_config(config)

        # Assert
        assert get_operation_logger("export").level == logging.DEBUG
        assert get_operation_logger("storage").level == logging.ERROR
        assert get_operation_logger("assembly").level == logging.INFO


class TestAuditEvents:
    """Test audit trail events."""

    def test_success_logged_at_info_in_field_order(self, caplog):
        """Test success events are INFO with ordered fields."""
        # Act
        with caplog.at_level(logging.INFO):
            entry = log_audit_event(
                "DOCUMENT_EXPORTED",
                {"duration": 0.123, "document_id": "d-1", "status": "success", "extra": 5},
            )

        # Assert
        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.getMessage().startswith(
            "AUDIT [DOCUMENT_EXPORTED] | status=success | document_id=d-1 | duration=0.12s"
        )
        assert "extra=5" in record.getMessage()
        assert "timestamp" in entry
        assert "correlation_id" in entry

    def test_failure_logged_at_error(self, caplog):
        """Test failure events are ERROR."""
        with caplog.at_level(logging.INFO):
            log_audit_event("EXPORT_FAILED", {"status": "failure", "error_message": "boom"})
        assert caplog.records[-1].levelno == logging.ERROR

    def test_correlation_id_is_kept(self):
        """Test caller-provided correlation ids are not replaced."""
        entry = log_audit_event("DOCUMENT_CREATED", {"correlation_id": "abc"})
        assert entry["correlation_id"] == "abc"
