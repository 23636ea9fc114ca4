"""Custom log formatters for clinidoc.

This module provides specialized formatters for logging, including PII redaction.
"""

import logging
import re
from typing import List, Tuple


class PIIRedactingFormatter(logging.Formatter):
    """Custom formatter that redacts Personally Identifiable Information (PII) from log messages.

    This formatter applies regex-based pattern matching to identify and redact
    sensitive information such as Israeli ID numbers, phone numbers, email
    addresses and patient names.

    Attributes:
        redact_pii: Whether to enable PII redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction

    Example:
        >>> formatter = PIIRedactingFormatter(
        ...     fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        ...     redact_pii=True
        ... )
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        """Initialize the PIIRedactingFormatter.

        Args:
            fmt: Log message format string
            datefmt: Date format string (optional)
            redact_pii: Whether to enable PII redaction
        """
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

        # Define redaction patterns: (regex, replacement_text)
        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            # Email addresses
            (re.compile(r"[\w.%+-]+@[\w.-]+\.[A-Za-z]{2,}"), "[EMAIL-REDACTED]"),

            # Israeli phone numbers: 050-1234567, 0501234567, +972-50-1234567
            (re.compile(r"(?:\+972-?|\b0)(?:[23489]|5\d)-?\d{7}\b"), "[PHONE-REDACTED]"),

            # Israeli ID numbers: exactly nine digits
            (re.compile(r"\b\d{9}\b"), "[ID-REDACTED]"),

            # Matches: name="John Doe", name='דנה כהן', name=Bob
            (re.compile(r"(?<!\w)name=[\"']?([^\"'|,]+)[\"']?"), "name=[NAME-REDACTED]"),

            # Matches: "Patient: John Doe", "מטופל: דנה כהן"
            (re.compile(r"(?<!\w)(Patient|Name|מטופל|שם):\s+\S+(?:\s+\S+)?"),
             r"\1: [NAME-REDACTED]"),
        ]

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional PII redaction.

        Args:
            record: Log record to format

        Returns:
            Formatted log message with PII redacted if enabled
        """
        # Get the original formatted message
        original = super().format(record)

        # Apply redaction if enabled
        if self.redact_pii:
            for pattern, replacement in self.patterns:
                original = pattern.sub(replacement, original)

        return original
