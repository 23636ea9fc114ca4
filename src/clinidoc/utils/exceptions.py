"""Custom exception classes for clinidoc.

All exceptions inherit from ClinidocError to allow catching all custom exceptions.
User-facing messages are written in Hebrew; developer detail travels in the
exception chain (``raise ... from e``) and in the log.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ClinidocError(Exception):
    """Base exception for all clinidoc custom exceptions."""

    pass


class ValidationError(ClinidocError):
    """Raised when input data validation fails.

    Examples:
        - Patient CSV missing required columns
        - Unparseable birth date in imported data
        - Unknown document status
    """

    pass


class ConfigurationError(ClinidocError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Invalid configuration file format
        - Configuration value out of range
    """

    pass


class StorageError(ClinidocError):
    """Raised when a repository cannot read or persist its records.

    Examples:
        - Data directory not writable
        - Corrupted JSON store file
    """

    pass


class RecordNotFoundError(ClinidocError):
    """Raised when a referenced patient, template or document does not exist.

    Attributes:
        record_type: Kind of record ("patient", "template", "document")
        record_id: Identifier that could not be resolved
    """

    USER_MESSAGES = {
        "patient": "המטופל לא נמצא",
        "template": "התבנית לא נמצאה",
        "document": "המסמך לא נמצא",
    }

    def __init__(self, record_type: str, record_id: str) -> None:
        self.record_type = record_type
        self.record_id = record_id
        user_message = self.USER_MESSAGES.get(record_type, "הרשומה לא נמצאה")
        super().__init__(f"{user_message} ({record_type} id={record_id})")


class TemplateError(ClinidocError):
    """Base exception for template processing errors."""

    pass


class TemplateLoadError(TemplateError):
    """Raised when a template definition file cannot be loaded.

    Examples:
        - File not found
        - Permission denied
        - Malformed JSON or unknown field type
    """

    pass


class TemplateValidationError(TemplateError):
    """Raised when a template definition is structurally invalid.

    Examples:
        - Duplicate field names
        - Patient-derived field without a patient source
    """

    pass


class TemplateInactiveError(TemplateError):
    """Raised when a new document is requested from an inactive template."""

    pass


class ExportError(ClinidocError):
    """Raised when building or packing an export artifact fails.

    The underlying library error is preserved as ``__cause__`` for
    diagnostics and never re-raised across the export boundary.
    """

    pass


class ExportInProgressError(ExportError):
    """Raised when the same export is requested while one is still pending."""

    pass


class ErrorCategory(Enum):
    """Error categorization for presentation and logging.

    Attributes:
        MISSING_REFERENCE: A referenced record could not be resolved
        EXPORT_FAILURE: Building or packing the export artifact failed
        VALIDATION: Input data was rejected at the boundary
        CONFIGURATION: Configuration could not be loaded
        STORAGE: Records could not be read or persisted
    """

    MISSING_REFERENCE = "MISSING_REFERENCE"
    EXPORT_FAILURE = "EXPORT_FAILURE"
    VALIDATION = "VALIDATION"
    CONFIGURATION = "CONFIGURATION"
    STORAGE = "STORAGE"


@dataclass
class ErrorInfo:
    """Structured error information for actionable error reporting.

    Attributes:
        category: Error category
        error_type: Exception class name (e.g., "RecordNotFoundError")
        message: User-facing error message
        remediation: Actionable guidance for resolving the error
        technical_details: Optional cause chain for developer logs

    Example:
        >>> info = create_error_info(RecordNotFoundError("document", "abc"))
        >>> info.category
        <ErrorCategory.MISSING_REFERENCE: 'MISSING_REFERENCE'>
    """

    category: ErrorCategory
    error_type: str
    message: str
    remediation: str
    technical_details: Optional[str] = None


def categorize_error(exception: Exception) -> ErrorCategory:
    """Categorize exception for reporting.

    Args:
        exception: The exception to categorize

    Returns:
        ErrorCategory for the exception

    Example:
        >>> categorize_error(ExportError("failed"))
        <ErrorCategory.EXPORT_FAILURE: 'EXPORT_FAILURE'>
    """
    if isinstance(exception, RecordNotFoundError):
        return ErrorCategory.MISSING_REFERENCE

    if isinstance(exception, ExportError):
        return ErrorCategory.EXPORT_FAILURE

    if isinstance(exception, ConfigurationError):
        return ErrorCategory.CONFIGURATION

    if isinstance(exception, (StorageError, OSError)):
        return ErrorCategory.STORAGE

    # Template and data problems are fixed at the input boundary
    return ErrorCategory.VALIDATION


def create_error_info(exception: Exception) -> ErrorInfo:
    """Create structured error information from exception.

    Args:
        exception: Exception that occurred

    Returns:
        ErrorInfo with categorization and remediation guidance
    """
    category = categorize_error(exception)

    technical_details = None
    if exception.__cause__ is not None:
        technical_details = (
            f"Caused by: {type(exception.__cause__).__name__}: {exception.__cause__}"
        )

    return ErrorInfo(
        category=category,
        error_type=type(exception).__name__,
        message=str(exception),
        remediation=_generate_remediation(exception, category),
        technical_details=technical_details,
    )


def _generate_remediation(exception: Exception, category: ErrorCategory) -> str:
    """Generate actionable remediation message for an error.

    Args:
        exception: Exception that occurred
        category: Error category

    Returns:
        Actionable remediation message
    """
    if isinstance(exception, ExportInProgressError):
        return "Wait for the running export to finish before starting another one."

    if isinstance(exception, TemplateInactiveError):
        return "Activate the template or choose an active template for new documents."

    if category == ErrorCategory.MISSING_REFERENCE:
        return (
            "The referenced record no longer exists. List records with "
            "'clinidoc patient list', 'clinidoc template list' or "
            "'clinidoc document list' and use a valid id."
        )

    if category == ErrorCategory.EXPORT_FAILURE:
        return (
            "Export failed. Check that the output directory is writable and "
            "review logs/clinidoc.log for the underlying cause."
        )

    if category == ErrorCategory.CONFIGURATION:
        return (
            "Configuration error. Check config/config.json and CLINIDOC_* "
            "environment variables for missing or invalid values."
        )

    if category == ErrorCategory.STORAGE:
        return (
            "Storage error. Check that the data directory exists, is writable, "
            "and that its JSON files are not corrupted."
        )

    return "Review the input data and template definition, then retry."
