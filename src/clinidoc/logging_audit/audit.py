"""Audit trail functionality for clinidoc.

This module provides structured audit logging for tracking document
lifecycle operations, exports and imports.
"""

import time
import uuid
from typing import Any, Dict

from .logger import get_logger

logger = get_logger(__name__)

# Key fields emitted first, in this order
AUDIT_FIELD_ORDER = [
    "status",
    "document_id",
    "patient_id",
    "template_id",
    "input_file",
    "record_count",
    "output_dir",
    "size_bytes",
    "duration",
    "error_message",
    "correlation_id",
]


def log_audit_event(event_type: str, details: Dict[str, Any]) -> Dict[str, Any]:
    """Log an audit trail event.

    Creates a structured audit log entry with standard fields for tracking
    operations. Audit events are logged at INFO level for successful
    operations and ERROR level for failures.

    Args:
        event_type: Type of operation (e.g., "DOCUMENT_CREATED", "DOCUMENT_UPDATED",
                   "DOCUMENT_EXPORTED", "EXPORT_FAILED", "PATIENTS_IMPORTED")
        details: Dictionary with event details. Common fields include:
                - document_id / patient_id / template_id: Records involved
                - input_file: Path to input file (if applicable)
                - record_count: Number of records processed
                - status: "success" or "failure"
                - duration: Operation duration in seconds
                - error_message: Error details (if status is failure)
                - correlation_id: Optional correlation ID for tracking related events

    Returns:
        The logged details, with timestamp and correlation_id filled in

    Example:
        >>> log_audit_event("DOCUMENT_EXPORTED", {
        ...     "document_id": "3f2a...",
        ...     "output_dir": "output",
        ...     "status": "success",
        ...     "duration": 0.4
        ... })
    """
    entry = dict(details)
    entry.setdefault("timestamp", time.time())
    entry.setdefault("correlation_id", str(uuid.uuid4()))

    message_parts = [f"AUDIT [{event_type}]"]

    for field in AUDIT_FIELD_ORDER:
        if field in entry:
            value = entry[field]
            # Format duration with 2 decimal places
            if field == "duration" and isinstance(value, (int, float)):
                message_parts.append(f"{field}={value:.2f}s")
            else:
                message_parts.append(f"{field}={value}")

    # Add any remaining fields not in the standard order
    for key, value in entry.items():
        if key not in AUDIT_FIELD_ORDER and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    # Log at appropriate level based on status
    if entry.get("status", "unknown") == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)

    return entry
