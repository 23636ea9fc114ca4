"""Export filename conventions."""

import re
from datetime import date, datetime
from typing import Optional, Union

from clinidoc.models.patient import Patient
from clinidoc.utils.dates import utc_now

DOCX_EXTENSION = "docx"

_WHITESPACE = re.compile(r"\s+")
_INVALID_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_filename_part(text: str) -> str:
    """Make one filename component safe.

    Whitespace runs become a single hyphen and characters that are invalid
    on common filesystems become underscores. Hebrew letters are kept.

    Example:
        >>> sanitize_filename_part("דוח  טיפול / ראשון")
        'דוח-טיפול-_-ראשון'
    """
    text = _WHITESPACE.sub("-", text.strip())
    return _INVALID_CHARS.sub("_", text)


def _date_part(on: Optional[Union[date, datetime]]) -> str:
    value = on or utc_now()
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def patient_export_filename(
    patient: Patient, on: Optional[Union[date, datetime]] = None
) -> str:
    """Filename for a patient-level export: ``{first}-{last}-{YYYY-MM-DD}.docx``."""
    name = sanitize_filename_part(f"{patient.first_name}-{patient.last_name}")
    return f"{name}-{_date_part(on)}.{DOCX_EXTENSION}"


def document_export_filename(
    patient: Patient, title: str, on: Optional[Union[date, datetime]] = None
) -> str:
    """Filename for a document export: ``{first}-{last}-{title}-{YYYY-MM-DD}.docx``."""
    name = sanitize_filename_part(f"{patient.first_name}-{patient.last_name}")
    return f"{name}-{sanitize_filename_part(title)}-{_date_part(on)}.{DOCX_EXTENSION}"
