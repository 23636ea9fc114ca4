"""Pre-export checks and privacy sanitization.

Checks a patient (and optionally a document) before export. Errors block
the export; warnings are shown but do not.
"""

import dataclasses
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from clinidoc.models.document import Document
from clinidoc.models.patient import Patient
from clinidoc.utils.dates import parse_datetime, utc_now
from clinidoc.utils.hebrew import (
    is_valid_email,
    is_valid_israeli_id,
    is_valid_israeli_phone,
)

logger = logging.getLogger(__name__)

MAX_PLAUSIBLE_AGE = 120

MEDICAL_DETAILS_MISSING = "חסרים פרטים רפואיים חיוניים"

_SENSITIVE_PATTERNS = [
    (re.compile(r"\d{9}"), "תעודת זהות"),
    (re.compile(r"\d{3}-\d{7}"), "מספר טלפון"),
    (re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"), "כתובת אימייל"),
]

_ID_MASK = re.compile(r"(\d{3})\d{3}(\d{3})")
_PHONE_MASK = re.compile(r"(\d{3})(-?)\d{4}(\d{3})")
_ZERO_WIDTH = re.compile("[\u200B-\u200D\uFEFF]")


@dataclass(frozen=True)
class ReadinessWarning:
    """A non-blocking finding.

    Attributes:
        field: Dotted path of the offending value (e.g. "address.city")
        message: Hebrew message for the user
    """

    field: str
    message: str


@dataclass
class CheckResult:
    """Errors and warnings from one group of checks."""

    errors: List[str] = field(default_factory=list)
    warnings: List[ReadinessWarning] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class ExportReadiness:
    """Overall export readiness.

    Attributes:
        ready: True when nothing blocks the export
        issues: Blocking problems
        warnings: Non-blocking findings from every check
    """

    ready: bool
    issues: List[str] = field(default_factory=list)
    warnings: List[ReadinessWarning] = field(default_factory=list)


def validate_patient(
    patient: Patient, now: Optional[datetime] = None
) -> CheckResult:
    """Check patient identity, contact and address data.

    Args:
        patient: Patient to check
        now: Reference time for the age checks

    Returns:
        CheckResult with Hebrew messages
    """
    result = CheckResult()

    if not patient.first_name.strip():
        result.errors.append("שם פרטי חובה")
    if not patient.last_name.strip():
        result.errors.append("שם משפחה חובה")

    if not patient.id_number.strip():
        result.errors.append("תעודת זהות חובה")
    elif not is_valid_israeli_id(patient.id_number):
        result.errors.append("תעודת זהות לא תקינה")

    if not patient.phone.strip():
        result.errors.append("מספר טלפון חובה")
    elif not is_valid_israeli_phone(patient.phone):
        result.warnings.append(ReadinessWarning("phone", "פורמט מספר טלפון לא מוכר"))

    birth = parse_datetime(patient.birth_date)
    if birth is None:
        result.errors.append("תאריך לידה חובה")
    else:
        reference = now or utc_now()
        if birth > reference:
            result.errors.append("תאריך לידה לא יכול להיות בעתיד")
        elif _whole_years(birth, reference) > MAX_PLAUSIBLE_AGE:
            result.warnings.append(ReadinessWarning("birth_date", "גיל המטופל גבוה מהרגיל"))

    address = patient.address
    if address is None or not address.street.strip():
        result.warnings.append(ReadinessWarning("address.street", "כתובת רחוב חסרה"))
    if address is None or not address.city.strip():
        result.warnings.append(ReadinessWarning("address.city", "עיר חסרה"))

    if patient.email and not is_valid_email(patient.email):
        result.warnings.append(ReadinessWarning("email", "פורמט אימייל לא תקין"))

    return result


def validate_document(document: Document) -> CheckResult:
    """Check a document's identity and data before export."""
    result = CheckResult()

    if not document.name.strip():
        result.errors.append("כותרת המסמך חובה")
    if not document.patient_id.strip():
        result.errors.append("זיהוי מטופל חובה")
    if not document.template_id.strip():
        result.errors.append("זיהוי תבנית חובה")

    for pattern, description in _SENSITIVE_PATTERNS:
        if pattern.search(document.content):
            result.warnings.append(
                ReadinessWarning(
                    "content", f"יש לוודא שפרטים רגישים ({description}) מוצגים כראוי"
                )
            )

    if not document.data:
        result.warnings.append(ReadinessWarning("data", "לא נמצאו נתוני שדות במסמך"))

    return result


def validate_medical_history(patient: Patient) -> List[ReadinessWarning]:
    """Report missing parts of medical history entries."""
    if not patient.medical_history:
        return [ReadinessWarning("medical_history", "לא נמצאה היסטוריה רפואית")]

    warnings: List[ReadinessWarning] = []
    for index, record in enumerate(patient.medical_history):
        number = index + 1
        if not record.diagnosis.strip():
            warnings.append(ReadinessWarning(
                f"medical_history[{index}].diagnosis", f"רישום {number}: חסרה אבחנה"
            ))
        if not record.treatment.strip():
            warnings.append(ReadinessWarning(
                f"medical_history[{index}].treatment", f"רישום {number}: חסר טיפול"
            ))
        if record.date is None:
            warnings.append(ReadinessWarning(
                f"medical_history[{index}].date", f"רישום {number}: חסר תאריך"
            ))
    return warnings


def check_export_readiness(
    patient: Patient,
    document: Optional[Document] = None,
    now: Optional[datetime] = None,
) -> ExportReadiness:
    """Run every check and decide whether export may proceed.

    Medical history entries lacking a diagnosis or treatment block the
    export; other history findings are warnings.

    Example:
        >>> readiness = check_export_readiness(patient, document)
        >>> readiness.ready
        True
    """
    patient_result = validate_patient(patient, now)
    issues = list(patient_result.errors)
    warnings = list(patient_result.warnings)

    if document is not None:
        document_result = validate_document(document)
        issues.extend(document_result.errors)
        warnings.extend(document_result.warnings)

    history_warnings = validate_medical_history(patient)
    warnings.extend(history_warnings)
    if any(
        w.field.endswith(".diagnosis") or w.field.endswith(".treatment")
        for w in history_warnings
    ):
        issues.append(MEDICAL_DETAILS_MISSING)

    if issues:
        logger.info(f"Patient {patient.id} not ready for export: {len(issues)} issue(s)")

    return ExportReadiness(ready=not issues, issues=issues, warnings=warnings)


def _whole_years(birth: datetime, reference: datetime) -> int:
    years = reference.year - birth.year
    if (reference.month, reference.day) < (birth.month, birth.day):
        years -= 1
    return years


class DataSanitizer:
    """Privacy-preserving transformations applied before export."""

    @staticmethod
    def sanitize_patient(
        patient: Patient,
        include_full_id: bool = False,
        include_email: bool = False,
        include_phone: bool = False,
    ) -> Patient:
        """Return a copy with the ID and phone masked and the email dropped.

        Example:
            >>> DataSanitizer.sanitize_patient(patient).id_number
            '123***782'
        """
        changes = {}
        if not include_full_id and patient.id_number:
            changes["id_number"] = _ID_MASK.sub(r"\1***\2", patient.id_number, count=1)
        if not include_email:
            changes["email"] = None
        if not include_phone and patient.phone:
            changes["phone"] = _PHONE_MASK.sub(r"\1\2****\3", patient.phone, count=1)
        return dataclasses.replace(patient, **changes)

    @staticmethod
    def clean_text_content(text: Optional[str]) -> str:
        """Normalize line endings and spacing and strip zero-width characters."""
        if not text:
            return ""
        text = text.strip().replace("\r\n", "\n")
        text = re.sub(r"\n{3,}", "\n\n", text)
        text = re.sub(r"[ \t]{2,}", " ", text)
        return _ZERO_WIDTH.sub("", text)
