"""Patient auto-fill derivation.

Computes values of patient-derived fields from a patient record. Failure to
derive is never an error: it yields None so the field renders as blank.
"""

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, Optional

from clinidoc.models.fields import (
    ADDRESS_SOURCE,
    AGE_SOURCE,
    FULL_NAME_SOURCE,
    FieldDefinition,
    FieldType,
)
from clinidoc.models.patient import Patient
from clinidoc.utils.dates import parse_datetime, utc_now

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365.25

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def derive(
    field: FieldDefinition, patient: Patient, now: Optional[datetime] = None
) -> Optional[Any]:
    """Derive a field value from the patient record.

    Args:
        field: Field definition; only patient-derived fields resolve
        patient: Patient record to project
        now: Reference time for age derivation (defaults to current UTC time)

    Returns:
        Derived value, or None if the field is not patient-derived or the
        patient lacks the source data

    Example:
        >>> field = FieldDefinition(
        ...     name="age", label="Age", type=FieldType.PATIENT_DERIVED,
        ...     patient_source_field="age")
        >>> derive(field, patient, now=datetime(2024, 6, 1))
        34
    """
    if field.type is not FieldType.PATIENT_DERIVED:
        return None

    source = (field.patient_source_field or "").strip()
    if not source:
        logger.debug(f"Field {field.name} has no patient source, nothing to derive")
        return None

    # fullName and full_name name the same source
    key = _CAMEL_BOUNDARY.sub("_", source).lower()
    handler = _SOURCE_HANDLERS.get(key)
    if handler is not None:
        return handler(patient, now)
    return _derive_attribute(patient, key)


def derive_all(
    fields: Iterable[FieldDefinition], patient: Patient, now: Optional[datetime] = None
) -> Dict[str, Any]:
    """Derive every patient-derived field that resolves to a value.

    Returns:
        Mapping of field name to derived value; unresolved fields are absent
    """
    derived: Dict[str, Any] = {}
    for template_field in fields:
        value = derive(template_field, patient, now)
        if value is not None:
            derived[template_field.name] = value
    return derived


def calculate_age(birth_date: Any, now: Optional[datetime] = None) -> Optional[int]:
    """Compute age in whole years as floor((now - birth) / 365.25 days).

    Args:
        birth_date: date, datetime or ISO string
        now: Reference time (defaults to current UTC time)

    Returns:
        Age in years, or None if the birth date is missing, unparseable or
        lies after ``now``
    """
    birth = parse_datetime(birth_date)
    if birth is None:
        return None

    reference = now or utc_now()
    elapsed_days = (reference - birth).total_seconds() / 86400
    if elapsed_days < 0:
        logger.warning(f"Birth date {birth.date().isoformat()} is in the future")
        return None
    return math.floor(elapsed_days / DAYS_PER_YEAR)


def _derive_full_name(patient: Patient, now: Optional[datetime]) -> Optional[str]:
    return patient.full_name or None


def _derive_age(patient: Patient, now: Optional[datetime]) -> Optional[int]:
    return calculate_age(patient.birth_date, now)


def _derive_address(patient: Patient, now: Optional[datetime]) -> Optional[str]:
    if patient.address is None:
        return None
    return patient.address.display() or None


def _derive_attribute(patient: Patient, attribute: str) -> Optional[Any]:
    value = getattr(patient, attribute, None)

    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (int, float)):
        return value

    if value is not None:
        logger.debug(f"Patient attribute {attribute} is not a primitive value")
    return None


_SOURCE_HANDLERS: Dict[str, Callable[[Patient, Optional[datetime]], Optional[Any]]] = {
    FULL_NAME_SOURCE: _derive_full_name,
    AGE_SOURCE: _derive_age,
    ADDRESS_SOURCE: _derive_address,
}
