"""Template validation functions.

This module provides validation functions for document templates including:
- Placeholder extraction
- Structural checks on field definitions
- Placeholder-to-field consistency checks
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import List

from clinidoc.models.fields import FieldType
from clinidoc.models.template import Template
from clinidoc.utils.exceptions import TemplateValidationError


logger = logging.getLogger(__name__)

# Reserved placeholder resolved from the patient record, not from a field
RESERVED_PLACEHOLDERS = {"patientName"}

_PLACEHOLDER_NAME_PATTERN = re.compile(r"\{\{([^{}]+)\}\}")


@dataclass
class TemplateValidationResult:
    """Outcome of validating a template definition.

    Attributes:
        errors: Problems that make the template unusable
        warnings: Problems that degrade output but do not block use
    """

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def extract_placeholders(template_body: str) -> set[str]:
    """Extract all placeholders from a template body.

    Placeholders are identified by the pattern {{name}}.

    Args:
        template_body: Template body text

    Returns:
        Set of unique placeholder names (without {{ }} delimiters)
    """
    placeholders = set(_PLACEHOLDER_NAME_PATTERN.findall(template_body))
    logger.debug(f"Extracted {len(placeholders)} unique placeholders")
    return placeholders


def validate_template(template: Template) -> TemplateValidationResult:
    """Validate a template definition.

    Errors:
        - duplicate field names
        - patient-derived field without a patient source
        - empty field name

    Warnings:
        - duplicate ``order`` values (ties fall back to declaration order)
        - choice field without options
        - placeholder that matches no field
        - structural field flagged as required

    Args:
        template: Template to validate

    Returns:
        TemplateValidationResult with errors and warnings
    """
    result = TemplateValidationResult()

    names = Counter(template_field.name for template_field in template.fields)
    for name, count in sorted(names.items()):
        if not name.strip():
            result.errors.append("Field with empty name")
        elif count > 1:
            result.errors.append(f"Duplicate field name '{name}' ({count} fields)")

    orders = Counter(template_field.order for template_field in template.fields)
    for order, count in sorted(orders.items()):
        if count > 1:
            result.warnings.append(
                f"Order {order} is shared by {count} fields; declaration order is used"
            )

    for template_field in template.fields:
        if (
            template_field.type is FieldType.PATIENT_DERIVED
            and not template_field.patient_source_field
        ):
            result.errors.append(
                f"Patient-derived field '{template_field.name}' has no patient source"
            )
        if template_field.type.is_choice and not template_field.options:
            result.warnings.append(
                f"Choice field '{template_field.name}' has no options"
            )
        if template_field.type.is_structural and template_field.is_required:
            result.warnings.append(
                f"Structural field '{template_field.name}' is marked required "
                f"and can never be filled"
            )

    declared = set(names)
    for placeholder in sorted(extract_placeholders(template.content)):
        if placeholder not in declared and placeholder not in RESERVED_PLACEHOLDERS:
            result.warnings.append(
                f"Placeholder '{{{{{placeholder}}}}}' matches no field and will be "
                f"rendered blank"
            )

    if result.errors:
        logger.warning(
            f"Template {template.id} failed validation: {len(result.errors)} errors"
        )
    else:
        logger.debug(
            f"Template {template.id} validated with {len(result.warnings)} warnings"
        )

    return result


def ensure_valid_template(template: Template) -> TemplateValidationResult:
    """Validate a template and raise if it has errors.

    Returns:
        The validation result (warnings only)

    Raises:
        TemplateValidationError: If validation reports errors
    """
    result = validate_template(template)
    if not result.is_valid:
        raise TemplateValidationError(
            f"Template '{template.name}' is invalid: {'; '.join(result.errors)}"
        )
    return result
