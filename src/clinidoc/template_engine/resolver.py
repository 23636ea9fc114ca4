"""Placeholder resolution for template bodies.

This module substitutes ``{{fieldName}}`` placeholders in free-text template
bodies with formatted field values, and replaces every placeholder that has
no value (or names no field at all) with a visible blank marker.
"""

import logging
import re
from typing import Any, Iterable, Mapping, Optional

from clinidoc.models.fields import FieldDefinition, is_blank
from clinidoc.template_engine.formatter import EXPORT_BLANK_MARKER, FieldValueFormatter

logger = logging.getLogger(__name__)

PATIENT_NAME_TOKEN = "{{patientName}}"

# Shown when the patient record has no usable name
PATIENT_NAME_FALLBACK = "שם לא זמין"

# Shortest span between "{{" and the next "}}"; cannot swallow a closing brace,
# so two placeholders are never merged into one match.
PLACEHOLDER_PATTERN = re.compile(r"\{\{[^}]*\}\}")


class PlaceholderResolver:
    """Resolves placeholders in template bodies.

    Example:
        >>> resolver = PlaceholderResolver()
        >>> resolver.resolve("שם: {{patientName}}, {{ghost}}", [], {}, "דנה כהן")
        'שם: דנה כהן, _____________________________'
    """

    def __init__(self, formatter: Optional[FieldValueFormatter] = None):
        """Initialize resolver.

        Args:
            formatter: Formatter used for field values (default formatter if None)
        """
        self.formatter = formatter or FieldValueFormatter()

    def resolve(
        self,
        template_body: str,
        fields: Iterable[FieldDefinition],
        values: Mapping[str, Any],
        patient_display_name: str,
        blank_marker: str = EXPORT_BLANK_MARKER,
    ) -> str:
        """Resolve every placeholder in a template body.

        Args:
            template_body: Text with ``{{name}}`` placeholders
            fields: Template field definitions
            values: Resolved values keyed by field name
            patient_display_name: Replacement for ``{{patientName}}``
            blank_marker: Replacement for placeholders without a value

        Returns:
            Text containing no ``{{...}}`` placeholders
        """
        display_name = patient_display_name
        if is_blank(display_name):
            display_name = PATIENT_NAME_FALLBACK
        result = template_body.replace(PATIENT_NAME_TOKEN, display_name)

        substituted = 0
        for template_field in fields:
            value = values.get(template_field.name)
            if is_blank(value):
                continue
            token = template_field.token
            if token in result:
                formatted = self.formatter.format(template_field, value, blank_marker)
                result = result.replace(token, formatted)
                substituted += 1

        unresolved = 0
        # Values may themselves contain braces, so sweep until none remain
        while PLACEHOLDER_PATTERN.search(result):
            result, count = PLACEHOLDER_PATTERN.subn(blank_marker, result)
            unresolved += count

        logger.debug(
            f"Resolved template body: {substituted} field tokens substituted, "
            f"{unresolved} left blank"
        )
        return result
