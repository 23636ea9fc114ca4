"""Template Engine module.

This module provides field formatting, patient auto-fill, placeholder
resolution, document assembly and template loading functionality.
"""

from clinidoc.template_engine.assembly import DocumentAssembler
from clinidoc.template_engine.autofill import calculate_age, derive, derive_all
from clinidoc.template_engine.formatter import (
    EXPORT_BLANK_MARKER,
    INVALID_DATE_MARKER,
    PREVIEW_BLANK_MARKER,
    SIGNATURE_MARKER,
    FieldValueFormatter,
)
from clinidoc.template_engine.library import default_templates, seed_default_templates
from clinidoc.template_engine.loader import TemplateLoader
from clinidoc.template_engine.resolver import PlaceholderResolver
from clinidoc.template_engine.validators import (
    TemplateValidationResult,
    ensure_valid_template,
    extract_placeholders,
    validate_template,
)


__all__ = [
    "DocumentAssembler",
    "EXPORT_BLANK_MARKER",
    "FieldValueFormatter",
    "INVALID_DATE_MARKER",
    "PREVIEW_BLANK_MARKER",
    "PlaceholderResolver",
    "SIGNATURE_MARKER",
    "TemplateLoader",
    "TemplateValidationResult",
    "calculate_age",
    "default_templates",
    "derive",
    "derive_all",
    "ensure_valid_template",
    "extract_placeholders",
    "seed_default_templates",
    "validate_template",
]
