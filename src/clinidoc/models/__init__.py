"""Models module.

This module provides data models and dataclasses for the application.
"""

from clinidoc.models.assembled import AssembledDocument, CompletionStats, PopulatedField
from clinidoc.models.document import DisplaySettings, Document, DocumentStatus
from clinidoc.models.fields import (
    FieldDefinition,
    FieldOption,
    FieldType,
    FieldValidation,
    is_blank,
)
from clinidoc.models.patient import Address, MedicalRecord, Patient
from clinidoc.models.template import Template, TemplateCategory

__all__ = [
    "Address",
    "AssembledDocument",
    "CompletionStats",
    "DisplaySettings",
    "Document",
    "DocumentStatus",
    "FieldDefinition",
    "FieldOption",
    "FieldType",
    "FieldValidation",
    "MedicalRecord",
    "Patient",
    "PopulatedField",
    "Template",
    "TemplateCategory",
    "is_blank",
]
