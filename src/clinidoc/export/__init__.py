"""Export module.

This module serializes assembled documents and patient records to Word
(.docx) and writes them to the output directory.
"""

from clinidoc.export.docx_serializer import EXPORT_FAILURE_PHRASE, DocxExportSerializer
from clinidoc.export.exporter import DocumentExporter, ExportResult
from clinidoc.export.filenames import (
    document_export_filename,
    patient_export_filename,
    sanitize_filename_part,
)
from clinidoc.export.patient_record import PatientRecordSerializer, serialize_patient_record
from clinidoc.export.readiness import (
    DataSanitizer,
    ExportReadiness,
    ReadinessWarning,
    check_export_readiness,
    validate_document,
    validate_medical_history,
    validate_patient,
)

__all__ = [
    "EXPORT_FAILURE_PHRASE",
    "DataSanitizer",
    "DocumentExporter",
    "DocxExportSerializer",
    "ExportReadiness",
    "ExportResult",
    "PatientRecordSerializer",
    "ReadinessWarning",
    "check_export_readiness",
    "document_export_filename",
    "patient_export_filename",
    "sanitize_filename_part",
    "serialize_patient_record",
    "validate_document",
    "validate_medical_history",
    "validate_patient",
]
