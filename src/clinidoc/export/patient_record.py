"""Patient-level Word export.

Produces a standalone physiotherapy record for one patient: header, patient
details table, medical history table and a signature section carrying the
practice details from configuration.
"""

import logging
from typing import Callable, Optional

from clinidoc.config.schema import ExportConfig, PracticeConfig
from clinidoc.export.docx_serializer import EXPORT_FAILURE_PHRASE, RtlDocxWriter
from clinidoc.export.rtl import HEADING_COLOR, TITLE_COLOR, set_cell_shading
from clinidoc.models.patient import Address, Patient
from clinidoc.template_engine.formatter import FieldValueFormatter
from clinidoc.utils.dates import utc_now
from clinidoc.utils.exceptions import ExportError

logger = logging.getLogger(__name__)

RECORD_TITLE = "מסמך פיזיותרפיה"
NO_RECORDS_TEXT = "אין רישומים רפואיים"
HISTORY_HEADERS = ("תאריך", "אבחנה", "טיפול", "הערות")
BLANK_LINE = "_" * 15
HEADER_SHADING = "D9E2F3"


class PatientRecordSerializer(RtlDocxWriter):
    """Serializes a patient record into .docx bytes."""

    def __init__(
        self,
        export_config: Optional[ExportConfig] = None,
        practice: Optional[PracticeConfig] = None,
        formatter: Optional[FieldValueFormatter] = None,
        clock: Callable = utc_now,
    ):
        super().__init__(export_config, formatter, clock)
        self.practice = practice or PracticeConfig()

    def serialize(self, patient: Optional[Patient]) -> bytes:
        """Build the patient record artifact.

        Raises:
            ExportError: If the patient is missing or packing fails
        """
        if patient is None:
            logger.error("Patient export aborted: no patient given")
            raise ExportError(f"{EXPORT_FAILURE_PHRASE}: חסרים נתונים (patient)")

        try:
            doc = self._new_document()
            self._write_header(doc)
            self._write_details(doc, patient)
            self._write_history(doc, patient)
            self._write_signature(doc)
            content = self._to_bytes(doc)
        except Exception as e:
            logger.error(f"Packing patient record {patient.id} failed: {e}", exc_info=True)
            raise ExportError(f"{EXPORT_FAILURE_PHRASE}: {e}") from e

        logger.info(f"Serialized patient record {patient.id} ({len(content)} bytes)")
        return content

    def _write_header(self, doc) -> None:
        if self.practice.clinic_name:
            self._add_paragraph(doc, self.practice.clinic_name, bold=True, space_after=2)
        self._add_paragraph(
            doc,
            RECORD_TITLE,
            size=self.config.title_font_size,
            bold=True,
            color=TITLE_COLOR,
            space_after=4,
        )
        self._add_paragraph(doc, f"תאריך: {self._format_date(self.clock())}", space_after=12)

    def _write_details(self, doc, patient: Patient) -> None:
        self._add_heading(doc, "פרטי המטופל")
        rows = [
            ("שם מלא", patient.full_name),
            ("תעודת זהות", patient.id_number),
            ("תאריך לידה", self._format_date(patient.birth_date)),
            ("טלפון", patient.phone),
        ]
        if patient.email:
            rows.append(("אימייל", patient.email))
        rows.append(("כתובת", _format_address(patient.address)))

        table = self._add_table(doc, rows=len(rows), cols=2)
        for row, (label, value) in zip(table.rows, rows):
            self._fill_cell(row.cells[0], f"{label}:", bold=True, color=HEADING_COLOR)
            self._fill_cell(row.cells[1], value or "")

    def _write_history(self, doc, patient: Patient) -> None:
        self._add_heading(doc, "היסטוריה רפואית וטיפולים")
        if not patient.medical_history:
            self._add_paragraph(doc, NO_RECORDS_TEXT)
            return

        table = self._add_table(doc, rows=1, cols=len(HISTORY_HEADERS))
        for cell, header in zip(table.rows[0].cells, HISTORY_HEADERS):
            self._fill_cell(cell, header, bold=True)
            set_cell_shading(cell, HEADER_SHADING)

        for record in patient.medical_history:
            cells = table.add_row().cells
            self._fill_cell(cells[0], self._format_date(record.date))
            self._fill_cell(cells[1], record.diagnosis)
            self._fill_cell(cells[2], record.treatment)
            self._fill_cell(cells[3], record.notes or "-")

    def _write_signature(self, doc) -> None:
        self._add_paragraph(doc, space_after=24)
        self._add_paragraph(
            doc, f"תאריך: {BLANK_LINE}     חתימת הפיזיותרפיסט: {BLANK_LINE}"
        )
        self._add_labeled_line(
            doc, "שם הפיזיותרפיסט", self.practice.therapist_name or BLANK_LINE
        )
        self._add_labeled_line(
            doc, "מספר רישיון", self.practice.license_number or BLANK_LINE
        )


def _format_address(address: Optional[Address]) -> str:
    if address is None:
        return ""
    text = address.display()
    if address.postal_code:
        text = f"{text} {address.postal_code}".strip()
    return text


def serialize_patient_record(
    patient: Optional[Patient],
    practice: Optional[PracticeConfig] = None,
    export_config: Optional[ExportConfig] = None,
) -> bytes:
    """Build a patient record .docx with default formatting.

    Args:
        patient: Patient to export
        practice: Therapist name and licence number for the signature section
        export_config: Fonts, sizes and margins

    Returns:
        The .docx file content
    """
    return PatientRecordSerializer(export_config, practice).serialize(patient)
