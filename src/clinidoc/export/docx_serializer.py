"""Word (.docx) export of assembled documents.

Builds a right-to-left Word document from an AssembledDocument with
python-docx. Every paragraph and the section are flagged bidirectional and
right-aligned; runs holding Hebrew text are flagged ``w:rtl``.
"""

import io
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from docx import Document as DocxDocument
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.shared import Inches, Pt

from clinidoc.config.schema import ExportConfig
from clinidoc.export.rtl import (
    HEADING_COLOR,
    MUTED_COLOR,
    TITLE_COLOR,
    add_page_number_field,
    remove_table_borders,
    set_paragraph_rtl,
    set_section_rtl,
    set_table_rtl,
    style_run,
)
from clinidoc.models.assembled import AssembledDocument
from clinidoc.models.document import DisplaySettings, Document
from clinidoc.models.patient import Patient
from clinidoc.models.template import Template
from clinidoc.template_engine.autofill import calculate_age
from clinidoc.template_engine.formatter import FieldValueFormatter
from clinidoc.utils.dates import utc_now
from clinidoc.utils.exceptions import ExportError

logger = logging.getLogger(__name__)

# Fixed prefix of every export failure message
EXPORT_FAILURE_PHRASE = "שגיאה ביצוא קובץ Word"

UNKNOWN_AGE = "לא ידוע"
SIGNATURE_LINE = "_" * 25
SIGNATURE_LABELS = ("חתימת המטפל", "תאריך")


class RtlDocxWriter:
    """Shared python-docx plumbing for right-to-left exports.

    Subclasses call ``_new_document`` and then the ``_add_*`` helpers, which
    apply the configured font and the RTL flags consistently.
    """

    def __init__(
        self,
        export_config: Optional[ExportConfig] = None,
        formatter: Optional[FieldValueFormatter] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize writer.

        Args:
            export_config: Fonts, sizes and margins (defaults if None)
            formatter: Formatter used for dates (default formatter if None)
            clock: Source of the rendering timestamp and of "now" for ages
        """
        self.config = export_config or ExportConfig()
        self.formatter = formatter or FieldValueFormatter()
        self.clock = clock

    def _new_document(self):
        doc = DocxDocument()
        style = doc.styles["Normal"]
        style.font.name = self.config.font_name
        style.font.size = Pt(self.config.body_font_size)

        margin = Inches(self.config.margin_inches)
        for section in doc.sections:
            section.top_margin = margin
            section.bottom_margin = margin
            section.left_margin = margin
            section.right_margin = margin
            set_section_rtl(section)
        return doc

    def _add_paragraph(
        self,
        container,
        text: str = "",
        size: Optional[int] = None,
        bold: bool = False,
        color=None,
        space_after: int = 6,
    ):
        paragraph = container.add_paragraph()
        set_paragraph_rtl(paragraph)
        paragraph.paragraph_format.space_after = Pt(space_after)
        if text:
            self._add_run(paragraph, text, size, bold, color)
        return paragraph

    def _add_run(self, paragraph, text: str, size: Optional[int] = None,
                 bold: bool = False, color=None):
        run = paragraph.add_run(text)
        style_run(
            run,
            self.config.font_name,
            size or self.config.body_font_size,
            bold=bold,
            color=color,
        )
        return run

    def _add_heading(self, container, text: str):
        paragraph = self._add_paragraph(
            container,
            text,
            size=self.config.heading_font_size,
            bold=True,
            color=HEADING_COLOR,
            space_after=9,
        )
        paragraph.paragraph_format.space_before = Pt(12)
        return paragraph

    def _add_labeled_line(self, container, label: str, value: str, size: Optional[int] = None):
        paragraph = self._add_paragraph(container)
        self._add_run(paragraph, f"{label}: ", size, bold=True, color=HEADING_COLOR)
        self._add_run(paragraph, value, size)
        return paragraph

    def _add_table(self, doc, rows: int, cols: int, style: Optional[str] = "Table Grid"):
        table = doc.add_table(rows=rows, cols=cols)
        if style:
            table.style = style
        table.alignment = WD_TABLE_ALIGNMENT.RIGHT
        set_table_rtl(table)
        return table

    def _fill_cell(self, cell, text: str, bold: bool = False, color=None) -> None:
        # A new cell holds one empty paragraph; reuse it
        paragraph = cell.paragraphs[0]
        set_paragraph_rtl(paragraph)
        if text:
            self._add_run(paragraph, text, bold=bold, color=color)

    def _format_date(self, value) -> str:
        return self.formatter.format_date_value(value) or ""

    @staticmethod
    def _to_bytes(doc) -> bytes:
        buf = io.BytesIO()
        doc.save(buf)
        return buf.getvalue()


class DocxExportSerializer(RtlDocxWriter):
    """Serializes an assembled document into .docx bytes.

    Output order: title and template subtitle, patient block (gated by the
    display settings), metadata table, populated fields, signature block and
    a footer with the short document id, timestamp and page number.

    Example:
        >>> serializer = DocxExportSerializer()
        >>> content = serializer.serialize(assembled, document, template, patient)
        >>> content[:2]
        b'PK'
    """

    def serialize(
        self,
        assembled: AssembledDocument,
        document: Document,
        template: Optional[Template],
        patient: Optional[Patient],
        display_settings: Optional[DisplaySettings] = None,
    ) -> bytes:
        """Build the .docx artifact.

        Args:
            assembled: Assembly result for the document
            document: Document being exported
            template: Template referenced by the document
            patient: Patient referenced by the document
            display_settings: Overrides ``document.display_settings`` if given

        Returns:
            The .docx file content

        Raises:
            ExportError: If a required input is missing or building the
                artifact fails for any reason
        """
        missing = self._missing_inputs(assembled, document, template, patient)
        if missing:
            message = f"{EXPORT_FAILURE_PHRASE}: חסרים נתונים ({', '.join(missing)})"
            logger.error(f"Export aborted before packing, missing: {missing}")
            raise ExportError(message)

        settings = display_settings or document.display_settings

        try:
            doc = self._new_document()
            self._write_title(doc, document, template)
            if settings.show_patient_details:
                self._write_patient_block(doc, patient, settings.show_contact_details)
            self._write_metadata(doc, document)
            self._write_fields(doc, assembled)
            self._write_signature(doc)
            self._write_footer(doc, document)
            content = self._to_bytes(doc)
        except Exception as e:
            logger.error(f"Packing document {document.id} failed: {e}", exc_info=True)
            raise ExportError(f"{EXPORT_FAILURE_PHRASE}: {e}") from e

        logger.info(
            f"Serialized document {document.id} ({len(content)} bytes, "
            f"{len(assembled.populated_fields)} fields)"
        )
        return content

    @staticmethod
    def _missing_inputs(assembled, document, template, patient) -> List[str]:
        missing = []
        for name, value in (
            ("assembled", assembled),
            ("document", document),
            ("template", template),
            ("patient", patient),
        ):
            if value is None:
                missing.append(name)
        return missing

    def _write_title(self, doc, document: Document, template: Template) -> None:
        title = self._add_paragraph(
            doc,
            document.name,
            size=self.config.title_font_size,
            bold=True,
            color=TITLE_COLOR,
            space_after=4,
        )
        title.paragraph_format.keep_with_next = True
        self._add_paragraph(
            doc,
            template.name,
            size=self.config.heading_font_size,
            color=MUTED_COLOR,
            space_after=18,
        )

    def _write_patient_block(self, doc, patient: Patient, show_contact: bool) -> None:
        self._add_heading(doc, "פרטי המטופל")
        self._add_labeled_line(doc, "שם מלא", patient.full_name)
        self._add_labeled_line(doc, "תעודת זהות", patient.id_number)

        age = calculate_age(patient.birth_date, self.clock())
        self._add_labeled_line(doc, "גיל", str(age) if age is not None else UNKNOWN_AGE)

        if not show_contact:
            return
        self._add_labeled_line(doc, "טלפון", patient.phone)
        if patient.email:
            self._add_labeled_line(doc, "אימייל", patient.email)
        if patient.address is not None and patient.address.display():
            self._add_labeled_line(doc, "כתובת", patient.address.display())

    def _write_metadata(self, doc, document: Document) -> None:
        rows: List[Tuple[str, str]] = [
            ("תאריך יצירה", self._format_date(document.created_at)),
            ("עודכן לאחרונה", self._format_date(document.updated_at)),
            ("גרסה", str(document.version)),
        ]
        self._add_paragraph(doc, space_after=0)
        table = self._add_table(doc, rows=len(rows), cols=2)
        for row, (label, value) in zip(table.rows, rows):
            self._fill_cell(row.cells[0], label, bold=True, color=HEADING_COLOR)
            self._fill_cell(row.cells[1], value)

    def _write_fields(self, doc, assembled: AssembledDocument) -> None:
        self._add_paragraph(doc, space_after=6)
        for item in assembled.populated_fields:
            text = item.formatted_value.replace("\r\n", "\n").replace("\r", "\n")
            if "\n" not in text:
                self._add_labeled_line(doc, item.label, text)
                continue

            label = self._add_paragraph(doc, space_after=3)
            self._add_run(label, f"{item.label}:", bold=True, color=HEADING_COLOR)
            for line in text.split("\n"):
                self._add_paragraph(doc, line.strip() or " ", space_after=3)
            self._add_paragraph(doc, space_after=6)

    def _write_signature(self, doc) -> None:
        self._add_paragraph(doc, space_after=18)
        table = self._add_table(doc, rows=1, cols=len(SIGNATURE_LABELS), style=None)
        remove_table_borders(table)
        for cell, label in zip(table.rows[0].cells, SIGNATURE_LABELS):
            self._fill_cell(cell, SIGNATURE_LINE)
            label_paragraph = self._add_paragraph(cell, label, bold=True, space_after=0)
            label_paragraph.paragraph_format.space_before = Pt(3)

    def _write_footer(self, doc, document: Document) -> None:
        footer = doc.sections[0].footer
        paragraph = footer.paragraphs[0]
        set_paragraph_rtl(paragraph)

        rendered_at = self.formatter.format_datetime_value(self.clock()) or ""
        size = self.config.footer_font_size
        self._add_run(
            paragraph,
            f"מזהה מסמך: {document.id[-8:]} | הופק: {rendered_at} | עמוד ",
            size,
            color=MUTED_COLOR,
        )
        add_page_number_field(paragraph, self.config.font_name, size)
