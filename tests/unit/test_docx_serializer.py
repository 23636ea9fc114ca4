"""Unit tests for right-to-left Word serialization."""

import io
from dataclasses import replace
from unittest.mock import patch

import pytest
from docx import Document as load_docx
from docx.oxml.ns import qn

from clinidoc.config.schema import ExportConfig, PracticeConfig
from clinidoc.export.docx_serializer import EXPORT_FAILURE_PHRASE, DocxExportSerializer
from clinidoc.export.patient_record import (
    HISTORY_HEADERS,
    NO_RECORDS_TEXT,
    RECORD_TITLE,
    PatientRecordSerializer,
    serialize_patient_record,
)
from clinidoc.models import DisplaySettings, FieldDefinition, FieldType
from clinidoc.template_engine.assembly import DocumentAssembler
from clinidoc.utils.exceptions import ExportError


def body_texts(docx_bytes: bytes) -> list:
    """All paragraph texts of the body, including table cells, in order."""
    doc = load_docx(io.BytesIO(docx_bytes))
    texts = [paragraph.text for paragraph in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            for cell in row.cells:
                texts.extend(paragraph.text for paragraph in cell.paragraphs)
    return texts


@pytest.fixture
def serializer(clock) -> DocxExportSerializer:
    return DocxExportSerializer(clock=clock)


@pytest.fixture
def assembled(clock, simple_template, sample_patient, sample_document):
    return DocumentAssembler(clock=clock).assemble(
        simple_template, sample_patient, sample_document
    )


@pytest.fixture
def exported(serializer, assembled, sample_document, simple_template, sample_patient) -> bytes:
    return serializer.serialize(assembled, sample_document, simple_template, sample_patient)


class TestDocxLayout:
    """Test the content and ordering of the exported document."""

    def test_output_is_a_zip_package(self, exported):
        assert exported[:2] == b"PK"

    def test_title_subtitle_and_patient_block(self, exported, sample_document, simple_template):
        # Act
        texts = body_texts(exported)

        # Assert
        assert texts[0] == sample_document.name
        assert texts[1] == simple_template.name
        assert "פרטי המטופל" in texts
        assert "שם מלא: דנה כהן" in texts
        assert "תעודת זהות: 000000018" in texts
        assert "גיל: 34" in texts
        assert "טלפון: 050-1234567" in texts
        assert "אימייל: dana@example.com" in texts
        assert "כתובת: הרצל 10, תל אביב" in texts

    def test_populated_fields_only(self, exported):
        # Act
        texts = body_texts(exported)

        # Assert
        assert "מטרות: הפחתת כאב, שיפור יציבה" in texts
        assert "תאריך ביקור: 30/05/2024" in texts
        assert not any(text.startswith("חתימה:") for text in texts)

    def test_metadata_table(self, exported):
        texts = body_texts(exported)
        assert "תאריך יצירה" in texts
        assert "01/06/2024" in texts
        assert "גרסה" in texts

    def test_signature_block(self, exported):
        texts = body_texts(exported)
        assert "חתימת המטפל" in texts
        assert "תאריך" in texts

    def test_footer_has_short_id_and_page_field(self, exported):
        # Arrange
        doc = load_docx(io.BytesIO(exported))
        footer_paragraph = doc.sections[0].footer.paragraphs[0]

        # Act
        field = footer_paragraph._p.find(qn("w:fldSimple"))

        # Assert
        assert "מזהה מסמך: abcdef12" in footer_paragraph.text
        assert "הופק: 01/06/2024 10:30" in footer_paragraph.text
        assert field is not None
        assert field.get(qn("w:instr")) == "PAGE"

    def test_hidden_patient_details(
        self, serializer, assembled, sample_document, simple_template, sample_patient
    ):
        # Act
        content = serializer.serialize(
            assembled,
            sample_document,
            simple_template,
            sample_patient,
            DisplaySettings(show_patient_details=False),
        )

        # Assert
        texts = body_texts(content)
        assert "פרטי המטופל" not in texts
        assert "שם מלא: דנה כהן" not in texts

    def test_hidden_contact_details(
        self, serializer, assembled, sample_document, simple_template, sample_patient
    ):
        # Arrange
        document = replace(
            sample_document, display_settings=DisplaySettings(show_contact_details=False)
        )

        # Act
        texts = body_texts(
            serializer.serialize(assembled, document, simple_template, sample_patient)
        )

        # Assert
        assert "שם מלא: דנה כהן" in texts
        assert not any(text.startswith("טלפון") for text in texts)
        assert not any(text.startswith("כתובת") for text in texts)

    def test_unknown_age(
        self, serializer, assembled, sample_document, simple_template, sample_patient
    ):
        patient = replace(sample_patient, birth_date=None)
        texts = body_texts(
            serializer.serialize(assembled, sample_document, simple_template, patient)
        )
        assert "גיל: לא ידוע" in texts

    def test_multiline_value_becomes_paragraphs(
        self, clock, serializer, simple_template, sample_patient, sample_document
    ):
        # Arrange
        notes = FieldDefinition(name="notes", label="הערות", type=FieldType.LONG_TEXT, order=9)
        template = replace(simple_template, fields=[*simple_template.fields, notes])
        document = replace(
            sample_document, data={**sample_document.data, "notes": "שורה ראשונה\r\nשורה שנייה"}
        )
        assembled = DocumentAssembler(clock=clock).assemble(template, sample_patient, document)

        # Act
        texts = body_texts(serializer.serialize(assembled, document, template, sample_patient))

        # Assert
        assert "הערות:" in texts
        index = texts.index("שורה ראשונה")
        assert texts[index + 1] == "שורה שנייה"


class TestRtlMarkup:
    """Test the right-to-left flags written into the package."""

    def test_every_body_paragraph_is_bidi_and_right_aligned(self, exported):
        # Arrange
        doc = load_docx(io.BytesIO(exported))

        # Act & Assert
        for paragraph in doc.paragraphs:
            assert paragraph._p.pPr.find(qn("w:bidi")) is not None
            assert paragraph._p.pPr.find(qn("w:jc")).get(qn("w:val")) == "right"

    def test_section_is_rtl(self, exported):
        doc = load_docx(io.BytesIO(exported))
        assert doc.sections[0]._sectPr.find(qn("w:bidi")) is not None

    def test_tables_are_bidi_visual(self, exported):
        doc = load_docx(io.BytesIO(exported))
        assert len(doc.tables) == 2
        for table in doc.tables:
            assert table._tbl.tblPr.find(qn("w:bidiVisual")) is not None

    def test_signature_table_has_no_borders(self, exported):
        # Arrange
        doc = load_docx(io.BytesIO(exported))
        borders = doc.tables[-1]._tbl.tblPr.find(qn("w:tblBorders"))

        # Assert
        assert borders is not None
        assert {child.get(qn("w:val")) for child in borders} == {"nil"}

    def test_hebrew_runs_are_rtl_with_complex_script_font(self, exported):
        # Arrange
        doc = load_docx(io.BytesIO(exported))
        run = doc.paragraphs[0].runs[0]

        # Assert
        assert run.font.rtl is True
        assert run.font.complex_script is True
        assert run._r.rPr.rFonts.get(qn("w:cs")) == "Arial"
        assert run._r.rPr.find(qn("w:szCs")).get(qn("w:val")) == "36"

    def test_latin_runs_are_not_flagged_rtl(self, exported):
        doc = load_docx(io.BytesIO(exported))
        latin = [
            run
            for paragraph in doc.paragraphs
            for run in paragraph.runs
            if run.text == "dana@example.com"
        ]
        assert latin
        assert latin[0].font.rtl is None

    def test_configured_font(self, clock, assembled, sample_document, simple_template, sample_patient):
        serializer = DocxExportSerializer(ExportConfig(font_name="David"), clock=clock)
        doc = load_docx(
            io.BytesIO(
                serializer.serialize(assembled, sample_document, simple_template, sample_patient)
            )
        )
        assert doc.paragraphs[0].runs[0].font.name == "David"


class TestDocxErrors:
    """Test failure handling at the export boundary."""

    @pytest.mark.parametrize("missing", ["assembled", "document", "template", "patient"])
    def test_missing_input_raises_export_error(
        self, serializer, assembled, sample_document, simple_template, sample_patient, missing
    ):
        # Arrange
        inputs = {
            "assembled": assembled,
            "document": sample_document,
            "template": simple_template,
            "patient": sample_patient,
        }
        inputs[missing] = None

        # Act & Assert
        with pytest.raises(ExportError) as exc_info:
            serializer.serialize(**inputs)
        assert EXPORT_FAILURE_PHRASE in str(exc_info.value)
        assert missing in str(exc_info.value)

    def test_packing_failure_is_wrapped(
        self, serializer, assembled, sample_document, simple_template, sample_patient
    ):
        # Arrange
        failure = RuntimeError("zip writer broke")

        # Act
        with patch.object(DocxExportSerializer, "_to_bytes", side_effect=failure):
            with pytest.raises(ExportError) as exc_info:
                serializer.serialize(assembled, sample_document, simple_template, sample_patient)

        # Assert
        assert str(exc_info.value).startswith(EXPORT_FAILURE_PHRASE)
        assert exc_info.value.__cause__ is failure


class TestPatientRecord:
    """Test the patient-level record export."""

    def test_sections(self, clock, sample_patient):
        # Arrange
        serializer = PatientRecordSerializer(clock=clock)

        # Act
        texts = body_texts(serializer.serialize(sample_patient))

        # Assert
        assert texts[0] == RECORD_TITLE
        assert "תאריך: 01/06/2024" in texts
        assert "שם מלא:" in texts
        assert "15/05/1990" in texts
        assert "הרצל 10, תל אביב 6100000" in texts
        for header in HISTORY_HEADERS:
            assert header in texts
        assert "כאבי גב תחתון" in texts
        assert "10/01/2024" in texts

    def test_history_header_is_shaded(self, clock, sample_patient):
        # Arrange
        content = PatientRecordSerializer(clock=clock).serialize(sample_patient)
        doc = load_docx(io.BytesIO(content))

        # Act
        header_cell = doc.tables[1].rows[0].cells[0]
        shading = header_cell._element.tcPr.find(qn("w:shd"))

        # Assert
        assert shading is not None
        assert len(doc.tables[1].rows) == 2

    def test_no_history(self, clock, sample_patient):
        patient = replace(sample_patient, medical_history=[])
        texts = body_texts(PatientRecordSerializer(clock=clock).serialize(patient))
        assert NO_RECORDS_TEXT in texts

    def test_practice_details_in_signature(self, sample_patient):
        # Arrange
        practice = PracticeConfig(
            therapist_name="יעל לוי", license_number="12345", clinic_name="מרפאת הצפון"
        )

        # Act
        texts = body_texts(serialize_patient_record(sample_patient, practice))

        # Assert
        assert texts[0] == "מרפאת הצפון"
        assert "שם הפיזיותרפיסט: יעל לוי" in texts
        assert "מספר רישיון: 12345" in texts

    def test_missing_patient(self):
        with pytest.raises(ExportError, match=EXPORT_FAILURE_PHRASE):
            PatientRecordSerializer().serialize(None)
