"""Unit tests for the document lifecycle service."""

import logging
from dataclasses import replace

import pytest

from clinidoc.documents.service import COPY_NAME_PREFIX, NEW_DOCUMENT_TAG, DocumentService
from clinidoc.models import DocumentStatus
from clinidoc.template_engine.formatter import PREVIEW_BLANK_MARKER
from clinidoc.utils.exceptions import (
    RecordNotFoundError,
    TemplateInactiveError,
    ValidationError,
)


@pytest.fixture
def service(stores, clock) -> DocumentService:
    patients, templates, documents = stores
    return DocumentService(patients, templates, documents, clock=clock)


@pytest.fixture
def created(service, sample_patient, simple_template):
    return service.create_document(sample_patient.id, simple_template.id)


class TestCreateDocument:
    """Test starting documents from templates."""

    def test_create_autofills_and_stores(self, service, created, frozen_now):
        # Assert
        assert created.data == {"fullName": "דנה כהן", "age": 34}
        assert created.name == "סיכום ביקור - דנה כהן"
        assert created.status is DocumentStatus.DRAFT
        assert created.version == 1
        assert created.tags == ["custom", NEW_DOCUMENT_TAG]
        assert created.created_at == frozen_now
        assert service.get_document(created.id) == created

    def test_create_increments_usage_without_version_bump(
        self, service, created, simple_template
    ):
        template = service.get_template(simple_template.id)
        assert template.usage_count == 1
        assert template.version == simple_template.version

    def test_custom_name(self, service, sample_patient, library_templates):
        document = service.create_document(
            sample_patient.id, "builtin-treatment-report", name="טיפול ראשון"
        )
        assert document.name == "טיפול ראשון"
        assert document.tags[0] == "treatment"
        assert "{{treatmentDate}}" in document.content

    def test_inactive_template_is_rejected(self, service, stores, sample_patient, simple_template):
        # Arrange
        _, templates, _ = stores
        templates.update(simple_template.id, {"is_active": False})

        # Act & Assert
        with pytest.raises(TemplateInactiveError):
            service.create_document(sample_patient.id, simple_template.id)

    @pytest.mark.parametrize(
        "patient_id, template_id",
        [("nobody", "tpl-simple"), ("patient-0001", "nothing")],
    )
    def test_missing_references(self, service, patient_id, template_id):
        with pytest.raises(RecordNotFoundError):
            service.create_document(patient_id, template_id)

    def test_later_patient_changes_do_not_alter_document(
        self, service, stores, created, sample_patient
    ):
        # Arrange
        patients, _, _ = stores
        patients.update(sample_patient.id, {"first_name": "דינה"})

        # Act
        document = service.get_document(created.id)

        # Assert
        assert document.data["fullName"] == "דנה כהן"

    def test_creation_is_audited(self, service, sample_patient, simple_template, caplog):
        with caplog.at_level(logging.INFO):
            service.create_document(sample_patient.id, simple_template.id)
        assert "AUDIT [DOCUMENT_CREATED]" in caplog.text


class TestUpdates:
    """Test field, name and display updates."""

    def test_update_field_bumps_version(self, service, created):
        # Act
        updated = service.update_field(created.id, "goals", ["הפחתת כאב"])

        # Assert
        assert updated.data["goals"] == ["הפחתת כאב"]
        assert updated.version == 2
        assert "goals" not in created.data

    def test_update_field_copies_value(self, service, created):
        value = ["א"]
        service.update_field(created.id, "goals", value)
        value.append("ב")
        assert service.get_document(created.id).data["goals"] == ["א"]

    def test_undeclared_field_is_kept_with_warning(self, service, created, caplog):
        # Act
        with caplog.at_level(logging.WARNING):
            updated = service.update_field(created.id, "ghostField", "x")

        # Assert
        assert updated.data["ghostField"] == "x"
        assert "ghostField" in caplog.text

    def test_update_missing_document(self, service):
        with pytest.raises(RecordNotFoundError):
            service.update_field("missing", "goals", [])

    def test_display_settings_partial_update(self, service, created):
        # Act
        updated = service.update_display_settings(created.id, show_contact_details=False)

        # Assert
        assert updated.display_settings.show_patient_details is True
        assert updated.display_settings.show_contact_details is False

    def test_rename(self, service, created):
        assert service.rename(created.id, "  שם חדש ").name == "שם חדש"
        with pytest.raises(ValidationError):
            service.rename(created.id, "   ")


class TestStatus:
    """Test lifecycle status changes."""

    def test_completed_stamps_completed_at(self, service, created, frozen_now):
        updated = service.set_status(created.id, DocumentStatus.COMPLETED)
        assert updated.status is DocumentStatus.COMPLETED
        assert updated.completed_at == frozen_now

    def test_status_from_string(self, service, created, frozen_now):
        updated = service.set_status(created.id, "exported")
        assert updated.status is DocumentStatus.EXPORTED
        assert updated.exported_at == frozen_now

    def test_any_status_can_move_back_to_draft(self, service, created):
        service.set_status(created.id, DocumentStatus.ARCHIVED)
        assert service.set_status(created.id, "draft").status is DocumentStatus.DRAFT

    def test_unknown_status(self, service, created):
        with pytest.raises(ValidationError, match="Unknown document status"):
            service.set_status(created.id, "lost")

    def test_sign(self, service, created, frozen_now):
        # Act
        signed = service.sign(created.id, " ד״ר לוי ")

        # Assert
        assert signed.status is DocumentStatus.SIGNED
        assert signed.signed_by == "ד״ר לוי"
        assert signed.signed_at == frozen_now

    def test_sign_requires_name(self, service, created):
        with pytest.raises(ValidationError):
            service.sign(created.id, "")


class TestDuplicateAndDelete:
    """Test copying, deleting, listing and searching."""

    def test_duplicate_copies_data_and_resets_metadata(self, service, created):
        # Arrange
        service.update_field(created.id, "goals", ["א", "ב"])
        service.sign(created.id, "לוי")
        original = service.get_document(created.id)

        # Act
        copy = service.duplicate(created.id)

        # Assert
        assert copy.id != original.id
        assert copy.name == f"{COPY_NAME_PREFIX} {original.name}"
        assert copy.data == original.data
        assert copy.data is not original.data
        assert copy.status is DocumentStatus.DRAFT
        assert copy.version == 1
        assert copy.signed_by is None

    def test_duplicate_assembles_like_original(self, service, created):
        service.update_field(created.id, "goals", ["א"])
        copy = service.duplicate(created.id, new_name="עותק")
        original_body = service.assemble(created.id).resolved_body
        assert service.assemble(copy.id).resolved_body == original_body

    def test_delete(self, service, created, stores, simple_template):
        # Act
        service.delete(created.id)

        # Assert
        with pytest.raises(RecordNotFoundError):
            service.get_document(created.id)
        _, templates, _ = stores
        assert templates.get(simple_template.id) is not None

    def test_list_for_patient_newest_first(self, service, stores, sample_patient, created):
        # Arrange
        _, _, documents = stores
        service.duplicate(created.id)
        documents.add(
            replace(created, id="dated", created_at=created.created_at.replace(year=2020))
        )

        # Act
        listed = service.list_for_patient(sample_patient.id)

        # Assert
        assert listed[-1].id == "dated"
        assert len(listed) == 3

    def test_search_by_name_and_tag(self, service, created):
        assert service.search("סיכום") == [created]
        assert service.search("CUSTOM") == [created]
        assert service.search("missing") == []


class TestAssemble:
    """Test assembly through the service."""

    def test_assemble_preview(self, service, created):
        # Arrange
        service.update_field(created.id, "visitDate", "2024-05-30")

        # Act
        assembled = service.assemble(created.id, PREVIEW_BLANK_MARKER)

        # Assert
        assert "גיל: 34" in assembled.resolved_body
        assert assembled.resolved_body.endswith(PREVIEW_BLANK_MARKER)
        assert assembled.completion_stats.required_filled == 2

    def test_dangling_reference(self, service, stores, created, sample_patient):
        patients, _, _ = stores
        patients.delete(sample_patient.id)
        with pytest.raises(RecordNotFoundError):
            service.assemble(created.id)
