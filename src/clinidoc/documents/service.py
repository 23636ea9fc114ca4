"""Document lifecycle service.

Creates documents from templates, applies single-field updates, moves
documents between statuses and assembles them for preview and export. Stores
are injected, so the service runs equally over in-memory and JSON-file
repositories.
"""

import copy
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, List, Optional, Tuple

from clinidoc.logging_audit.audit import log_audit_event
from clinidoc.models.assembled import AssembledDocument
from clinidoc.models.document import DisplaySettings, Document, DocumentStatus
from clinidoc.models.patient import Patient
from clinidoc.models.template import Template
from clinidoc.store.repositories import DocumentStore, PatientStore, TemplateStore
from clinidoc.template_engine.assembly import DocumentAssembler
from clinidoc.template_engine.autofill import derive_all
from clinidoc.template_engine.formatter import EXPORT_BLANK_MARKER
from clinidoc.utils.dates import utc_now
from clinidoc.utils.exceptions import (
    RecordNotFoundError,
    TemplateInactiveError,
    ValidationError,
)

logger = logging.getLogger(__name__)

NEW_DOCUMENT_TAG = "חדש"
COPY_NAME_PREFIX = "העתק של"


class DocumentService:
    """Document lifecycle operations over injected stores.

    Every mutation goes through ``DocumentStore.update`` and returns the new
    record; records are never changed in place.

    Example:
        >>> service = DocumentService(patients, templates, documents)
        >>> document = service.create_document(patient.id, template.id)
        >>> document = service.update_field(document.id, "chiefComplaint", "כאב גב")
        >>> document.version
        2
    """

    def __init__(
        self,
        patient_store: PatientStore,
        template_store: TemplateStore,
        document_store: DocumentStore,
        assembler: Optional[DocumentAssembler] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize service.

        Args:
            patient_store: Patient repository
            template_store: Template repository
            document_store: Document repository
            assembler: Document assembler (built on ``clock`` if None)
            clock: Source of timestamps and of "now" for age derivation
        """
        self.patients = patient_store
        self.templates = template_store
        self.documents = document_store
        self.clock = clock
        self.assembler = assembler or DocumentAssembler(clock=clock)

    def get_document(self, document_id: str) -> Document:
        """Return a document.

        Raises:
            RecordNotFoundError: If the document does not exist
        """
        document = self.documents.get(document_id)
        if document is None:
            raise RecordNotFoundError("document", document_id)
        return document

    def get_patient(self, patient_id: str) -> Patient:
        """Return a patient.

        Raises:
            RecordNotFoundError: If the patient does not exist
        """
        patient = self.patients.get(patient_id)
        if patient is None:
            raise RecordNotFoundError("patient", patient_id)
        return patient

    def get_template(self, template_id: str) -> Template:
        """Return a template.

        Raises:
            RecordNotFoundError: If the template does not exist
        """
        template = self.templates.get(template_id)
        if template is None:
            raise RecordNotFoundError("template", template_id)
        return template

    def resolve_references(self, document: Document) -> Tuple[Template, Patient]:
        """Look up the template and patient a document refers to.

        Raises:
            RecordNotFoundError: If either reference is dangling
        """
        return self.get_template(document.template_id), self.get_patient(document.patient_id)

    def create_document(
        self, patient_id: str, template_id: str, name: Optional[str] = None
    ) -> Document:
        """Start a new draft document from a template.

        Patient-derived fields are written into the document data once, at
        creation. Later changes to the patient record do not alter them.

        Args:
            patient_id: Patient the document is about
            template_id: Template to instantiate
            name: Document title (defaults to "{template} - {first} {last}")

        Returns:
            The stored document

        Raises:
            RecordNotFoundError: If the patient or template does not exist
            TemplateInactiveError: If the template is not active
        """
        patient = self.get_patient(patient_id)
        template = self.get_template(template_id)
        if not template.is_active:
            raise TemplateInactiveError(
                f"התבנית אינה פעילה: {template.name} (template id={template.id})"
            )

        now = self.clock()
        data = derive_all(template.fields, patient, now)
        document = Document(
            id=str(uuid.uuid4()),
            name=name or f"{template.name} - {patient.first_name} {patient.last_name}",
            template_id=template.id,
            patient_id=patient.id,
            data=data,
            content=template.content,
            status=DocumentStatus.DRAFT,
            version=1,
            tags=[template.category.value, NEW_DOCUMENT_TAG],
            created_at=now,
            updated_at=now,
        )
        self.documents.add(document)
        self.templates.increment_usage(template.id)

        log_audit_event("DOCUMENT_CREATED", {
            "status": "success",
            "document_id": document.id,
            "patient_id": patient.id,
            "template_id": template.id,
            "autofilled_fields": len(data),
        })
        return document

    def update_field(self, document_id: str, field_name: str, value: Any) -> Document:
        """Set one field value.

        Values for names the template does not declare are kept but logged,
        since assembly ignores them.

        Raises:
            RecordNotFoundError: If the document does not exist
        """
        document = self.get_document(document_id)

        template = self.templates.get(document.template_id)
        if template is not None and template.get_field(field_name) is None:
            logger.warning(
                f"Document {document_id}: template {template.id} declares no "
                f"field {field_name!r}"
            )

        data = copy.deepcopy(document.data)
        data[field_name] = copy.deepcopy(value)
        updated = self.documents.update(document_id, {"data": data})

        log_audit_event("DOCUMENT_UPDATED", {
            "status": "success",
            "document_id": document_id,
            "field": field_name,
            "version": updated.version,
        })
        return updated

    def update_display_settings(
        self,
        document_id: str,
        show_patient_details: Optional[bool] = None,
        show_contact_details: Optional[bool] = None,
    ) -> Document:
        """Change the preview and export presentation flags.

        Flags left as None keep their current value.
        """
        document = self.get_document(document_id)
        current = document.display_settings
        settings = DisplaySettings(
            show_patient_details=(
                current.show_patient_details
                if show_patient_details is None
                else show_patient_details
            ),
            show_contact_details=(
                current.show_contact_details
                if show_contact_details is None
                else show_contact_details
            ),
        )
        return self.documents.update(document_id, {"display_settings": settings})

    def rename(self, document_id: str, name: str) -> Document:
        """Change the document title.

        Raises:
            ValidationError: If the name is blank
        """
        if not name.strip():
            raise ValidationError("שם המסמך אינו יכול להיות ריק")
        self.get_document(document_id)
        return self.documents.update(document_id, {"name": name.strip()})

    def set_status(self, document_id: str, status: DocumentStatus) -> Document:
        """Move a document to any status.

        Moving to completed stamps ``completed_at``; moving to exported
        stamps ``exported_at``.

        Raises:
            RecordNotFoundError: If the document does not exist
            ValidationError: If the status string is unknown
        """
        if not isinstance(status, DocumentStatus):
            try:
                status = DocumentStatus(status)
            except ValueError as e:
                raise ValidationError(f"Unknown document status: {status!r}") from e

        previous = self.get_document(document_id).status
        changes = {"status": status}
        if status is DocumentStatus.COMPLETED:
            changes["completed_at"] = self.clock()
        elif status is DocumentStatus.EXPORTED:
            changes["exported_at"] = self.clock()

        updated = self.documents.update(document_id, changes)
        log_audit_event("DOCUMENT_STATUS_CHANGED", {
            "status": "success",
            "document_id": document_id,
            "from_status": previous.value,
            "to_status": status.value,
        })
        return updated

    def sign(self, document_id: str, signed_by: str) -> Document:
        """Sign a document.

        Raises:
            ValidationError: If the signer name is blank
        """
        if not signed_by.strip():
            raise ValidationError("שם החותם אינו יכול להיות ריק")
        self.get_document(document_id)

        updated = self.documents.update(document_id, {
            "status": DocumentStatus.SIGNED,
            "signed_by": signed_by.strip(),
            "signed_at": self.clock(),
        })
        log_audit_event("DOCUMENT_SIGNED", {
            "status": "success",
            "document_id": document_id,
        })
        return updated

    def duplicate(self, document_id: str, new_name: Optional[str] = None) -> Document:
        """Copy a document into a new draft.

        The copy gets a new id and fresh timestamps; data, content, tags and
        display settings are copied; completion, export and signature
        metadata are cleared.
        """
        original = self.get_document(document_id)
        now = self.clock()
        copied = Document(
            id=str(uuid.uuid4()),
            name=new_name or f"{COPY_NAME_PREFIX} {original.name}",
            template_id=original.template_id,
            patient_id=original.patient_id,
            data=copy.deepcopy(original.data),
            content=original.content,
            status=DocumentStatus.DRAFT,
            version=1,
            tags=list(original.tags),
            display_settings=original.display_settings,
            created_at=now,
            updated_at=now,
        )
        self.documents.add(copied)

        log_audit_event("DOCUMENT_DUPLICATED", {
            "status": "success",
            "document_id": copied.id,
            "source_document_id": original.id,
        })
        return copied

    def delete(self, document_id: str) -> None:
        """Delete a document; its template and patient are untouched."""
        self.documents.delete(document_id)
        log_audit_event("DOCUMENT_DELETED", {
            "status": "success",
            "document_id": document_id,
        })

    def list_for_patient(self, patient_id: str) -> List[Document]:
        """Documents about one patient, newest first."""
        documents = [d for d in self.documents.list() if d.patient_id == patient_id]
        return sorted(documents, key=lambda d: d.created_at, reverse=True)

    def search(self, term: str) -> List[Document]:
        """Documents whose name or tags contain ``term`` (case-insensitive)."""
        needle = term.strip().lower()
        if not needle:
            return self.documents.list()
        return [
            d for d in self.documents.list()
            if needle in d.name.lower() or any(needle in tag.lower() for tag in d.tags)
        ]

    def assemble(
        self, document_id: str, blank_marker: str = EXPORT_BLANK_MARKER
    ) -> AssembledDocument:
        """Resolve a document's references and assemble it.

        Raises:
            RecordNotFoundError: If the document, its template or its patient
                does not exist
        """
        document = self.get_document(document_id)
        template, patient = self.resolve_references(document)
        return self.assembler.assemble(template, patient, document, blank_marker)
