"""Asynchronous export to the output directory.

Serialization and file writes run in a worker thread so callers on an event
loop are never blocked. A second export for the same record while one is
pending is rejected rather than queued.
"""

import asyncio
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterator, Optional, Set

from clinidoc.export.docx_serializer import EXPORT_FAILURE_PHRASE, DocxExportSerializer
from clinidoc.export.filenames import document_export_filename, patient_export_filename
from clinidoc.export.patient_record import PatientRecordSerializer
from clinidoc.export.readiness import DataSanitizer
from clinidoc.logging_audit.audit import log_audit_event
from clinidoc.models.assembled import AssembledDocument
from clinidoc.models.document import DisplaySettings, Document
from clinidoc.models.patient import Patient
from clinidoc.models.template import Template
from clinidoc.utils.dates import utc_now
from clinidoc.utils.exceptions import ExportError, ExportInProgressError

logger = logging.getLogger(__name__)

EXPORT_IN_PROGRESS_MESSAGE = "יצוא כבר מתבצע"


@dataclass(frozen=True)
class ExportResult:
    """Outcome of a successful export.

    Attributes:
        filename: Generated filename
        path: Full path of the written file
        content: The bytes that were written
    """

    filename: str
    path: Path
    content: bytes


class DocumentExporter:
    """Runs serializers off the event loop and writes the artifacts.

    Export never changes a document's status; marking a document exported is
    a separate lifecycle action.

    Example:
        >>> exporter = DocumentExporter(Path("output"))
        >>> result = await exporter.export_document(assembled, document, template, patient)
        >>> result.filename
        'דנה-כהן-הערכה-ראשונית-2024-06-01.docx'
    """

    def __init__(
        self,
        output_dir: Path,
        serializer: Optional[DocxExportSerializer] = None,
        patient_serializer: Optional[PatientRecordSerializer] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize exporter.

        Args:
            output_dir: Directory exported files are written to (created on demand)
            serializer: Document serializer (default if None)
            patient_serializer: Patient record serializer (default if None)
            clock: Source of the date used in filenames
        """
        self.output_dir = Path(output_dir)
        self.serializer = serializer or DocxExportSerializer(clock=clock)
        self.patient_serializer = patient_serializer or PatientRecordSerializer(clock=clock)
        self.clock = clock
        self._in_flight: Set[str] = set()

    @property
    def in_flight(self) -> frozenset:
        """Operation keys of exports currently pending."""
        return frozenset(self._in_flight)

    @contextmanager
    def _guard(self, key: str) -> Iterator[None]:
        if key in self._in_flight:
            logger.warning(f"Rejected export {key}: already in progress")
            raise ExportInProgressError(EXPORT_IN_PROGRESS_MESSAGE)
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)

    async def export_document(
        self,
        assembled: AssembledDocument,
        document: Document,
        template: Optional[Template],
        patient: Optional[Patient],
        display_settings: Optional[DisplaySettings] = None,
    ) -> ExportResult:
        """Serialize a document and write it to the output directory.

        Raises:
            ExportInProgressError: If this document is already being exported
            ExportError: If serialization or the file write fails
        """
        document_id = document.id if document is not None else None
        key = f"document:{document_id}"
        start = time.time()

        with self._guard(key):
            try:
                content = await asyncio.to_thread(
                    self.serializer.serialize,
                    assembled,
                    document,
                    template,
                    patient,
                    display_settings,
                )
                filename = document_export_filename(patient, document.name, self.clock())
                path = await asyncio.to_thread(self._write, key, filename, content)
            except ExportError as e:
                log_audit_event("EXPORT_FAILED", {
                    "status": "failure",
                    "document_id": document_id,
                    "error_message": str(e),
                    "duration": time.time() - start,
                })
                raise

        log_audit_event("DOCUMENT_EXPORTED", {
            "status": "success",
            "document_id": document_id,
            "patient_id": patient.id,
            "template_id": template.id,
            "output_dir": str(self.output_dir),
            "size_bytes": len(content),
            "duration": time.time() - start,
        })
        return ExportResult(filename=filename, path=path, content=content)

    async def export_patient(
        self, patient: Optional[Patient], sanitize: bool = False
    ) -> ExportResult:
        """Serialize a patient record and write it to the output directory.

        Args:
            patient: Patient to export
            sanitize: Mask the ID number and phone and leave out the email

        Raises:
            ExportInProgressError: If this patient is already being exported
            ExportError: If serialization or the file write fails
        """
        patient_id = patient.id if patient is not None else None
        key = f"patient:{patient_id}"
        start = time.time()
        if sanitize and patient is not None:
            patient = DataSanitizer.sanitize_patient(patient)

        with self._guard(key):
            try:
                content = await asyncio.to_thread(self.patient_serializer.serialize, patient)
                filename = patient_export_filename(patient, self.clock())
                path = await asyncio.to_thread(self._write, key, filename, content)
            except ExportError as e:
                log_audit_event("EXPORT_FAILED", {
                    "status": "failure",
                    "patient_id": patient_id,
                    "error_message": str(e),
                    "duration": time.time() - start,
                })
                raise

        log_audit_event("PATIENT_EXPORTED", {
            "status": "success",
            "patient_id": patient_id,
            "output_dir": str(self.output_dir),
            "size_bytes": len(content),
            "sanitized": sanitize,
            "duration": time.time() - start,
        })
        return ExportResult(filename=filename, path=path, content=content)

    def _write(self, key: str, filename: str, content: bytes) -> Path:
        # Filenames carry the patient name, so only the directory is logged.
        path = self.output_dir / filename
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to write export {key} to {self.output_dir}: {e}")
            raise ExportError(f"{EXPORT_FAILURE_PHRASE}: {e}") from e
        logger.info(f"Wrote export {key} to {self.output_dir} ({len(content)} bytes)")
        return path
