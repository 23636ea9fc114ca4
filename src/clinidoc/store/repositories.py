"""Record repositories.

Explicit store interfaces injected into the document service and the CLI,
plus in-memory implementations used directly in tests and as the base of the
JSON-file stores.
"""

import dataclasses
import logging
from datetime import datetime
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    Protocol,
    TypeVar,
)

from clinidoc.models.document import Document
from clinidoc.models.patient import Patient
from clinidoc.models.template import Template
from clinidoc.utils.dates import utc_now
from clinidoc.utils.exceptions import RecordNotFoundError, ValidationError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", Patient, Template, Document)


class PatientStore(Protocol):
    """Provides patient records by id."""

    def get(self, record_id: str) -> Optional[Patient]: ...

    def list(self) -> List[Patient]: ...

    def add(self, record: Patient) -> Patient: ...

    def update(self, record_id: str, changes: Mapping[str, Any]) -> Patient: ...

    def delete(self, record_id: str) -> None: ...


class TemplateStore(Protocol):
    """Provides template definitions by id."""

    def get(self, record_id: str) -> Optional[Template]: ...

    def list(self) -> List[Template]: ...

    def add(self, record: Template) -> Template: ...

    def update(self, record_id: str, changes: Mapping[str, Any]) -> Template: ...

    def delete(self, record_id: str) -> None: ...

    def increment_usage(self, record_id: str) -> Template: ...


class DocumentStore(Protocol):
    """Provides and persists documents by id."""

    def get(self, record_id: str) -> Optional[Document]: ...

    def list(self) -> List[Document]: ...

    def add(self, record: Document) -> Document: ...

    def update(self, record_id: str, changes: Mapping[str, Any]) -> Document: ...

    def delete(self, record_id: str) -> None: ...


class InMemoryRepository(Generic[RecordT]):
    """Dictionary-backed repository of immutable records.

    Updates never mutate a stored record: ``update`` builds a new record with
    the requested changes applied and replaces the stored one.

    Attributes:
        record_type: Name used in errors and logs ("patient", "template", "document")
        immutable_fields: Field names that ``update`` refuses to change
    """

    record_type = "record"
    immutable_fields: frozenset = frozenset({"id", "created_at"})

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._records: Dict[str, RecordT] = {}
        self.clock = clock

    def get(self, record_id: str) -> Optional[RecordT]:
        return self._records.get(record_id)

    def require(self, record_id: str) -> RecordT:
        """Return the record or raise RecordNotFoundError."""
        record = self.get(record_id)
        if record is None:
            raise RecordNotFoundError(self.record_type, record_id)
        return record

    def list(self) -> List[RecordT]:
        return list(self._records.values())

    def add(self, record: RecordT) -> RecordT:
        if record.id in self._records:
            raise ValidationError(
                f"{self.record_type} with id {record.id} already exists"
            )
        self._records[record.id] = record
        logger.debug(f"Added {self.record_type} {record.id}")
        self._after_change()
        return record

    def update(self, record_id: str, changes: Mapping[str, Any]) -> RecordT:
        """Apply a partial update and return the new record.

        Raises:
            RecordNotFoundError: If no record has this id
            ValidationError: If changes touch an immutable or unknown field
        """
        current = self.require(record_id)

        forbidden = set(changes) & self.immutable_fields
        if forbidden:
            raise ValidationError(
                f"Cannot change {sorted(forbidden)} of {self.record_type} {record_id}"
            )
        known = {f.name for f in dataclasses.fields(current)}
        unknown = set(changes) - known
        if unknown:
            raise ValidationError(
                f"Unknown {self.record_type} fields: {sorted(unknown)}"
            )

        updated = dataclasses.replace(current, **self._stamp(current, dict(changes)))
        self._records[record_id] = updated
        logger.debug(f"Updated {self.record_type} {record_id}: {sorted(changes)}")
        self._after_change()
        return updated

    def delete(self, record_id: str) -> None:
        self.require(record_id)
        del self._records[record_id]
        logger.debug(f"Deleted {self.record_type} {record_id}")
        self._after_change()

    def _stamp(self, current: RecordT, changes: Dict[str, Any]) -> Dict[str, Any]:
        """Add bookkeeping fields to an update."""
        changes.setdefault("updated_at", self.clock())
        return changes

    def _after_change(self) -> None:
        """Hook run after every mutation."""


class InMemoryPatientStore(InMemoryRepository[Patient]):
    record_type = "patient"


class InMemoryTemplateStore(InMemoryRepository[Template]):
    """Template repository; every edit bumps the minor version tag."""

    record_type = "template"

    def increment_usage(self, record_id: str) -> Template:
        """Increment usage count without touching the version tag."""
        current = self.require(record_id)
        updated = dataclasses.replace(current, usage_count=current.usage_count + 1)
        self._records[record_id] = updated
        self._after_change()
        return updated

    def _stamp(self, current: Template, changes: Dict[str, Any]) -> Dict[str, Any]:
        changes = super()._stamp(current, changes)
        changes.setdefault("version", bump_version_tag(current.version))
        return changes


class InMemoryDocumentStore(InMemoryRepository[Document]):
    """Document repository; every update bumps ``version``."""

    record_type = "document"
    immutable_fields = frozenset({"id", "created_at", "template_id", "patient_id"})

    def _stamp(self, current: Document, changes: Dict[str, Any]) -> Dict[str, Any]:
        changes = super()._stamp(current, changes)
        changes["version"] = current.version + 1
        return changes


def bump_version_tag(version: str) -> str:
    """Increment the last numeric component of a version tag.

    Example:
        >>> bump_version_tag("1.0")
        '1.1'
        >>> bump_version_tag("draft")
        'draft.1'
    """
    head, _, tail = version.rpartition(".")
    if tail.isdigit():
        return f"{head}.{int(tail) + 1}" if head else str(int(tail) + 1)
    return f"{version}.1"
