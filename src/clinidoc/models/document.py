"""Document data model.

A document is the per-patient instantiation of a template: it holds the raw
values entered for the template's fields together with lifecycle metadata.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from clinidoc.utils.dates import parse_datetime, to_iso, utc_now


class DocumentStatus(Enum):
    """Lifecycle status of a document.

    Any status may move to any other through an explicit action.
    """

    DRAFT = "draft"
    COMPLETED = "completed"
    SIGNED = "signed"
    EXPORTED = "exported"
    ARCHIVED = "archived"

    @property
    def label(self) -> str:
        """Hebrew display label."""
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    DocumentStatus.DRAFT: "טיוטה",
    DocumentStatus.COMPLETED: "הושלם",
    DocumentStatus.SIGNED: "נחתם",
    DocumentStatus.EXPORTED: "יוצא",
    DocumentStatus.ARCHIVED: "בארכיון",
}


@dataclass(frozen=True)
class DisplaySettings:
    """Presentation flags for preview and export.

    Attributes:
        show_patient_details: Emit the patient identity block
        show_contact_details: Emit phone, email and address inside that block
    """

    show_patient_details: bool = True
    show_contact_details: bool = True

    def to_dict(self) -> Dict[str, bool]:
        return {
            "show_patient_details": self.show_patient_details,
            "show_contact_details": self.show_contact_details,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DisplaySettings":
        if not data:
            return cls()
        return cls(
            show_patient_details=bool(
                data.get("show_patient_details", data.get("showPatientDetails", True))
            ),
            show_contact_details=bool(
                data.get("show_contact_details", data.get("showContactDetails", True))
            ),
        )


@dataclass(frozen=True)
class Document:
    """A per-patient instantiation of a template.

    Attributes:
        id: Unique document identifier
        name: Document title
        template_id: Referenced template (immutable once set)
        patient_id: Referenced patient (immutable once set)
        data: Raw field values keyed by field name
        content: Snapshot of the template body at creation time
        status: Lifecycle status
        version: Incremented on every update
        tags: Free-form tags
        display_settings: Preview and export presentation flags
        created_at: Creation timestamp
        updated_at: Last update timestamp
        completed_at: Set when status moves to completed
        exported_at: Set when status moves to exported
        signed_by: Name of the signing therapist
        signed_at: Signature timestamp
    """

    id: str
    name: str
    template_id: str
    patient_id: str
    data: Dict[str, Any] = field(default_factory=dict)
    content: str = ""
    status: DocumentStatus = DocumentStatus.DRAFT
    version: int = 1
    tags: List[str] = field(default_factory=list)
    display_settings: DisplaySettings = field(default_factory=DisplaySettings)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    exported_at: Optional[datetime] = None
    signed_by: Optional[str] = None
    signed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary.

        Field values are deep-copied so the result never aliases ``data``.
        """
        return {
            "id": self.id,
            "name": self.name,
            "template_id": self.template_id,
            "patient_id": self.patient_id,
            "data": copy.deepcopy(self.data),
            "content": self.content,
            "status": self.status.value,
            "version": self.version,
            "tags": list(self.tags),
            "display_settings": self.display_settings.to_dict(),
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
            "completed_at": to_iso(self.completed_at),
            "exported_at": to_iso(self.exported_at),
            "signed_by": self.signed_by,
            "signed_at": to_iso(self.signed_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """Build a document from a dictionary.

        Raises:
            KeyError: If id, name, template_id or patient_id is missing
            ValueError: If status is unknown
        """
        return cls(
            id=str(data["id"]),
            name=data["name"],
            template_id=str(
                data["template_id"] if "template_id" in data else data["templateId"]
            ),
            patient_id=str(
                data["patient_id"] if "patient_id" in data else data["patientId"]
            ),
            data=copy.deepcopy(data.get("data") or {}),
            content=data.get("content") or "",
            status=DocumentStatus(data.get("status", "draft")),
            version=int(data.get("version", 1)),
            tags=list(data.get("tags") or []),
            display_settings=DisplaySettings.from_dict(
                data.get("display_settings", data.get("displaySettings"))
            ),
            created_at=parse_datetime(data.get("created_at")) or utc_now(),
            updated_at=parse_datetime(data.get("updated_at")) or utc_now(),
            completed_at=parse_datetime(data.get("completed_at")),
            exported_at=parse_datetime(data.get("exported_at")),
            signed_by=data.get("signed_by"),
            signed_at=parse_datetime(data.get("signed_at")),
        )
