"""Document template data model."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from clinidoc.models.fields import FieldDefinition
from clinidoc.utils.dates import parse_datetime, to_iso, utc_now


class TemplateCategory(Enum):
    """Clinical category of a template."""

    ASSESSMENT = "assessment"
    TREATMENT = "treatment"
    PROGRESS = "progress"
    DISCHARGE = "discharge"
    EXERCISE = "exercise"
    REFERRAL = "referral"
    CERTIFICATE = "certificate"
    INVOICE = "invoice"
    INSURANCE = "insurance"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Template:
    """A reusable document blueprint.

    Attributes:
        id: Unique template identifier
        name: Display name
        fields: Field definitions; use ``ordered_fields`` for display order
        content: Body text with ``{{fieldName}}`` and ``{{patientName}}`` placeholders
        category: Clinical category
        description: Free-text description
        version: Version tag, bumped on every edit
        is_active: Whether new documents may be started from this template
        usage_count: Number of documents created from this template
        author_name: Template author
        created_at: Creation timestamp
        updated_at: Last update timestamp
    """

    id: str
    name: str
    fields: List[FieldDefinition] = field(default_factory=list)
    content: str = ""
    category: TemplateCategory = TemplateCategory.CUSTOM
    description: str = ""
    version: str = "1.0"
    is_active: bool = True
    usage_count: int = 0
    author_name: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def ordered_fields(self) -> List[FieldDefinition]:
        """Fields sorted by ``order``; ties keep their declaration order."""
        return sorted(self.fields, key=lambda f: f.order)

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        """Return the field with the given name, if the template declares it."""
        for template_field in self.fields:
            if template_field.name == name:
                return template_field
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "fields": [template_field.to_dict() for template_field in self.fields],
            "content": self.content,
            "version": self.version,
            "is_active": self.is_active,
            "usage_count": self.usage_count,
            "author_name": self.author_name,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Template":
        """Build a template from a dictionary.

        Raises:
            KeyError: If id, name or a field's required keys are missing
            ValueError: If category or a field type is unknown
        """
        return cls(
            id=str(data["id"]),
            name=data["name"],
            fields=[FieldDefinition.from_dict(item) for item in data.get("fields") or []],
            content=data.get("content") or "",
            category=TemplateCategory(data.get("category", "custom")),
            description=data.get("description") or "",
            version=str(data.get("version", "1.0")),
            is_active=bool(data.get("is_active", data.get("isActive", True))),
            usage_count=int(data.get("usage_count", data.get("usageCount", 0))),
            author_name=data.get("author_name", data.get("authorName")),
            created_at=parse_datetime(data.get("created_at")) or utc_now(),
            updated_at=parse_datetime(data.get("updated_at")) or utc_now(),
        )
