"""Assembled document model.

The read-only projection of template + patient + document that both the
preview and the export serializer consume.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from clinidoc.models.fields import FieldDefinition


@dataclass(frozen=True)
class PopulatedField:
    """A field with a non-blank resolved value and its display text."""

    field: FieldDefinition
    formatted_value: str

    @property
    def label(self) -> str:
        return self.field.label


@dataclass(frozen=True)
class CompletionStats:
    """Required-field completion counts.

    Attributes:
        required_total: Number of fields flagged required
        required_filled: Number of those with a non-blank resolved value
    """

    required_total: int = 0
    required_filled: int = 0

    @property
    def percentage(self) -> int:
        """Completion percentage, 100 when the template requires nothing."""
        if self.required_total == 0:
            return 100
        # Half-up rounding, so 1 of 8 gives 13 rather than 12
        return int(self.required_filled * 100 / self.required_total + 0.5)


@dataclass(frozen=True)
class AssembledDocument:
    """Fully resolved document ready for preview or export.

    Attributes:
        populated_fields: Fields with non-blank values, ordered by ``order``
        resolved_body: Template body with every placeholder substituted
        completion_stats: Required-field completion counts
        values: Merged value map (stored values over auto-filled ones)
    """

    populated_fields: List[PopulatedField]
    resolved_body: str
    completion_stats: CompletionStats
    values: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-compatible preview structure."""
        return {
            "populated_fields": [
                {
                    "name": item.field.name,
                    "label": item.label,
                    "value": item.formatted_value,
                }
                for item in self.populated_fields
            ],
            "resolved_body": self.resolved_body,
            "completion": {
                "required_total": self.completion_stats.required_total,
                "required_filled": self.completion_stats.required_filled,
                "percentage": self.completion_stats.percentage,
            },
        }
