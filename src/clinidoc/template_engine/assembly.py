"""Document assembly.

Combines a template, a patient and a document's stored field values into the
structure consumed by the preview and the export serializer.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from clinidoc.models.assembled import AssembledDocument, CompletionStats, PopulatedField
from clinidoc.models.document import Document
from clinidoc.models.fields import FieldType, is_blank
from clinidoc.models.patient import Patient
from clinidoc.models.template import Template
from clinidoc.template_engine.autofill import derive
from clinidoc.template_engine.formatter import EXPORT_BLANK_MARKER, FieldValueFormatter
from clinidoc.template_engine.resolver import PlaceholderResolver
from clinidoc.utils.dates import utc_now

logger = logging.getLogger(__name__)


class DocumentAssembler:
    """Projects template + patient + document into an AssembledDocument.

    Assembly is read-only: it never writes derived values back into the
    document. Stored non-blank values take precedence over values derived
    from the patient record.

    Example:
        >>> assembler = DocumentAssembler()
        >>> assembled = assembler.assemble(template, patient, document)
        >>> [item.label for item in assembled.populated_fields]
        ['שם המטופל', 'תלונה עיקרית']
    """

    def __init__(
        self,
        formatter: Optional[FieldValueFormatter] = None,
        resolver: Optional[PlaceholderResolver] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize assembler.

        Args:
            formatter: Field value formatter (default formatter if None)
            resolver: Placeholder resolver (built on ``formatter`` if None)
            clock: Source of "now" for age derivation
        """
        self.formatter = formatter or FieldValueFormatter()
        self.resolver = resolver or PlaceholderResolver(self.formatter)
        self.clock = clock

    def resolve_values(
        self, template: Template, patient: Patient, document: Document
    ) -> Dict[str, Any]:
        """Resolve the value of every template field.

        Args:
            template: Template whose fields are resolved
            patient: Patient used for patient-derived fields
            document: Document holding stored values

        Returns:
            Mapping of field name to non-blank value; unresolved fields and
            stored values for names the template does not declare are absent
        """
        now = self.clock()
        values: Dict[str, Any] = {}

        for template_field in template.fields:
            stored = document.data.get(template_field.name)
            if not is_blank(stored):
                values[template_field.name] = stored
                continue
            if template_field.type is FieldType.PATIENT_DERIVED:
                derived = derive(template_field, patient, now)
                if not is_blank(derived):
                    values[template_field.name] = derived

        return values

    def assemble(
        self,
        template: Template,
        patient: Patient,
        document: Document,
        blank_marker: str = EXPORT_BLANK_MARKER,
    ) -> AssembledDocument:
        """Assemble a document.

        Args:
            template: Template referenced by the document
            patient: Patient referenced by the document
            document: Document with stored field values
            blank_marker: Marker for unresolved placeholders in the body

        Returns:
            AssembledDocument with populated fields, resolved body and
            completion statistics
        """
        values = self.resolve_values(template, patient, document)

        populated: List[PopulatedField] = []
        required_total = 0
        required_filled = 0

        for template_field in template.ordered_fields:
            value = values.get(template_field.name)
            filled = not is_blank(value)

            if template_field.is_required:
                required_total += 1
                if filled:
                    required_filled += 1

            if filled:
                populated.append(
                    PopulatedField(
                        field=template_field,
                        formatted_value=self.formatter.format(
                            template_field, value, blank_marker
                        ),
                    )
                )

        resolved_body = self.resolver.resolve(
            template.content,
            template.fields,
            values,
            patient.full_name,
            blank_marker,
        )

        ignored = set(document.data) - {f.name for f in template.fields}
        if ignored:
            logger.debug(
                f"Document {document.id} holds values for undeclared fields: "
                f"{sorted(ignored)}"
            )

        logger.debug(
            f"Assembled document {document.id}: {len(populated)} populated fields, "
            f"{required_filled}/{required_total} required filled"
        )

        return AssembledDocument(
            populated_fields=populated,
            resolved_body=resolved_body,
            completion_stats=CompletionStats(
                required_total=required_total,
                required_filled=required_filled,
            ),
            values=values,
        )
